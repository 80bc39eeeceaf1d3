"""Service configuration management helpers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Literal, Union

from pageview_service.domain.exceptions import InvalidConfigurationError

CredentialsSetting = Union[str, Path, Literal[False]]


def _str_to_credentials(value: str | None, default: CredentialsSetting) -> CredentialsSetting:
    if value is None:
        return default
    value = value.strip()
    if value.lower() in {"", "0", "false", "no", "off"}:
        return False
    return value


def _str_to_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise InvalidConfigurationError(f"Invalid integer value: {value}") from exc


@dataclass(frozen=True)
class ServiceConfig:
    """Immutable configuration object loaded from env or files.

    ``credentials_file`` is either a path to a credentials artifact or
    ``False`` to talk to the backend without authentication.
    ``site_name`` must be set for top pages: it is the `` - <site>`` suffix
    stripped from page titles, and an empty value leaves titles untouched.
    """

    profile_id: str = ""
    credentials_file: CredentialsSetting = False
    site_name: str = ""
    article_path: str = "/wiki/$1"
    top_pages_limit: int = 10
    top_pages_days: int = 1
    max_workers: int = 1
    timeout_seconds: int = 30
    base_url: str = "https://analyticsreporting.googleapis.com"

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        defaults = cls.__dataclass_fields__
        return cls(
            profile_id=os.getenv("PAGEVIEW_PROFILE_ID", ""),
            credentials_file=_str_to_credentials(
                os.getenv("PAGEVIEW_CREDENTIALS_FILE"), False
            ),
            site_name=os.getenv("PAGEVIEW_SITE_NAME", defaults["site_name"].default),
            article_path=os.getenv(
                "PAGEVIEW_ARTICLE_PATH", defaults["article_path"].default
            ),
            top_pages_limit=_str_to_int(
                os.getenv("PAGEVIEW_TOP_PAGES_LIMIT"),
                defaults["top_pages_limit"].default,
            ),
            top_pages_days=_str_to_int(
                os.getenv("PAGEVIEW_TOP_PAGES_DAYS"),
                defaults["top_pages_days"].default,
            ),
            max_workers=_str_to_int(
                os.getenv("PAGEVIEW_MAX_WORKERS"), defaults["max_workers"].default
            ),
            timeout_seconds=_str_to_int(
                os.getenv("PAGEVIEW_TIMEOUT_SECONDS"),
                defaults["timeout_seconds"].default,
            ),
            base_url=os.getenv("PAGEVIEW_BASE_URL", defaults["base_url"].default),
        )

    @classmethod
    def from_file(cls, path: str) -> "ServiceConfig":
        file_path = Path(path)
        if not file_path.exists():
            raise InvalidConfigurationError(f"Configuration file not found: {path}")
        raw = file_path.read_text()
        data: Any
        suffix = file_path.suffix.lower()
        if suffix == ".json":
            try:
                data = json.loads(raw)
            except ValueError as exc:
                raise InvalidConfigurationError(
                    "Configuration file is not valid JSON", context={"path": path}
                ) from exc
        elif suffix in {".yaml", ".yml"}:
            data = cls._load_yaml(raw)
        else:
            raise InvalidConfigurationError("Unsupported config format. Use JSON or YAML.")
        if not isinstance(data, dict):
            raise InvalidConfigurationError(
                "Configuration file must contain a mapping", context={"path": path}
            )
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ServiceConfig":
        """Accept both snake_case and the ``credentialsFile``/``profileId`` spelling."""

        aliases = {"credentialsFile": "credentials_file", "profileId": "profile_id"}
        normalized = {aliases.get(key, key): value for key, value in data.items()}
        return cls(**cls._known_keys(normalized))

    def validate(self) -> None:
        if not isinstance(self.profile_id, str) or not self.profile_id.strip():
            raise InvalidConfigurationError("profile_id must be a non-empty string")
        if self.credentials_file is not False:
            if not isinstance(self.credentials_file, (str, Path)) or not self.credentials_file:
                raise InvalidConfigurationError(
                    "credentials_file must be a path or False",
                    context={"credentials_file": self.credentials_file},
                )
            credentials_path = Path(self.credentials_file)
            if not credentials_path.is_file() or not os.access(credentials_path, os.R_OK):
                raise InvalidConfigurationError(
                    "credentials_file does not point to a readable file",
                    context={"path": str(credentials_path)},
                )
        for name in ("site_name", "article_path", "base_url"):
            if not isinstance(getattr(self, name), str):
                raise InvalidConfigurationError(f"{name} must be a string")
        if "$1" not in self.article_path:
            raise InvalidConfigurationError("article_path must contain the $1 placeholder")
        for name in ("top_pages_limit", "top_pages_days", "max_workers", "timeout_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfigurationError(
                    f"{name} must be an integer", context={name: value}
                )
            if value <= 0:
                raise InvalidConfigurationError(f"{name} must be greater than zero")

    @classmethod
    def _known_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        names = {field.name for field in fields(cls)}
        return {key: value for key, value in data.items() if key in names}

    @staticmethod
    def _load_yaml(raw: str) -> Any:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to parse YAML config files") from exc
        try:
            return yaml.safe_load(raw) or {}
        except yaml.YAMLError as exc:
            raise InvalidConfigurationError("Configuration file is not valid YAML") from exc
