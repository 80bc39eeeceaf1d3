"""Service-account credential loading for the reporting backend."""

from __future__ import annotations

import json
from pathlib import Path

from google.auth.exceptions import DefaultCredentialsError
from google.oauth2 import service_account

from pageview_service.domain.exceptions import InvalidConfigurationError

ANALYTICS_READONLY_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"


def load_credentials(path: str | Path) -> service_account.Credentials:
    """Load a service-account key file scoped for read-only analytics access."""

    file_path = Path(path)
    if not file_path.is_file():
        raise InvalidConfigurationError(
            "Credentials file not found", context={"path": str(file_path)}
        )
    try:
        data = json.loads(file_path.read_text())
    except (OSError, ValueError) as exc:
        raise InvalidConfigurationError(
            "Credentials file is not readable JSON", context={"path": str(file_path)}
        ) from exc
    if not isinstance(data, dict) or data.get("type") != "service_account":
        raise InvalidConfigurationError(
            "Credentials file is not a service account key",
            context={"path": str(file_path)},
        )
    try:
        return service_account.Credentials.from_service_account_file(
            str(file_path), scopes=[ANALYTICS_READONLY_SCOPE]
        )
    except (ValueError, DefaultCredentialsError) as exc:
        raise InvalidConfigurationError(
            "Credentials file has an invalid service account key",
            context={"path": str(file_path)},
        ) from exc
