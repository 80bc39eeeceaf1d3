"""Dependency injection container for building fully-wired services."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx
from google.auth.credentials import Credentials

from pageview_service.backends.credentials import load_credentials
from pageview_service.backends.reporting_api import ReportingApiBackend
from pageview_service.core.config import ServiceConfig
from pageview_service.core.service import PageViewService
from pageview_service.domain.interfaces import IAnalyticsBackend, IClock, ITitleNormalizer
from pageview_service.query.aggregator import ResultAggregator


class DIContainer:
    """Factory helpers that assemble a PageViewService with default wiring."""

    @staticmethod
    def create_service(
        config: ServiceConfig | Mapping[str, Any] | None = None,
        *,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[IClock] = None,
        normalizer: Optional[ITitleNormalizer] = None,
    ) -> PageViewService:
        cfg = DIContainer._resolve_config(config)
        credentials = DIContainer._load_credentials(cfg)
        client = http_client or httpx.Client(timeout=cfg.timeout_seconds)
        backend = ReportingApiBackend(
            client,
            base_url=cfg.base_url,
            credentials=credentials,
            timeout=cfg.timeout_seconds,
        )
        return DIContainer.create_custom_service(
            config=cfg, backend=backend, clock=clock, normalizer=normalizer
        )

    @staticmethod
    def create_custom_service(
        *,
        config: ServiceConfig,
        backend: IAnalyticsBackend,
        clock: Optional[IClock] = None,
        normalizer: Optional[ITitleNormalizer] = None,
        aggregator: Optional[ResultAggregator] = None,
    ) -> PageViewService:
        return PageViewService(
            config,
            backend,
            clock=clock,
            normalizer=normalizer,
            aggregator=aggregator,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _resolve_config(
        config: ServiceConfig | Mapping[str, Any] | None,
    ) -> ServiceConfig:
        if config is None:
            return ServiceConfig.from_env()
        if isinstance(config, ServiceConfig):
            return config
        return ServiceConfig.from_mapping(dict(config))

    @staticmethod
    def _load_credentials(config: ServiceConfig) -> Optional[Credentials]:
        if config.credentials_file is False:
            return None
        return load_credentials(config.credentials_file)
