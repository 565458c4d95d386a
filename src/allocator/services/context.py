"""Explicit collaborator wiring for the distance and assignment services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import Settings, settings as default_settings
from .distance.progress import NullProgressSink
from .routing.models import ProgressSink, RoutingService
from .routing.osrm_client import OSRMClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContext:
    """Handles shared by DistanceProvider and CapacitatedAssignmentEngine."""

    routing_service: Optional[RoutingService] = None
    progress: ProgressSink = field(default_factory=NullProgressSink)
    settings: Settings = field(default_factory=lambda: default_settings)

    @classmethod
    def from_settings(cls, app_settings: Settings | None = None, progress: ProgressSink | None = None) -> "ServiceContext":
        app_settings = app_settings or default_settings
        routing_service: Optional[RoutingService] = None
        if app_settings.osrm_base_url:
            routing_service = OSRMClient(
                base_url=app_settings.osrm_base_url,
                profile=app_settings.osrm_profile,
                timeout=app_settings.osrm_timeout_seconds,
                max_retries=app_settings.osrm_max_retries,
                backoff_seconds=app_settings.osrm_backoff_seconds,
            )
        else:
            logger.info("OSRM base URL not configured; long-range distances fall back to haversine.")
        return cls(
            routing_service=routing_service,
            progress=progress or NullProgressSink(),
            settings=app_settings,
        )
