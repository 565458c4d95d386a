"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from ...config import settings
from ...models.domain import GeoPoint
from .models import RouteResult, RoutingUnavailableError

logger = logging.getLogger(__name__)


class OSRMClient:
    """Routing service backed by the OSRM ``/route`` endpoint.

    Every failure mode (HTTP errors, timeouts, network errors, malformed or
    empty responses) surfaces as ``RoutingUnavailableError`` once retries are
    exhausted, so callers can treat them uniformly.
    """

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.osrm_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport
        self._sleep = sleep

    def _get_client(self) -> httpx.Client:
        """Create a short-lived client; matrix batches call ``route`` from worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            headers={"Accept": "application/json", "User-Agent": "test-centre-allocator/1.0"},
            transport=self._transport,
        )

    def route_url(self, point_a: GeoPoint, point_b: GeoPoint) -> str:
        # OSRM expects "lon,lat;lon,lat"
        coordinate_str = f"{point_a.longitude},{point_a.latitude};{point_b.longitude},{point_b.latitude}"
        return f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

    def route(self, point_a: GeoPoint, point_b: GeoPoint) -> RouteResult:
        """Get the road route between two points.

        Args:
            point_a: Route origin.
            point_b: Route destination.

        Returns:
            RouteResult with distance in km, duration in minutes and the
            encoded polyline geometry exactly as OSRM returned it.

        Raises:
            RoutingUnavailableError: When no route could be obtained.
        """
        url = self.route_url(point_a, point_b)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return self._parse_route(response.json())
                except httpx.HTTPStatusError as exc:
                    attempt += 1
                    if exc.response.status_code < 500 and exc.response.status_code != 429:
                        raise RoutingUnavailableError(
                            f"OSRM rejected route request ({exc.response.status_code}): {url}"
                        ) from exc
                    if attempt > self.max_retries:
                        raise RoutingUnavailableError(
                            f"OSRM route request failed after {attempt} attempts: {exc}"
                        ) from exc
                    self._sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM route request timed out after {self.max_retries} retries: {exc}")
                        raise RoutingUnavailableError(f"OSRM route request timed out: {exc}") from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM route timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    self._sleep(wait_time)
                except (httpx.NetworkError, OSError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise RoutingUnavailableError(
                            f"Failed to connect to OSRM service at {self.base_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {exc}")
                    self._sleep(wait_time)
                except httpx.HTTPError as exc:
                    raise RoutingUnavailableError(f"OSRM route request failed: {exc}") from exc
                except ValueError as exc:
                    # Malformed JSON or a non-Ok payload; retrying will not help.
                    raise RoutingUnavailableError(str(exc)) from exc
        finally:
            client.close()

    @staticmethod
    def _parse_route(data: dict) -> RouteResult:
        if data.get("code") != "Ok":
            error_msg = data.get("message", data.get("code", "Unknown OSRM route error"))
            raise ValueError(f"OSRM route request failed: {error_msg}")
        routes = data.get("routes") or []
        if not routes:
            raise ValueError("OSRM returned no routes.")
        route = routes[0]
        try:
            return RouteResult(
                distance_km=float(route["distance"]) / 1000.0,
                duration_min=float(route.get("duration") or 0.0) / 60.0,
                geometry=route.get("geometry"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"OSRM route payload is malformed: {exc}") from exc


def check_health(base_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check OSRM service health by routing between two fixed points.

    Public OSRM endpoints may not have a /health endpoint, so connectivity is
    tested with a minimal route request (Berlin area).
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        client = OSRMClient(base_url=base, max_retries=0, timeout=5.0, transport=transport)
        client.route(GeoPoint.center(52.517037, 13.388860), GeoPoint.center(52.496891, 13.385983))
        return True
    except RoutingUnavailableError:
        return False
