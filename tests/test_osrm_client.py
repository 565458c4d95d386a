import httpx
import pytest

from src.allocator.models.domain import GeoPoint
from src.allocator.services.routing import osrm_client as osrm_module
from src.allocator.services.routing.models import RoutingUnavailableError
from src.allocator.services.routing.osrm_client import OSRMClient, check_health

ORIGIN = GeoPoint.person(24.7136, 46.6753)
DESTINATION = GeoPoint.center(24.774265, 46.738586)

OK_PAYLOAD = {
    "code": "Ok",
    "routes": [{"distance": 12345.0, "duration": 900.0, "geometry": "_p~iF~ps|U_ulLnnqC"}],
}


def _client(handler, **kwargs) -> tuple[OSRMClient, list]:
    pauses = []
    client = OSRMClient(
        base_url="http://osrm.test/",
        profile="driving",
        timeout=5.0,
        max_retries=kwargs.pop("max_retries", 2),
        backoff_seconds=0.5,
        transport=httpx.MockTransport(handler),
        sleep=pauses.append,
    )
    return client, pauses


def test_route_parses_distance_duration_and_geometry():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OK_PAYLOAD)

    client, _ = _client(handler)
    result = client.route(ORIGIN, DESTINATION)

    assert result.distance_km == pytest.approx(12.345)
    assert result.duration_min == pytest.approx(15.0)
    assert result.geometry == OK_PAYLOAD["routes"][0]["geometry"]

    request = seen[0]
    assert request.url.path == "/route/v1/driving/46.6753,24.7136;46.738586,24.774265"
    assert request.url.params["overview"] == "full"
    assert request.url.params["geometries"] == "polyline"


def test_server_errors_are_retried_with_backoff():
    responses = iter([httpx.Response(503), httpx.Response(429), httpx.Response(200, json=OK_PAYLOAD)])

    client, pauses = _client(lambda request: next(responses))
    result = client.route(ORIGIN, DESTINATION)

    assert result.distance_km == pytest.approx(12.345)
    assert pauses == [0.5, 1.0]


def test_server_errors_exhaust_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    client, _ = _client(handler, max_retries=1)

    with pytest.raises(RoutingUnavailableError):
        client.route(ORIGIN, DESTINATION)
    assert len(calls) == 2


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"code": "InvalidQuery"})

    client, pauses = _client(handler)

    with pytest.raises(RoutingUnavailableError):
        client.route(ORIGIN, DESTINATION)
    assert len(calls) == 1
    assert pauses == []


def test_timeouts_raise_routing_unavailable():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client, pauses = _client(handler)

    with pytest.raises(RoutingUnavailableError):
        client.route(ORIGIN, DESTINATION)
    assert len(calls) == 3
    assert pauses == [0.5, 1.0]


def test_connection_errors_raise_routing_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, _ = _client(handler, max_retries=0)

    with pytest.raises(RoutingUnavailableError):
        client.route(ORIGIN, DESTINATION)


@pytest.mark.parametrize(
    "payload",
    [
        {"code": "NoRoute", "message": "Impossible route between points"},
        {"code": "Ok", "routes": []},
        {"code": "Ok", "routes": [{"duration": 10}]},
    ],
)
def test_unusable_payloads_raise_routing_unavailable(payload):
    client, pauses = _client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(RoutingUnavailableError):
        client.route(ORIGIN, DESTINATION)
    assert pauses == []


def test_missing_base_url_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(osrm_module.settings, "osrm_base_url", None)

    with pytest.raises(ValueError):
        OSRMClient()


def test_check_health_reports_reachability():
    healthy = httpx.MockTransport(lambda request: httpx.Response(200, json=OK_PAYLOAD))
    broken = httpx.MockTransport(lambda request: httpx.Response(502))

    assert check_health("http://osrm.test", transport=healthy) is True
    assert check_health("http://osrm.test", transport=broken) is False
