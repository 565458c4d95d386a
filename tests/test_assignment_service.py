import pytest

from src.allocator.config import Settings
from src.allocator.schemas.assignment import AssignmentRequest, DistanceRequest
from src.allocator.services.assignment import service as assignment_service
from src.allocator.services.context import ServiceContext
from src.allocator.services.distance.provider import DistanceProvider
from src.allocator.services.routing.models import RouteResult


class DummyRouting:
    def __init__(self):
        self.calls = 0

    def route(self, point_a, point_b):
        self.calls += 1
        return RouteResult(distance_km=400.0 + self.calls, duration_min=240.0, geometry="polyline")


@pytest.fixture(autouse=True)
def clear_provider_cache():
    assignment_service.get_distance_provider.cache_clear()
    yield
    assignment_service.get_distance_provider.cache_clear()


@pytest.fixture
def routing() -> DummyRouting:
    return DummyRouting()


@pytest.fixture
def provider(routing: DummyRouting) -> DistanceProvider:
    settings = Settings(batch_delay_seconds=0.0, max_parallel_requests=1, osrm_base_url=None)
    return DistanceProvider(ServiceContext(routing_service=routing, settings=settings))


def _request(**overrides) -> AssignmentRequest:
    payload = {
        "people": [
            {"person_id": "P1", "latitude": 24.7136, "longitude": 46.6753, "category": "male"},
            {"person_id": "P2", "latitude": 24.7200, "longitude": 46.6800, "category": "pwd"},
        ],
        "centers": [
            {"center_id": "DAMMAM", "latitude": 26.4207, "longitude": 50.0888},
            {"center_id": "TABUK", "latitude": 28.3838, "longitude": 36.5550},
        ],
        "capacity_per_center": 1,
        "use_road_distances": True,
    }
    payload.update(overrides)
    return AssignmentRequest(**payload)


def test_run_assignment_with_road_distances(provider: DistanceProvider, routing: DummyRouting):
    response = assignment_service.run_assignment(_request(include_geometry=True), provider=provider)

    assert routing.calls == 4
    assert response.distance_type == "road"
    assert response.state == "done"
    assert response.unassigned_people == []
    assert response.remaining_capacity == [0, 0]

    first = response.records[0]
    assert first.person_id == "P2"
    assert first.category.value == "pwd"
    assert first.source == "routing"
    assert first.geometry == "polyline"
    assert first.duration_min == 240.0
    assert {record.center_id for record in response.records} == {"DAMMAM", "TABUK"}

    assert response.metadata["matrix"] == {"completed_pairs": 4, "total_pairs": 4, "cancelled": False}
    assert response.metadata["cache"]["sources"]["routing"] == 4


def test_geometry_is_omitted_unless_requested(provider: DistanceProvider):
    response = assignment_service.run_assignment(_request(), provider=provider)

    assert all(record.geometry is None for record in response.records)
    assert all(record.source == "routing" for record in response.records)


def test_straight_line_mode_never_touches_provider(provider: DistanceProvider, routing: DummyRouting):
    response = assignment_service.run_assignment(_request(use_road_distances=False), provider=provider)

    assert routing.calls == 0
    assert response.distance_type == "straight-line"
    assert all(record.source == "haversine" for record in response.records)
    assert "cache" not in response.metadata


def test_default_capacity_from_settings(monkeypatch: pytest.MonkeyPatch, provider: DistanceProvider):
    monkeypatch.setattr(assignment_service.settings, "capacity_per_center", 1)
    request = _request(capacity_per_center=None, use_road_distances=False)
    request.centers = request.centers[:1]

    response = assignment_service.run_assignment(request, provider=provider)

    assert response.metadata["capacity_per_center"] == 1
    assert response.unassigned_people == [0]
    assert response.stats.unassigned_by_category["male"] == 1


def test_no_centers_is_a_partial_assignment(provider: DistanceProvider, routing: DummyRouting):
    response = assignment_service.run_assignment(_request(centers=[]), provider=provider)

    assert routing.calls == 0
    assert response.state == "partial"
    assert response.records == []
    assert response.unassigned_people == [0, 1]
    assert response.remaining_capacity == []
    assert response.stats.total_assigned == 0
    assert response.stats.average_distance_km is None
    assert response.metadata["matrix"]["total_pairs"] == 0


def test_invalid_coordinates_raise_value_error(provider: DistanceProvider):
    request = _request()
    request.people[0].latitude = 123.0

    with pytest.raises(ValueError):
        assignment_service.run_assignment(request, provider=provider)


def test_compute_distance_uses_provider(provider: DistanceProvider, routing: DummyRouting):
    request = DistanceRequest(
        origin={"latitude": 24.7136, "longitude": 46.6753},
        destination={"latitude": 26.4207, "longitude": 50.0888},
    )

    first = assignment_service.compute_distance(request, provider=provider)
    second = assignment_service.compute_distance(request, provider=provider)

    assert first.source == "routing"
    assert first.distance_km == 401.0
    assert second.source == "cache"
    assert second.distance_km == 401.0
    assert routing.calls == 1


def test_default_provider_is_shared():
    assert assignment_service.get_distance_provider() is assignment_service.get_distance_provider()
