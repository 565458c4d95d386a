import pytest
from fastapi.testclient import TestClient

from src.allocator.main import create_app


@pytest.fixture(autouse=True)
def clear_provider_cache(monkeypatch: pytest.MonkeyPatch):
    from src.allocator.config import settings
    from src.allocator.services.assignment.service import get_distance_provider

    # Keep the shared provider offline: grid search for short pairs, haversine beyond.
    monkeypatch.setattr(settings, "osrm_base_url", None)
    monkeypatch.setattr(settings, "batch_delay_seconds", 0.0)
    get_distance_provider.cache_clear()
    yield
    get_distance_provider.cache_clear()


@pytest.fixture
def api_client() -> TestClient:
    return TestClient(create_app())


def _priority_payload(use_road_distances: bool) -> dict:
    # One center, two seats; people at roughly 1.0, 0.5 and 0.1 km to the north.
    return {
        "people": [
            {"person_id": "pwd-1", "latitude": 24.008993, "longitude": 46.0, "category": "pwd"},
            {"person_id": "female-1", "latitude": 24.004497, "longitude": 46.0, "category": "female"},
            {"person_id": "male-1", "latitude": 24.000899, "longitude": 46.0, "category": "male"},
        ],
        "centers": [{"center_id": "C1", "latitude": 24.0, "longitude": 46.0}],
        "capacity_per_center": 2,
        "use_road_distances": use_road_distances,
    }


def test_health_endpoints(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}

    osrm = api_client.get("/api/health/osrm")
    assert osrm.status_code == 200
    assert osrm.json() == {"service": "osrm", "configured": False, "healthy": False}


@pytest.mark.parametrize("use_road_distances", [False, True])
def test_assignment_endpoint_serves_priority_first(api_client: TestClient, use_road_distances: bool):
    response = api_client.post("/api/assignments", json=_priority_payload(use_road_distances))

    assert response.status_code == 200
    payload = response.json()
    assert payload["state"] == "partial"
    assert [record["person_id"] for record in payload["records"]] == ["pwd-1", "female-1"]
    assert payload["unassigned_people"] == [2]
    assert payload["remaining_capacity"] == [0]
    assert payload["stats"]["total_assigned"] == 2
    assert payload["stats"]["unassigned_by_category"]["male"] == 1
    expected_source = "grid" if use_road_distances else "haversine"
    assert {record["source"] for record in payload["records"]} == {expected_source}


@pytest.mark.parametrize("use_road_distances", [False, True])
def test_assignment_without_centers_leaves_everyone_unassigned(api_client: TestClient, use_road_distances: bool):
    payload = _priority_payload(use_road_distances)
    payload["centers"] = []

    response = api_client.post("/api/assignments", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "partial"
    assert body["records"] == []
    assert body["unassigned_people"] == [0, 1, 2]
    assert body["stats"]["total_assigned"] == 0
    assert body["stats"]["average_distance_km"] is None


def test_assignment_endpoint_rejects_bad_input(api_client: TestClient):
    bad_latitude = _priority_payload(False)
    bad_latitude["people"][0]["latitude"] = 95.0
    assert api_client.post("/api/assignments", json=bad_latitude).status_code == 400

    zero_capacity = _priority_payload(False)
    zero_capacity["capacity_per_center"] = 0
    assert api_client.post("/api/assignments", json=zero_capacity).status_code == 422

    unknown_category = _priority_payload(False)
    unknown_category["people"][0]["category"] = "vip"
    assert api_client.post("/api/assignments", json=unknown_category).status_code == 422


def test_distance_endpoint_and_cache_management(api_client: TestClient):
    body = {
        "origin": {"latitude": 24.7136, "longitude": 46.6753},
        "destination": {"latitude": 24.7236, "longitude": 46.6853},
    }

    first = api_client.post("/api/distances", json=body)
    assert first.status_code == 200
    assert first.json()["source"] == "grid"

    second = api_client.post("/api/distances", json=body)
    assert second.json()["source"] == "cache"
    assert second.json()["distance_km"] == first.json()["distance_km"]

    stats = api_client.get("/api/distances/cache").json()
    assert stats["size"] == 1
    assert stats["sources"]["cache_hits"] == 1

    cleared = api_client.delete("/api/distances/cache")
    assert cleared.status_code == 200
    assert api_client.get("/api/distances/cache").json()["size"] == 0


def test_far_distance_without_routing_falls_back_to_haversine(api_client: TestClient):
    body = {
        "origin": {"latitude": 24.7136, "longitude": 46.6753},
        "destination": {"latitude": 21.4858, "longitude": 39.1925},
    }

    response = api_client.post("/api/distances", json=body)

    assert response.status_code == 200
    assert response.json()["source"] == "haversine"
    assert response.json()["distance_km"] > 800


def _scenario_graph() -> dict:
    return {
        "vertices": ["island"],
        "edges": [
            {"source": "A", "target": "B", "weight": 4},
            {"source": "A", "target": "C", "weight": 2},
            {"source": "B", "target": "C", "weight": 1},
            {"source": "B", "target": "D", "weight": 5},
            {"source": "C", "target": "D", "weight": 8},
            {"source": "C", "target": "E", "weight": 10},
            {"source": "D", "target": "E", "weight": 2},
        ],
    }


def test_graph_shortest_path_endpoint(api_client: TestClient):
    response = api_client.post("/api/graph/shortest-path", json={**_scenario_graph(), "start": "A", "end": "E"})

    assert response.status_code == 200
    assert response.json() == {"found": True, "path": ["A", "C", "B", "D", "E"], "distance": 10}

    missing = api_client.post("/api/graph/shortest-path", json={**_scenario_graph(), "start": "A", "end": "Z"})
    assert missing.json() == {"found": False, "path": [], "distance": -1}


def test_graph_rejects_invalid_edges(api_client: TestClient):
    negative = _scenario_graph()
    negative["edges"].append({"source": "E", "target": "F", "weight": -3})
    assert api_client.post("/api/graph/shortest-path", json={**negative, "start": "A", "end": "F"}).status_code == 422

    loop = _scenario_graph()
    loop["edges"].append({"source": "E", "target": "E", "weight": 3})
    assert api_client.post("/api/graph/shortest-path", json={**loop, "start": "A", "end": "E"}).status_code == 400


def test_graph_distances_endpoint(api_client: TestClient):
    response = api_client.post("/api/graph/distances", json={**_scenario_graph(), "start": "A"})

    assert response.status_code == 200
    assert response.json()["distances"] == {"A": 0, "B": 3, "C": 2, "D": 8, "E": 10, "island": None}

    missing = api_client.post("/api/graph/distances", json={**_scenario_graph(), "start": "Z"})
    assert missing.status_code == 200
    assert missing.json() == {"start": "Z", "distances": {}}
