"""HTTP tests for the floor plan, dashboard and health endpoints."""

import pytest

API = "/api/v1"


@pytest.fixture
def location(client):
    group = client.post(f"{API}/restaurant-groups", json={"name": "Group"}).json()
    return client.post(f"{API}/locations", json={"group_id": group["id"], "name": "Downtown"}).json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestGroupsAndLocations:
    def test_create_and_list(self, client):
        group = client.post(f"{API}/restaurant-groups", json={"name": "Group A"})
        assert group.status_code == 201
        group_id = group.json()["id"]

        location = client.post(
            f"{API}/locations",
            json={"group_id": group_id, "name": "Center", "address": "1 Vitosha Blvd", "city": "Sofia"},
        )
        assert location.status_code == 201
        assert location.json()["is_active"] is True

        assert [g["name"] for g in client.get(f"{API}/restaurant-groups").json()] == ["Group A"]
        listed = client.get(f"{API}/locations", params={"group_id": group_id}).json()
        assert [loc["name"] for loc in listed] == ["Center"]

    def test_location_requires_known_group(self, client):
        response = client.post(f"{API}/locations", json={"group_id": "missing", "name": "X"})
        assert response.status_code == 404

    def test_blank_group_name_rejected(self, client):
        assert client.post(f"{API}/restaurant-groups", json={"name": ""}).status_code == 422


class TestTables:
    def test_create_list_and_deactivate(self, client, location):
        table = client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 4, "label": "T4"})
        assert table.status_code == 201
        table_id = table.json()["id"]

        listed = client.get(f"{API}/tables", params={"location_id": location["id"]}).json()
        assert [t["id"] for t in listed] == [table_id]

        response = client.patch(f"{API}/tables/{table_id}", json={"is_active": False})
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        assert client.get(f"{API}/tables", params={"location_id": location["id"]}).json() == []
        with_inactive = client.get(
            f"{API}/tables", params={"location_id": location["id"], "include_inactive": True}
        ).json()
        assert len(with_inactive) == 1

    def test_capacity_must_be_positive(self, client, location):
        response = client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 0})
        assert response.status_code == 422

    def test_unknown_table(self, client):
        response = client.patch(f"{API}/tables/missing", json={"is_active": False})
        assert response.status_code == 404

    def test_deactivation_recomputes_waiting_parties(self, client, location):
        table = client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 2}).json()
        party = client.post(
            f"{API}/parties/check-in",
            json={"location_id": location["id"], "party_size": 2, "guest_name": "Guest"},
        ).json()
        assert party["estimate_status"] == "seatable"

        client.patch(f"{API}/tables/{table['id']}", json={"is_active": False})

        status = client.get(f"{API}/parties/{party['id']}/status").json()
        assert status["estimate_status"] == "no_capacity"
        assert status["estimated_wait_minutes"] is None


class TestInternal:
    def test_overview_scoped_to_location(self, client, location):
        other_group = client.post(f"{API}/restaurant-groups", json={"name": "Other"}).json()
        other = client.post(f"{API}/locations", json={"group_id": other_group["id"], "name": "Uptown"}).json()
        client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 4})
        client.post(f"{API}/tables", json={"location_id": other["id"], "capacity": 2})
        party = client.post(
            f"{API}/parties/check-in",
            json={"location_id": location["id"], "party_size": 3, "guest_name": "Guest"},
        ).json()

        data = client.get(f"{API}/internal/overview", params={"location_id": location["id"]}).json()
        assert [loc["id"] for loc in data["locations"]] == [location["id"]]
        assert len(data["tables"]) == 1
        assert [p["id"] for p in data["parties"]] == [party["id"]]
        assert data["seat_events"] == []

        everything = client.get(f"{API}/internal/overview").json()
        assert len(everything["locations"]) == 2
        assert len(everything["tables"]) == 2

    def test_overview_unknown_location(self, client):
        response = client.get(f"{API}/internal/overview", params={"location_id": "missing"})
        assert response.status_code == 404

    def test_recompute(self, client, location):
        table = client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 2}).json()
        party = client.post(
            f"{API}/parties/check-in",
            json={"location_id": location["id"], "party_size": 2, "guest_name": "Guest"},
        ).json()

        response = client.post(f"{API}/internal/locations/{location['id']}/recompute")

        assert response.status_code == 200
        data = response.json()
        assert data["waiting_parties"] == 1
        assert data["seatable_now"] == {party["id"]: table["id"]}
        assert data["failed"] is False

    def test_recompute_unknown_location(self, client):
        assert client.post(f"{API}/internal/locations/missing/recompute").status_code == 404


class TestKpis:
    def test_kpis(self, client, location, clock):
        table = client.post(f"{API}/tables", json={"location_id": location["id"], "capacity": 4}).json()

        def check_in(size, source="host"):
            return client.post(
                f"{API}/parties/check-in",
                json={"location_id": location["id"], "party_size": size, "source": source, "guest_name": "G"},
            ).json()

        seated = check_in(4)
        waiting = check_in(2)
        cancelled = check_in(3)
        no_show = check_in(2, source="web")
        client.put(f"{API}/parties/{cancelled['id']}/status", json={"status": "cancelled"})
        client.put(f"{API}/parties/{no_show['id']}/status", json={"status": "no_show"})
        clock.advance(minutes=10)
        client.post(f"{API}/seat-events", json={"party_id": seated["id"], "table_id": table["id"]})
        clock.advance(minutes=40)
        client.post(f"{API}/complete-events", json={"party_id": seated["id"]})

        response = client.get(f"{API}/dashboard/kpis", params={"location_id": location["id"], "time_window": "24h"})

        assert response.status_code == 200
        data = response.json()
        assert data["parties_checked_in"] == 4
        assert data["no_show_rate"] == 0.25
        assert data["cancellation_rate"] == 0.25
        assert data["avg_actual_wait_minutes"] == 10
        assert data["service_duration_by_size"]["4"] == {"samples": 1, "average_minutes": 40.0}
        assert [p["id"] for p in data["active_waitlist"]] == [waiting["id"]]

    def test_unknown_window(self, client, location):
        response = client.get(f"{API}/dashboard/kpis", params={"location_id": location["id"], "time_window": "1y"})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
