import importlib.util

from fastapi.testclient import TestClient


def _create_tournament(client: TestClient, table_count: int = 3) -> int:
    response = client.post("/api/tournaments", json={"name": "Spring Open", "table_count": table_count})
    assert response.status_code == 201
    return response.json()["id"]


def _pairing(p1, p2=None, table=None, total1=0, total2=0):
    data = {"player1": {"id": p1, "name": p1.capitalize(), "total_score": total1}, "table_number": table}
    if p2:
        data["player2"] = {"id": p2, "name": p2.capitalize(), "total_score": total2}
    return data


def _import(client: TestClient, tournament_id: int, round_number: int, pairings):
    return client.post(
        f"/api/tournaments/{tournament_id}/rounds/{round_number}/import",
        json={"pairings": pairings},
    )


def test_health(client: TestClient):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestTournaments:
    def test_create_tournament_creates_numbered_tables(self, client: TestClient):
        tournament_id = _create_tournament(client, table_count=4)

        response = client.get(f"/api/tournaments/{tournament_id}/tables")

        assert response.status_code == 200
        assert [t["table_number"] for t in response.json()] == [1, 2, 3, 4]
        assert all(t["terrain_type_id"] is None for t in response.json())

    def test_table_count_must_be_positive(self, client: TestClient):
        response = client.post("/api/tournaments", json={"name": "Empty", "table_count": 0})

        assert response.status_code == 422

    def test_unknown_tournament(self, client: TestClient):
        assert client.get("/api/tournaments/999").status_code == 404
        assert client.get("/api/tournaments/999/tables").status_code == 404

    def test_terrain_types_and_table_terrain(self, client: TestClient):
        tournament_id = _create_tournament(client)
        created = client.post("/api/terrain-types", json={"name": "Urban", "sort_order": 2})
        assert created.status_code == 201
        terrain_id = created.json()["id"]

        duplicate = client.post("/api/terrain-types", json={"name": "Urban"})
        assert duplicate.status_code == 409

        response = client.patch(
            f"/api/tournaments/{tournament_id}/tables/2",
            json={"terrain_type_id": terrain_id},
        )
        assert response.status_code == 200
        assert response.json()["terrain_type_name"] == "Urban"

        assert [t["name"] for t in client.get("/api/terrain-types").json()] == ["Urban"]

    def test_unknown_table_or_terrain(self, client: TestClient):
        tournament_id = _create_tournament(client)

        assert client.patch(f"/api/tournaments/{tournament_id}/tables/9", json={}).status_code == 404
        assert (
            client.patch(f"/api/tournaments/{tournament_id}/tables/1", json={"terrain_type_id": 42}).status_code
            == 404
        )


class TestRounds:
    def test_import_show_and_publish(self, client: TestClient):
        tournament_id = _create_tournament(client)

        imported = _import(client, tournament_id, 1, [_pairing("alice", "bob", table=2), _pairing("erin")])
        assert imported.status_code == 200
        body = imported.json()
        assert [a["table_number"] for a in body["allocations"]] == [2, None]
        assert body["conflicts"] == []

        shown = client.get(f"/api/tournaments/{tournament_id}/rounds/1").json()
        assert shown["is_published"] is False
        assert shown["collisions"] == []
        assert len(shown["allocations"]) == 2

        published = client.post(f"/api/tournaments/{tournament_id}/rounds/1/publish")
        assert published.status_code == 200
        assert published.json() == {
            "round_number": 1,
            "is_published": True,
            "message": "Round 1 allocations are now public",
        }

    def test_blank_opponent_imports_as_bye(self, client: TestClient):
        tournament_id = _create_tournament(client)
        pairing = {"player1": {"id": "erin", "name": "Erin"}, "player2": {"id": "", "name": ""}}

        response = _import(client, tournament_id, 1, [pairing])

        assert response.status_code == 200
        [allocation] = response.json()["allocations"]
        assert allocation["is_bye"] is True
        assert allocation["table_number"] is None
        assert allocation["player2"] is None

    def test_blank_first_player_is_rejected(self, client: TestClient):
        tournament_id = _create_tournament(client)

        response = _import(client, tournament_id, 1, [{"player1": {"id": " ", "name": "Nobody"}}])

        assert response.status_code == 422

    def test_generate_reruns_stored_pairings(self, client: TestClient):
        tournament_id = _create_tournament(client)
        _import(client, tournament_id, 1, [_pairing("alice", "bob", table=3)])

        response = client.post(f"/api/tournaments/{tournament_id}/rounds/1/generate")

        assert response.status_code == 200
        assert response.json()["allocations"][0]["table_number"] == 3

    def test_round_errors(self, client: TestClient):
        tournament_id = _create_tournament(client)

        assert _import(client, 999, 1, []).status_code == 404
        assert _import(client, tournament_id, 0, []).status_code == 400
        assert client.get(f"/api/tournaments/{tournament_id}/rounds/5").status_code == 404
        assert client.post(f"/api/tournaments/{tournament_id}/rounds/5/generate").status_code == 404
        assert client.post(f"/api/tournaments/{tournament_id}/rounds/5/publish").status_code == 404


class TestAllocationEdits:
    def _round(self, client: TestClient):
        tournament_id = _create_tournament(client)
        body = _import(
            client,
            tournament_id,
            1,
            [_pairing("alice", "bob", table=1), _pairing("carol", "dave", table=2), _pairing("erin")],
        ).json()
        tables = client.get(f"/api/tournaments/{tournament_id}/tables").json()
        return tournament_id, body["allocations"], {t["table_number"]: t["id"] for t in tables}

    def test_edit_onto_occupied_table_reports_collision(self, client: TestClient):
        tournament_id, allocations, tables = self._round(client)

        response = client.patch(f"/api/allocations/{allocations[1]['id']}", json={"table_id": tables[1]})

        assert response.status_code == 200
        [conflict] = response.json()["conflicts"]
        assert conflict["type"] == "TABLE_COLLISION"
        assert conflict["other_allocation_id"] == allocations[0]["id"]

        shown = client.get(f"/api/tournaments/{tournament_id}/rounds/1").json()
        assert shown["collisions"][0]["table_number"] == 1

    def test_swap(self, client: TestClient):
        _, allocations, tables = self._round(client)

        response = client.post(
            "/api/allocations/swap",
            json={"allocation_id1": allocations[0]["id"], "allocation_id2": allocations[1]["id"]},
        )

        assert response.status_code == 200
        assert response.json()["allocation1"]["new_table_id"] == tables[2]
        assert response.json()["allocation2"]["new_table_id"] == tables[1]

    def test_edit_errors(self, client: TestClient):
        _, allocations, tables = self._round(client)
        bye_id = allocations[2]["id"]

        assert client.patch("/api/allocations/999", json={"table_id": tables[1]}).status_code == 404
        assert client.patch(f"/api/allocations/{bye_id}", json={"table_id": tables[3]}).status_code == 400
        same = client.post("/api/allocations/swap", json={"allocation_id1": bye_id, "allocation_id2": bye_id})
        assert same.status_code == 400


def test_routes_is_a_regular_package():
    spec = importlib.util.find_spec("tournament_tables.routes")

    assert spec.origin is not None
    assert spec.origin.endswith("__init__.py")
