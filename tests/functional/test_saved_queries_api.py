"""
Functional tests for saved query endpoints.
"""


class TestSavedQueriesApi:
    def test_crud_round_trip(self, client):
        create = client.post(
            "/api/queries/warehouse",
            json={"name": "Paid orders", "description": "orders marked paid", "sql": "SELECT * FROM orders"},
        )
        assert create.status_code == 201
        created = create.json()
        query_id = created["id"]
        assert created["data_source_id"] == "warehouse"
        assert created["created_at"] is not None

        listing = client.get("/api/queries/warehouse").json()
        assert [q["id"] for q in listing] == [query_id]

        fetched = client.get(f"/api/queries/warehouse/{query_id}").json()
        assert fetched["name"] == "Paid orders"

        updated = client.patch(f"/api/queries/warehouse/{query_id}", json={"name": "Paid orders v2"})
        assert updated.status_code == 200
        assert updated.json()["name"] == "Paid orders v2"
        assert updated.json()["sql"] == "SELECT * FROM orders"

        deleted = client.delete(f"/api/queries/warehouse/{query_id}")
        assert deleted.status_code == 200
        assert client.get(f"/api/queries/warehouse/{query_id}").status_code == 404

    def test_grouped_by_source(self, client):
        client.post("/api/queries/warehouse", json={"name": "a", "sql": "SELECT 1"})
        client.post("/api/queries/analytics", json={"name": "b", "sql": "SELECT 2"})

        grouped = client.get("/api/queries/").json()
        assert set(grouped) == {"warehouse", "analytics"}
        assert grouped["analytics"][0]["name"] == "b"

    def test_invalid_sql_is_rejected(self, client):
        response = client.post("/api/queries/warehouse", json={"name": "bad", "sql": "DROP TABLE orders"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Query must start with SELECT"

    def test_name_is_required(self, client):
        response = client.post("/api/queries/warehouse", json={"name": "", "sql": "SELECT 1"})
        assert response.status_code == 422

    def test_query_is_scoped_to_its_source(self, client):
        query_id = client.post("/api/queries/warehouse", json={"name": "a", "sql": "SELECT 1"}).json()["id"]

        assert client.get(f"/api/queries/analytics/{query_id}").status_code == 404
        assert client.delete(f"/api/queries/analytics/{query_id}").status_code == 404
        assert client.get(f"/api/queries/warehouse/{query_id}").status_code == 200

    def test_missing_query(self, client):
        assert client.patch("/api/queries/warehouse/999", json={"name": "x"}).status_code == 404
