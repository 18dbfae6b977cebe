"""
Functional tests for request logging and the log endpoints.
"""


class TestLogsApi:
    def test_requests_appear_in_logs(self, client):
        client.get("/api/query-builder/data-sources")
        client.get("/api/query-builder/nope/schema")

        response = client.get("/api/logs/")
        assert response.status_code == 200
        logs = response.json()
        paths = [log["path"] for log in logs]
        assert "/api/query-builder/data-sources" in paths
        assert "/api/query-builder/nope/schema" in paths
        # reading the logs is not itself logged
        assert not any(path.startswith("/api/logs") for path in paths)

    def test_status_filter(self, client):
        client.get("/api/query-builder/data-sources")
        client.get("/api/query-builder/nope/schema")

        logs = client.get("/api/logs/", params={"status_min": 400}).json()
        assert [log["status_code"] for log in logs] == [404]

    def test_invalid_status_range(self, client):
        response = client.get("/api/logs/", params={"status_min": 500, "status_max": 400})
        assert response.status_code == 400

    def test_single_log(self, client):
        client.get("/api/query-builder/data-sources")
        log_id = client.get("/api/logs/").json()[0]["id"]

        assert client.get(f"/api/logs/{log_id}").json()["id"] == log_id
        assert client.get("/api/logs/999999").status_code == 404
