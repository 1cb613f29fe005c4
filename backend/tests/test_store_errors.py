"""
Test how datastore failures surface to callers.
"""

from sqlalchemy.exc import OperationalError, ProgrammingError


def _locked():
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestStoreFailures:
    def test_unavailable_store_is_503(self, client, failing_store):
        failing_store(_locked())

        response = client.get("/events")

        assert response.status_code == 503
        assert response.json() == {
            "error": "Internal server error",
            "code": "STORE_UNAVAILABLE",
            "details": None,
        }

    def test_other_store_failures_are_500(self, client, failing_store):
        failing_store(ProgrammingError("SELECT 1", {}, Exception("no such table: events")))

        response = client.get("/events")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert body["code"] == "STORE_ERROR"
        assert body["details"] is None

    def test_details_only_in_dev(self, client, failing_store, restore_settings):
        restore_settings.ENV = "dev"
        failing_store(_locked())

        details = client.get("/events").json()["details"]

        assert details["type"] == "OperationalError"
        assert "database is locked" in details["message"]

    def test_failed_ingest_rolls_back(self, client, failing_store):
        sessions = failing_store(_locked())

        response = client.post("/events", json={"message": "boom", "userId": "u1"})

        assert response.status_code == 503
        assert response.json()["error"] == "Internal server error"
        assert sessions[-1].rolled_back

    def test_failure_while_resolving_session(self, client, failing_store, auth_header):
        failing_store(_locked())

        response = client.delete("/events/some-id", headers=auth_header("any-token"))

        assert response.status_code == 503
        assert response.json()["details"] is None
