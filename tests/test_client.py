"""
Tests for the Dkron REST client.
"""

import pytest
import requests

from dkronjob.client import (
    DkronAPIError,
    DkronClient,
    DkronDecodeError,
    DkronTransportError,
)
from dkronjob.logger import get_logger

from conftest import BASE_URL, make_response


@pytest.fixture
def client(fake_dkron):
    return DkronClient(BASE_URL + "/", timeout=5, session=fake_dkron)


class TestRequests:
    def test_create_posts_body(self, client, fake_dkron):
        resp = client.create_or_update_job({"name": "ping", "schedule": "@hourly"})
        assert resp.status_code == 201
        assert fake_dkron.calls == [("POST", "/jobs", {"name": "ping", "schedule": "@hourly"})]

    def test_show_decodes_job(self, client, fake_dkron):
        fake_dkron.jobs["ping"] = {"name": "ping", "executor": "http"}
        data = client.show_job_by_name("ping")
        assert data["name"] == "ping"
        assert data["executor"] == "http"

    def test_delete(self, client, fake_dkron):
        fake_dkron.jobs["ping"] = {"name": "ping"}
        client.delete_job("ping")
        assert fake_dkron.jobs == {}
        assert fake_dkron.methods() == [("DELETE", "/jobs/ping")]

    def test_name_is_path_escaped(self, client, fake_dkron):
        fake_dkron.jobs["a b/c"] = {"name": "a b/c"}
        client.show_job_by_name("a b/c")
        assert fake_dkron.methods() == [("GET", "/jobs/a%20b%2Fc")]


class TestErrors:
    def test_non_2xx_surfaces_body(self, client):
        with pytest.raises(DkronAPIError) as exc:
            client.show_job_by_name("missing")
        assert exc.value.status_code == 404
        assert str(exc.value) == "Job not found"

    def test_empty_error_body_falls_back_to_status(self, client, fake_dkron):
        fake_dkron.fail_next("DELETE", "/jobs/ping", 502, "")
        with pytest.raises(DkronAPIError) as exc:
            client.delete_job("ping")
        assert str(exc.value) == "HTTP 502"
        assert exc.value.body == ""

    def test_create_rejected(self, client, fake_dkron):
        fake_dkron.fail_next("POST", "/jobs", 422, "schedule: invalid cron expression")
        with pytest.raises(DkronAPIError, match="invalid cron expression"):
            client.create_or_update_job({"name": "ping"})

    def test_connection_error(self, client, fake_dkron):
        fake_dkron.raise_on["GET"] = requests.exceptions.ConnectionError("refused")
        with pytest.raises(DkronTransportError, match="refused"):
            client.show_job_by_name("ping")

    def test_timeout(self, client, fake_dkron):
        fake_dkron.raise_on["DELETE"] = requests.exceptions.Timeout()
        with pytest.raises(DkronTransportError, match="timed out"):
            client.delete_job("ping")

    def test_single_attempt(self, client, fake_dkron):
        fake_dkron.fail_next("POST", "/jobs", 503, "unavailable")
        with pytest.raises(DkronAPIError):
            client.create_or_update_job({"name": "ping"})
        assert len(fake_dkron.calls) == 1

    def test_bad_json(self, client, fake_dkron, monkeypatch):
        monkeypatch.setattr(fake_dkron, "request", lambda *a, **k: make_response(200, "<html>"))
        with pytest.raises(DkronDecodeError):
            client.show_job_by_name("ping")

    def test_json_not_an_object(self, client, fake_dkron, monkeypatch):
        monkeypatch.setattr(fake_dkron, "request", lambda *a, **k: make_response(200, "[]"))
        with pytest.raises(DkronDecodeError, match="list"):
            client.show_job_by_name("ping")


class TestMetrics:
    def test_calls_are_counted(self, client, fake_dkron):
        fake_dkron.jobs["ping"] = {"name": "ping"}
        client.show_job_by_name("ping")
        with pytest.raises(DkronAPIError):
            client.show_job_by_name("nope")

        metrics = get_logger().get_metrics()
        assert metrics["api_calls"] == 2
        assert metrics["operations_successful"] == 1
        assert metrics["operations_failed"] == 1
        assert metrics["errors_by_type"] == {"HTTPError_404": 1}
        assert metrics["operation_success_rate"]["read"]["success_rate"] == 0.5
