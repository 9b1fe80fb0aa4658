"""
Pytest configuration and shared fixtures.
"""

import json
from typing import Any, Dict
from urllib.parse import unquote

import pytest
import requests

from dkronjob.config import ProviderConfig
from dkronjob.logger import get_logger, reset_logger

BASE_URL = "http://dkron.test/v1"


def make_response(status: int, text: str) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = text.encode("utf-8")
    resp.encoding = "utf-8"
    return resp


class FakeDkron:
    """In-memory Dkron server behind a requests.Session-shaped object."""

    def __init__(self, base: str = BASE_URL):
        self.base = base
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.calls = []
        self.fail = {}
        self.raise_on = {}

    def fail_next(self, method: str, path: str, status: int, body: str) -> None:
        self.fail[(method, path)] = (status, body)

    def request(self, method, url, **kwargs):
        assert url.startswith(self.base), url
        path = url[len(self.base):]
        body = kwargs.get("json")
        self.calls.append((method, path, body))

        if method in self.raise_on:
            raise self.raise_on[method]
        if (method, path) in self.fail:
            status, text = self.fail.pop((method, path))
            return make_response(status, text)

        if method == "POST" and path == "/jobs":
            self.jobs[body["name"]] = dict(body)
            return make_response(201, json.dumps(body))

        name = unquote(path[len("/jobs/"):])
        if method == "GET":
            if name not in self.jobs:
                return make_response(404, "Job not found")
            job = {
                "success_count": 3,
                "error_count": 0,
                "dependent_jobs": None,
                "next": "2026-10-20T00:00:00Z",
                **self.jobs[name],
            }
            return make_response(200, json.dumps(job))
        if method == "DELETE":
            if name not in self.jobs:
                return make_response(404, "Job not found")
            return make_response(200, json.dumps(self.jobs.pop(name)))
        return make_response(405, "Method not allowed")

    def methods(self):
        return [(method, path) for method, path, _ in self.calls]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh, console-free logger for every test."""
    reset_logger()
    get_logger(enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def fake_dkron() -> FakeDkron:
    return FakeDkron()


@pytest.fixture
def meta(fake_dkron) -> ProviderConfig:
    return ProviderConfig(host=BASE_URL, timeout=5, session=fake_dkron)


@pytest.fixture
def job_config() -> Dict[str, Any]:
    """A fully populated dkron_job block."""
    return {
        "name": "nightly-backup",
        "displayname": "Nightly backup",
        "timezone": "Europe/Berlin",
        "schedule": "@daily",
        "owner": "ops",
        "owner_email": "ops@example.com",
        "disabled": False,
        "tags": {"role": "db:1"},
        "retries": 2,
        "concurrency": "forbid",
        "executor": "shell",
        "executor_config": {"command": "/usr/local/bin/backup.sh"},
        "metadata": {"team": "platform"},
        "processors": [
            {"type": "files", "forward": "", "log_dir": "/var/log/dkron"},
            {"type": "log", "forward": "true", "log_dir": ""},
        ],
    }


@pytest.fixture
def minimal_job_config() -> Dict[str, Any]:
    return {
        "name": "ping",
        "schedule": "@every 1m",
        "executor": "http",
    }
