"""Integration tests for the app factory and its optional hosted scheduler."""
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from crmsync.api.main import create_app
from crmsync.config import Settings
from crmsync.scheduler.jobs import JOB_ID


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestCreateApp:
    def test_routes_registered(self):
        paths = {route.path for route in create_app(make_settings()).routes}
        assert {"/contacts/", "/sync/contacts", "/sync/status", "/sync/history"} <= paths

    def test_no_scheduler_by_default(self, engine):
        app = create_app(make_settings(), engine=engine)
        with TestClient(app):
            assert app.state.scheduler is None


class TestHostedScheduler:
    def test_scheduler_runs_for_app_lifetime(self, engine):
        app = create_app(make_settings(api_runs_scheduler=True), engine=engine)

        with patch("crmsync.scheduler.jobs._scheduled_sync", new=AsyncMock()):
            with TestClient(app):
                scheduler = app.state.scheduler
                assert scheduler.state == "running"
                assert scheduler.scheduler.get_job(JOB_ID) is not None

        assert scheduler.state == "idle"
        assert scheduler.scheduler.get_jobs() == []

    def test_scheduled_runs_use_given_engine(self, engine):
        app = create_app(make_settings(api_runs_scheduler=True), engine=engine)

        with patch("crmsync.scheduler.jobs._scheduled_sync", new=AsyncMock()):
            with TestClient(app):
                job = app.state.scheduler.scheduler.get_job(JOB_ID)
                assert job.kwargs == {"engine": engine}
