"""Unit tests for the aicalendar.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from aicalendar import runtime

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def health_only_client(clean_env: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a runtime app with no database configured."""
    return falcon.testing.TestClient(runtime.create_app())


class TestHealthOnlyRuntime:
    """Runtime behaviour without AICAL_DATABASE_URL."""

    def test_returns_falcon_app(self, clean_env: pytest.MonkeyPatch) -> None:
        """create_app returns a Falcon ASGI App instance."""
        assert isinstance(runtime.create_app(), falcon.asgi.App)

    def test_health_returns_ok(
        self, health_only_client: falcon.testing.TestClient
    ) -> None:
        """GET /health returns JSON with status ok."""
        result = health_only_client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ok"}
        content_type = result.headers.get("content-type", "")
        assert content_type.startswith("application/json")

    def test_ingest_not_registered(
        self, health_only_client: falcon.testing.TestClient
    ) -> None:
        """The trigger needs a database."""
        result = health_only_client.simulate_post("/ingest")
        assert result.status_code == HTTPStatus.NOT_FOUND


class TestDatabaseRuntime:
    """Runtime behaviour with AICAL_DATABASE_URL set."""

    def test_ingest_runs_against_database(
        self, clean_env: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A run with every source disabled creates tables and reports zeros."""
        sources = tmp_path / "sources.yaml"
        sources.write_text("luma: []\nmeetup: []\naic: null\n", encoding="utf-8")
        clean_env.setenv(
            "AICAL_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cal.db'}"
        )
        clean_env.setenv("AICAL_SOURCES_PATH", str(sources))
        clean_env.setenv("AICAL_CRON_SECRET", "s3cret")

        client = falcon.testing.TestClient(runtime.create_app())
        denied = client.simulate_post("/ingest")
        result = client.simulate_post(
            "/ingest", headers={"Authorization": "Bearer s3cret"}
        )

        assert denied.status_code == HTTPStatus.UNAUTHORIZED
        assert result.status_code == HTTPStatus.OK
        assert result.json["stats"] == {
            "inserted": 0,
            "updated": 0,
            "skipped": 0,
            "errors": [],
        }


class TestParsePort:
    """Validation of AICAL_PORT."""

    @pytest.mark.parametrize("value", ["1", "8080", "65535"])
    def test_valid_ports(self, value: str) -> None:
        """In-range integers are accepted."""
        assert runtime._parse_port(value) == int(value)  # noqa: SLF001

    @pytest.mark.parametrize("value", ["0", "65536", "http", ""])
    def test_invalid_ports_exit(self, value: str) -> None:
        """Anything else exits with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            runtime._parse_port(value)  # noqa: SLF001
        assert excinfo.value.code == 1


class _FakeGranian:
    """Records Granian construction instead of serving."""

    instances: typ.ClassVar[list[_FakeGranian]] = []

    def __init__(self, target: str, **kwargs: object) -> None:
        self.target = target
        self.kwargs = kwargs
        self.served = False
        _FakeGranian.instances.append(self)

    def serve(self) -> None:
        self.served = True


def test_main_serves_factory(clean_env: pytest.MonkeyPatch) -> None:
    """main() hands the app factory to Granian with env-driven bind settings."""
    clean_env.setenv("AICAL_HOST", "127.0.0.1")
    clean_env.setenv("AICAL_PORT", "9090")
    clean_env.setenv("AICAL_LOG_LEVEL", "debug")
    clean_env.setattr("granian.Granian", _FakeGranian)
    clean_env.setattr(runtime, "configure_logging", lambda level: (level, False))
    _FakeGranian.instances.clear()

    runtime.main()

    (server,) = _FakeGranian.instances
    assert server.target == "aicalendar.runtime:create_app"
    assert server.kwargs["address"] == "127.0.0.1"
    assert server.kwargs["port"] == 9090
    assert server.kwargs["factory"] is True
    assert server.served
