"""Fixtures for integration tests against a real PostgreSQL container."""

from __future__ import annotations

import os
import shutil
import subprocess

import pytest

from pgfluent import ConnectionSettings, Database, connect


# ---------------------------------------------------------------------------
# Container runtime (Docker, else Podman)
# ---------------------------------------------------------------------------

_PROBE_ERRORS = (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError)


def _run(*cmd: str, timeout: float = 10) -> str | None:
    """Run a runtime CLI command; return its stdout, or None if it fails."""
    try:
        done = subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=timeout)
    except _PROBE_ERRORS:
        return None
    return done.stdout


def _detect_runtime() -> str | None:
    return next(
        (cmd for cmd in ("docker", "podman") if shutil.which(cmd) and _run(cmd, "info") is not None),
        None,
    )


def _point_testcontainers_at_podman() -> None:
    # the resource reaper does not run reliably under Podman
    os.environ.setdefault("TESTCONTAINERS_RYUK_DISABLED", "true")
    if "DOCKER_HOST" in os.environ:
        return
    out = _run(
        "podman", "machine", "inspect", "--format", "{{.ConnectionInfo.PodmanSocket.Path}}",
        timeout=5,
    )
    socket_path = (out or "").strip()
    if socket_path and os.path.exists(socket_path):
        os.environ["DOCKER_HOST"] = f"unix://{socket_path}"


CONTAINER_RUNTIME = _detect_runtime()

if CONTAINER_RUNTIME == "podman":
    _point_testcontainers_at_podman()


APP_DDL = """
    CREATE TABLE IF NOT EXISTS app (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        address TEXT NOT NULL DEFAULT '',
        created_date TIMESTAMPTZ NOT NULL,
        changed_date TIMESTAMPTZ NOT NULL,
        deleted_date TIMESTAMPTZ,
        is_first BOOLEAN NOT NULL DEFAULT FALSE,
        visits INTEGER NOT NULL DEFAULT 0,
        score DOUBLE PRECISION NOT NULL DEFAULT 0
    )
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def pg_container():
    if CONTAINER_RUNTIME is None:
        pytest.skip("No container runtime (Docker/Podman) available")
    from testcontainers.postgres import PostgresContainer
    with PostgresContainer("postgres:16") as pg:
        yield pg


@pytest.fixture(scope="session")
def pg_settings(pg_container) -> ConnectionSettings:
    return ConnectionSettings(
        _env_file=None,
        host=pg_container.get_container_host_ip(),
        port=int(pg_container.get_exposed_port(5432)),
        user=pg_container.username,
        password=pg_container.password,
        dbname=pg_container.dbname,
        pool_max_size=4,
    )


@pytest.fixture(scope="session")
def session_db(pg_settings):
    database = connect(pg_settings, retries=5, interval=1.0)
    with database.pool.connection() as conn:
        conn.execute(APP_DDL)
    yield database
    database.close()


@pytest.fixture
def pg(session_db) -> Database:
    with session_db.pool.connection() as conn:
        conn.execute("TRUNCATE app RESTART IDENTITY")
    return session_db
