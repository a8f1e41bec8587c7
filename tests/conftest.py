"""Pytest configuration and fixtures."""

import os
import stat
import sys

# Must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_MIGRATE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models.transcript import Segment, Transcript  # noqa: F401

DOWNLOADER_SCRIPT = """\
import sys
sys.stdout.buffer.write(bytes.fromhex({payload!r}))
sys.stdout.buffer.flush()
sys.stderr.write("downloader done\\n")
sys.exit({exit_code})
"""

DECODER_SCRIPT = """\
import sys
data = sys.stdin.buffer.read()
sys.stdout.buffer.write(data)
sys.stdout.buffer.flush()
if {exit_code}:
    sys.stderr.write("Invalid data found when processing input\\n")
sys.exit({exit_code})
"""


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="client")
def client_fixture(db_session: Session):
    """Create a test client with overridden DB dependency."""
    from app import commands
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Point command sessions at the test DB session
    commands._session_factory = lambda: db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    commands._session_factory = None


@pytest.fixture(name="make_tool")
def make_tool_fixture(tmp_path):
    """Factory writing an executable stand-in for yt-dlp or ffmpeg."""

    def _make(name: str, source: str) -> str:
        path = tmp_path / name
        path.write_text(f"#!{sys.executable}\n{source}")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture(name="fake_tools")
def fake_tools_fixture(make_tool):
    """Build (downloader, decoder) stand-ins honoring the PCM byte contract."""

    def _build(payload: bytes, downloader_exit: int = 0, decoder_exit: int = 0) -> tuple[str, str]:
        downloader = make_tool(
            f"yt-dlp-{downloader_exit}-{decoder_exit}",
            DOWNLOADER_SCRIPT.format(payload=payload.hex(), exit_code=downloader_exit),
        )
        decoder = make_tool(
            f"ffmpeg-{downloader_exit}-{decoder_exit}",
            DECODER_SCRIPT.format(exit_code=decoder_exit),
        )
        return downloader, decoder

    return _build
