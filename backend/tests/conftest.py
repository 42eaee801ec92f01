"""
Shared test fixtures.

Each test gets its own SQLite database file, so nothing depends on a
running PostgreSQL. Probe tests talk to real asyncio servers bound to
127.0.0.1 on ephemeral ports.
"""
import asyncio
import os
import socket
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Must be set before the app is imported
os.environ["SCHEDULER_ENABLED"] = "false"

from statuspulse import models  # noqa: F401,E402
from statuspulse.database import Base, configure_sqlite, get_db  # noqa: E402
from statuspulse.models import Service  # noqa: E402
from statuspulse.schemas.service import ServiceCreate  # noqa: E402
from statuspulse.services import registry  # noqa: E402


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch):
    """Keep httpx from routing loopback probes through an environment proxy."""
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)


# ── Database ─────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    configure_sqlite(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, sharing the test session."""
    from statuspulse.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_service(db_session: AsyncSession):
    """Create a service through the registry and return the stored row."""

    async def create(**fields) -> Service:
        fields.setdefault("name", "Test Service")
        fields.setdefault("domain", "http://127.0.0.1")
        service_id = await registry.create_service(db_session, ServiceCreate(**fields))
        return await registry.select_service(db_session, service_id)

    return create


# ── Network ──────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def http_server():
    """Start minimal HTTP servers: ``url = await http_server(status=200, body=b"ok")``.

    With ``hang=True`` the server accepts the request and never answers.
    """
    servers = []
    release = asyncio.Event()

    async def start(status: int = 200, body: bytes = b"ok", hang: bool = False) -> str:
        async def handle(reader, writer):
            try:
                request_head = await reader.readuntil(b"\r\n\r\n")
                for line in request_head.decode("latin-1").split("\r\n"):
                    name, _, value = line.partition(":")
                    if name.strip().lower() == "content-length":
                        await reader.readexactly(int(value))
                if hang:
                    await release.wait()
                    return
                head = (
                    f"HTTP/1.1 {status} Status\r\n"
                    f"Content-Length: {len(body)}\r\n"
                    "Content-Type: text/plain\r\n"
                    "Connection: close\r\n\r\n"
                )
                writer.write(head.encode() + body)
                await writer.drain()
            except (asyncio.IncompleteReadError, ConnectionError):
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        servers.append(server)
        port = server.sockets[0].getsockname()[1]
        return f"http://127.0.0.1:{port}"

    yield start

    release.set()
    for server in servers:
        server.close()
        await server.wait_closed()


@pytest_asyncio.fixture
async def tcp_port():
    """Port of a listening TCP server on 127.0.0.1."""

    async def handle(reader, writer):
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    yield server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
