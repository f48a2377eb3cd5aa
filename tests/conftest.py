"""Shared fixtures: an in-process fake palace server and wired clients."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from palsync.config import ClientConfiguration, ConfigurationAccountStore
from palsync.core import RemoteApi, SessionManager
from palsync.transport import ChannelManager


USER_AGENT = "PalacePal/1.0"


@dataclass
class RecordedRequest:
    """One request as seen by the fake server."""

    method: str
    path: str
    headers: Dict[str, str]
    body: Optional[Dict[str, Any]] = None

    @property
    def rpc_method(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass
class FakePalaceServer:
    """Account and palace services backed by in-memory state."""

    endpoint: str = ""
    requests: List[RecordedRequest] = field(default_factory=list)
    known_accounts: Set[str] = field(default_factory=set)
    tokens: Set[str] = field(default_factory=set)
    markers: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)

    # Behaviour switches
    create_account_success: bool = True
    create_account_id: Optional[str] = None
    reject_all_logins_as_invalid: bool = False
    login_error: Optional[int] = None
    login_delay: float = 0.0
    token_lifetime: timedelta = timedelta(hours=1)
    expires_at: Optional[datetime] = None
    upload_success: bool = True
    status_overrides: Dict[str, int] = field(default_factory=dict)
    error_bodies: Dict[str, bytes] = field(default_factory=dict)
    malformed: Set[str] = field(default_factory=set)

    def count(self, rpc_method: str) -> int:
        return sum(1 for r in self.requests if r.rpc_method == rpc_method)

    def rpc_requests(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == "POST"]

    def make_app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get("/", self.root)
        app.router.add_post("/account.AccountService/CreateAccount", self.create_account)
        app.router.add_post("/account.AccountService/Login", self.login)
        app.router.add_post("/account.AccountService/Verify", self.verify)
        app.router.add_post("/palace.PalaceService/DownloadFloors", self.download_floors)
        app.router.add_post("/palace.PalaceService/UploadFloors", self.upload_floors)
        app.router.add_post("/palace.PalaceService/FetchStatistics", self.fetch_statistics)
        return app

    @web.middleware
    async def _record(self, request: web.Request, handler):
        body = None
        if request.method == "POST" and request.can_read_body:
            body = json.loads(await request.text())
        recorded = RecordedRequest(request.method, request.path, dict(request.headers), body)
        self.requests.append(recorded)

        name = recorded.rpc_method
        if name in self.status_overrides:
            body = self.error_bodies.get(name, b"injected failure")
            return web.Response(status=self.status_overrides[name], body=body)
        if name in self.malformed:
            return web.Response(text="this is not json")
        return await handler(request)

    def _authorized(self, request: web.Request) -> bool:
        header = request.headers.get("Authorization", "")
        return header.startswith("Bearer ") and header[len("Bearer "):] in self.tokens

    async def root(self, request: web.Request) -> web.Response:
        return web.Response(text="palace")

    async def create_account(self, request: web.Request) -> web.Response:
        if not self.create_account_success:
            return web.json_response({"success": False})
        account_id = self.create_account_id or str(uuid4())
        self.known_accounts.add(account_id)
        return web.json_response({"success": True, "accountId": account_id})

    async def login(self, request: web.Request) -> web.Response:
        if self.login_delay:
            await asyncio.sleep(self.login_delay)
        body = await request.json()
        account_id = body.get("accountId")

        if self.reject_all_logins_as_invalid or account_id not in self.known_accounts:
            return web.json_response({"success": False, "error": 1})
        if self.login_error is not None:
            return web.json_response({"success": False, "error": self.login_error})

        token = f"token-{len(self.tokens) + 1}"
        self.tokens.add(token)
        expires_at = self.expires_at or datetime.now(timezone.utc) + self.token_lifetime
        return web.json_response({
            "success": True,
            "authToken": token,
            "expiresAt": expires_at.isoformat()
        })

    async def verify(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="unauthenticated")
        return web.json_response({})

    async def download_floors(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="unauthenticated")
        body = await request.json()
        objects = self.markers.get(body["territoryType"], [])
        return web.json_response({"success": True, "objects": objects})

    async def upload_floors(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="unauthenticated")
        if not self.upload_success:
            return web.json_response({"success": False})
        body = await request.json()
        self.markers.setdefault(body["territoryType"], []).extend(body["objects"])
        return web.json_response({"success": True})

    async def fetch_statistics(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="unauthenticated")
        statistics = []
        for territory_type, objects in sorted(self.markers.items()):
            statistics.append({
                "territoryType": territory_type,
                "trapCount": sum(1 for o in objects if o["type"] == 1),
                "hoardCount": sum(1 for o in objects if o["type"] == 2),
            })
        return web.json_response({"success": True, "floorStatistics": statistics})


@pytest_asyncio.fixture
async def fake_server():
    """Start a fake palace server on a free local port."""
    server = FakePalaceServer()
    test_server = TestServer(server.make_app())
    await test_server.start_server()
    server.endpoint = str(test_server.make_url("/")).rstrip("/")

    yield server

    await test_server.close()


@pytest.fixture
def configuration(tmp_path) -> ClientConfiguration:
    """Client configuration persisted in a temporary directory."""
    return ClientConfiguration.load(tmp_path / "palsync.json")


def make_session_manager(endpoint: str, configuration: ClientConfiguration, **kwargs) -> SessionManager:
    return SessionManager(
        channels=ChannelManager(endpoint, connect_timeout=2.0),
        accounts=ConfigurationAccountStore(configuration),
        configuration=configuration,
        user_agent=USER_AGENT,
        **kwargs
    )


@pytest_asyncio.fixture
async def session_manager(fake_server, configuration):
    manager = make_session_manager(fake_server.endpoint, configuration)
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def remote_api(session_manager):
    api = RemoteApi(session_manager)
    yield api
    await api.close()


@pytest_asyncio.fixture
async def session_manager_factory(configuration):
    """Build extra session managers sharing the test configuration."""
    managers = []

    def factory(endpoint: str, **kwargs) -> SessionManager:
        manager = make_session_manager(endpoint, configuration, **kwargs)
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        await manager.close()
