import base64
import datetime as dt
import hashlib
import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from campus_sdk.config import Settings
from campus_sdk.core.bootstrap import ensure_demo_users
from campus_sdk.core.remote import RemoteObjectBackend
from campus_sdk.core.sdk import build_sdk
from campus_sdk.main import app
from campus_sdk.services.notifier import ResetNotifier


OWNER = "acme"
REPO = "campus-db"
DEMO_PASSWORD = "password123"


class FakeContentsAPI:
    """
    In-memory stand-in for the GitHub repository contents API.
    Serves GET/PUT on /repos/{owner}/{repo}/contents/{path} and
    GET on /git/blobs/{sha}, with the same sha-based compare-and-swap.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.requests: list[tuple[str, str]] = []
        self.fail_with: list[int] = []  # statuses answered (in order) before serving normally
        self.fail_headers: dict[str, str] = {}
        self.raise_errors: list[Exception] = []  # transport errors raised before serving
        self.before_put = None  # callable(api, path), e.g. to simulate another writer
        self.inline_limit = 1024 * 1024  # larger files are served without inline content
        self.last_put: dict | None = None

    @staticmethod
    def sha_of(raw: bytes) -> str:
        return hashlib.sha1(raw).hexdigest()

    def seed(self, path: str, records: list) -> None:
        self.files[path] = json.dumps(records).encode("utf-8")

    def records(self, path: str) -> list:
        return json.loads(self.files[path]) if path in self.files else []

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.requests if m == method)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if self.raise_errors:
            raise self.raise_errors.pop(0)
        if self.fail_with:
            return httpx.Response(self.fail_with.pop(0), headers=self.fail_headers,
                                  json={"message": "simulated failure"})

        prefix = f"/repos/{OWNER}/{REPO}/"
        if not request.url.path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        rest = request.url.path[len(prefix):]

        if rest.startswith("git/blobs/"):
            sha = rest.rsplit("/", 1)[1]
            for raw in self.files.values():
                if self.sha_of(raw) == sha:
                    return httpx.Response(200, json={
                        "sha": sha, "encoding": "base64", "content": base64.b64encode(raw).decode(),
                    })
            return httpx.Response(404, json={"message": "Not Found"})

        path = rest[len("contents/"):]
        if request.method == "GET":
            raw = self.files.get(path)
            if raw is None:
                return httpx.Response(404, json={"message": "Not Found"})
            body = {"type": "file", "path": path, "sha": self.sha_of(raw), "size": len(raw)}
            if len(raw) > self.inline_limit:
                body.update(encoding="none", content="")
            else:
                # GitHub wraps base64 content at 60-76 columns
                body.update(encoding="base64", content=base64.encodebytes(raw).decode())
            return httpx.Response(200, json=body)

        if request.method == "PUT":
            payload = json.loads(request.content)
            if self.before_put is not None:
                self.before_put(self, path)
            current = self.files.get(path)
            supplied = payload.get("sha")
            if current is None and supplied:
                return httpx.Response(409, json={"message": f"{path} does not exist"})
            if current is not None and supplied != self.sha_of(current):
                status = 422 if supplied is None else 409
                return httpx.Response(status, json={"message": f"{path} does not match {supplied}"})
            raw = base64.b64decode(payload["content"])
            self.files[path] = raw
            self.last_put = payload
            return httpx.Response(201 if current is None else 200, json={
                "content": {"path": path, "sha": self.sha_of(raw)},
                "commit": {"message": payload["message"]},
            })

        return httpx.Response(405, json={"message": "Method Not Allowed"})


class RecordingNotifier(ResetNotifier):
    """Keeps every passcode instead of delivering it."""

    def __init__(self):
        self.sent: list[dict] = []

    @property
    def name(self) -> str:
        return "recording"

    async def send_otp(self, email, otp, purpose, expires_at):
        self.sent.append({"email": email, "otp": otp, "purpose": purpose, "expires_at": expires_at})

    def last_otp(self, email: str, purpose: str = "password_reset") -> str:
        for item in reversed(self.sent):
            if item["email"] == email and item["purpose"] == purpose:
                return item["otp"]
        raise AssertionError(f"no {purpose} passcode sent to {email}")


class FakeClock:
    """Controllable UTC clock for sessions and passcodes."""

    def __init__(self):
        self.now = dt.datetime(2025, 1, 1, 12, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += dt.timedelta(**delta)


@pytest.fixture
def fake_api():
    return FakeContentsAPI()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    return Settings(
        remote_owner=OWNER,
        remote_repo=REPO,
        remote_token="test-token",
        data_dir="data",
        cache_ttl_seconds=30,
        max_commit_retries=3,
        max_remote_retries=2,
        retry_backoff_seconds=0,
        session_ttl_minutes=60,
        otp_ttl_minutes=10,
        seed_demo_users=False,
        enable_extended_collections=False,
    )


@pytest_asyncio.fixture
async def backend_factory(fake_api):
    """
    Build RemoteObjectBackends talking to the fake API; keyword arguments
    override the fast test defaults (no backoff, short retry budgets).
    """
    created = []

    def _make(**overrides) -> RemoteObjectBackend:
        options = dict(
            cache_ttl=30,
            max_commit_retries=2,
            max_remote_retries=2,
            backoff=0,
            transport=httpx.MockTransport(fake_api.handler),
        )
        options.update(overrides)
        backend = RemoteObjectBackend(OWNER, REPO, "test-token", **options)
        created.append(backend)
        return backend

    yield _make
    for backend in created:
        await backend.aclose()


@pytest_asyncio.fixture
async def sdk(fake_api, test_settings, notifier, clock):
    """
    Fully wired SDK whose remote API is the in-memory fake.
    """
    instance = build_sdk(
        test_settings,
        notifier=notifier,
        transport=httpx.MockTransport(fake_api.handler),
        clock=clock,
    )
    yield instance
    await instance.aclose()


@pytest_asyncio.fixture
async def demo_users(sdk):
    """Seed the demo accounts (student/instructor/admin @demo.com)."""
    await ensure_demo_users(sdk.auth, DEMO_PASSWORD)
    return sdk


@pytest_asyncio.fixture
async def client(sdk):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh SDK.
    """
    app.state.sdk = sdk
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.state.sdk = None


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str = DEMO_PASSWORD) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
