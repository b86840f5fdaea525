# tests/conftest.py - Shared test fixtures
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from relay.config import Settings
from relay.database import init_db
from relay.main import create_app
from relay.models import Device, Identity, User
from relay.services.push_sender import MulticastMessage, MulticastResult, SendResponse
from relay.utils.clock import utcnow

TOKEN_SECRET = "test-secret-key-for-unit-tests-only-min-32-chars"
HOOK_SECRET = "test-hook-secret"
ALLOWED_DOMAIN = "@tigongolfcarts.com"


class FakePushProvider:
    """Records multicast calls instead of talking to FCM."""

    def __init__(self):
        self.enabled = True
        self.calls: list[MulticastMessage] = []
        self.failing_tokens: set[str] = set()
        self.raise_error: Exception | None = None
        self.closed = False

    async def send_multicast(self, message: MulticastMessage) -> MulticastResult:
        self.calls.append(message)
        if self.raise_error:
            raise self.raise_error
        return MulticastResult(responses=[
            SendResponse(
                token=token,
                success=token not in self.failing_tokens,
                error="NotRegistered" if token in self.failing_tokens else None,
            )
            for token in message.tokens
        ])

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_path=str(tmp_path),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        allowed_email_domain=ALLOWED_DOMAIN,
        auth_token_secret=TOKEN_SECRET,
        hook_secret=HOOK_SECRET,
        scheduler_enabled=False,
        event_max_attempts=3,
        event_retry_base_delay=0,
    )


@pytest.fixture
def push_provider():
    return FakePushProvider()


@pytest_asyncio.fixture
async def app(settings, push_provider):
    app = create_app(settings, push_provider=push_provider)
    await init_db(app.state.context.engine, settings)
    yield app
    await app.state.events.drain()
    await app.state.context.engine.dispose()


@pytest.fixture
def ctx(app):
    return app.state.context


@pytest.fixture
def events(app):
    return app.state.events


@pytest_asyncio.fixture
async def client(app):
    """HTTP test client against the app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_token(uid: str, email: str | None, email_verified: bool = True, expires_in: int = 3600) -> str:
    claims = {
        "sub": uid,
        "email": email,
        "email_verified": email_verified,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, TOKEN_SECRET, algorithm="HS256")


def auth_headers(uid: str, email: str | None = None, email_verified: bool = True) -> dict:
    token = make_token(uid, email or f"{uid}{ALLOWED_DOMAIN}", email_verified)
    return {"Authorization": f"Bearer {token}"}


async def create_identity(ctx, uid: str, email: str | None, email_verified: bool = False) -> None:
    """Seed an account record the way the authentication subsystem would."""
    async with ctx.session_factory() as session:
        session.add(Identity(id=uid, email=email, email_verified=email_verified))
        await session.commit()


async def create_account(ctx, uid: str | None = None, email: str | None = None, with_profile: bool = True) -> str:
    """Identity plus (optionally) its User profile."""
    uid = uid or uuid.uuid4().hex
    email = email or f"{uid}{ALLOWED_DOMAIN}"
    await create_identity(ctx, uid, email, email_verified=True)
    if with_profile:
        async with ctx.session_factory() as session:
            now = utcnow()
            session.add(User(id=uid, email=email, email_verified=True, created_at=now, last_login=now))
            await session.commit()
    return uid


async def add_device(ctx, owner_id: str, device_type: str = "master", is_active: bool = True,
                     push_token: str | None = "token", device_name: str = "Phone") -> Device:
    device = Device(
        id=uuid.uuid4().hex,
        owner_id=owner_id,
        device_name=device_name,
        device_type=device_type,
        is_active=is_active,
        push_token=push_token,
        last_active=utcnow(),
    )
    async with ctx.session_factory() as session:
        session.add(device)
        await session.commit()
    return device


@pytest_asyncio.fixture
async def owner(ctx):
    return await create_account(ctx)


@pytest_asyncio.fixture
async def other_owner(ctx):
    return await create_account(ctx)
