"""Process-wide handles, built once at startup and passed to every handler."""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .auth import IdentityDirectory, IdentityVerifier
from .config import Settings
from .database import create_engine, create_session_factory
from .services.push_sender import FcmPushProvider, PushProvider


@dataclass
class RelayContext:
    """Store, push provider and identity handles shared by all handlers."""
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    push_provider: PushProvider
    identity_directory: IdentityDirectory
    identity_verifier: IdentityVerifier


def build_context(
    settings: Settings,
    push_provider: Optional[PushProvider] = None,
) -> RelayContext:
    """Construct the handles for this process."""
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    directory = IdentityDirectory(session_factory)

    return RelayContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        push_provider=push_provider or FcmPushProvider.from_settings(settings),
        identity_directory=directory,
        identity_verifier=IdentityVerifier(settings, directory),
    )
