"""Bearer-token verification and the identity directory.

Tokens are issued by the authentication subsystem. Every authenticated
operation acts on the identity in the verified token and never on an id the
caller supplies.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import Settings
from .errors import Unauthenticated
from .models import Identity
from .utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """Identity taken from a verified bearer token."""
    uid: str
    email: Optional[str]
    email_verified: bool


class IdentityDirectory:
    """Access to the authentication subsystem's account records."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, uid: str) -> Optional[Identity]:
        async with self._session_factory() as session:
            result = await session.execute(select(Identity).where(Identity.id == uid))
            return result.scalar_one_or_none()

    async def delete(self, uid: str) -> bool:
        """Delete an account so it can no longer authenticate.

        Returns False if the account was already gone.
        """
        async with self._session_factory() as session:
            result = await session.execute(delete(Identity).where(Identity.id == uid))
            await retry_on_lock(session.commit)
            return result.rowcount > 0


class IdentityVerifier:
    """Verifies bearer tokens against the signing secret and the directory."""

    def __init__(self, settings: Settings, directory: IdentityDirectory):
        self._secret = settings.auth_token_secret
        self._algorithm = settings.auth_token_algorithm
        self._audience = settings.auth_token_audience
        self._directory = directory

    async def verify(self, token: Optional[str]) -> Caller:
        if not token:
            raise Unauthenticated("User must be authenticated")
        if not self._secret:
            logger.error("AUTH_TOKEN_SECRET not configured - rejecting all bearer tokens")
            raise Unauthenticated("User must be authenticated")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except JWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            raise Unauthenticated("Invalid or expired credential")

        uid = claims.get("sub")
        if not uid:
            raise Unauthenticated("Credential has no subject")

        # Deleted accounts cannot authenticate even with an unexpired token
        if await self._directory.get(uid) is None:
            raise Unauthenticated("Account no longer exists")

        return Caller(
            uid=uid,
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
        )


async def get_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Caller:
    """Dependency resolving the authenticated caller."""
    token = credentials.credentials if credentials else None
    return await request.app.state.context.identity_verifier.verify(token)
