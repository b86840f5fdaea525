"""Identity model - account records owned by the authentication subsystem."""
from sqlalchemy import Boolean, Column, DateTime, String

from ..database import Base
from ..utils.clock import utcnow


class Identity(Base):
    """An authentication account.

    Written by the authentication subsystem. The core only reads it to verify
    bearer tokens and deletes it when a sign-up fails the domain policy, which
    blocks any later sign-in.
    """

    __tablename__ = "identities"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True, index=True)
    email_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
