"""User model - profile provisioned for accounts that pass the domain policy."""
from sqlalchemy import Boolean, Column, DateTime, String

from ..database import Base
from ..utils.clock import utcnow

USER_ROLE = "user"


class User(Base):
    """Account profile, keyed by the identity id."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    last_login = Column(DateTime, default=utcnow)
    role = Column(String, default=USER_ROLE, nullable=False)
