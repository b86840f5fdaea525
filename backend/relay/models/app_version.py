"""AppVersion model - latest client release per platform."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from ..database import Base
from ..utils.clock import utcnow


class AppVersion(Base):
    """Singleton release record per platform key (e.g. "android").

    Written by the release process; read-only to the relay.
    """

    __tablename__ = "app_versions"

    platform = Column(String, primary_key=True)
    latest_version = Column(String, nullable=False)
    version_code = Column(Integer, nullable=False)
    download_url = Column(String, nullable=False)
    release_notes = Column(Text, nullable=True)
    mandatory = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
