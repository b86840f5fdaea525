"""Device model - master and worker devices registered to an account."""
from sqlalchemy import Boolean, Column, DateTime, String

from ..database import Base
from ..utils.clock import utcnow

DEVICE_TYPE_MASTER = "master"
DEVICE_TYPE_WORKER = "worker"
DEVICE_TYPES = (DEVICE_TYPE_MASTER, DEVICE_TYPE_WORKER)


class Device(Base):
    """A client device owned by a user.

    is_active is a heartbeat flag maintained by the device's own client app;
    nothing on the server derives or clears it.
    """

    __tablename__ = "devices"

    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)  # users.id, not enforced
    device_name = Column(String, nullable=False)
    device_type = Column(String, nullable=False)  # master, worker
    is_active = Column(Boolean, default=False, nullable=False)
    last_active = Column(DateTime, default=utcnow)
    push_token = Column(String, nullable=True)
    app_version = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
