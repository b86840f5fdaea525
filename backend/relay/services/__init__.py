"""Services for identity gating, device registry, fan-out and retention."""
from .push_sender import FcmPushProvider, MulticastMessage, MulticastResult, PushProvider
from .scheduler import SchedulerService

__all__ = ["FcmPushProvider", "MulticastMessage", "MulticastResult", "PushProvider", "SchedulerService"]
