"""Push notification sender using Firebase Cloud Messaging multicast."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from ..config import Settings
from ..errors import TransientProviderFailure

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "relay"


@dataclass
class MulticastMessage:
    """One push addressed to many device tokens."""
    tokens: List[str]
    title: str
    body: str
    data: dict = field(default_factory=dict)


@dataclass
class SendResponse:
    """Outcome for a single token within a multicast."""
    token: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class MulticastResult:
    """Aggregate outcome of a multicast call."""
    responses: List[SendResponse] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.responses if not r.success)


class PushProvider(Protocol):
    """Anything that can deliver a multicast push."""

    enabled: bool

    async def send_multicast(self, message: MulticastMessage) -> MulticastResult:
        ...

    async def close(self) -> None:
        ...


class FcmPushProvider:
    """Sends multicast pushes through the Firebase Admin SDK.

    Each message is a single ``send_each_for_multicast`` call carrying every
    token. Call-level failures raise TransientProviderFailure; per-token
    failures come back in the result and are left to the caller to log.
    """

    def __init__(self, app: Optional[Any] = None, owns_app: bool = False):
        self._app = app
        self._owns_app = owns_app
        self.enabled = app is not None

        if not self.enabled:
            logger.warning("FCM credentials not configured - push notifications are disabled")

    @classmethod
    def from_settings(cls, settings: Settings) -> "FcmPushProvider":
        if not settings.fcm_credentials_path:
            return cls()

        options = {"httpTimeout": settings.push_timeout_seconds}
        if settings.fcm_project_id:
            options["projectId"] = settings.fcm_project_id

        try:
            cred = credentials.Certificate(settings.fcm_credentials_path)
            app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
        except (ValueError, OSError) as e:
            logger.error(f"Failed to configure FCM client: {e}")
            return cls()

        logger.info("FCM client configured")
        return cls(app, owns_app=True)

    def _build_message(self, message: MulticastMessage) -> messaging.MulticastMessage:
        # FCM data values must be strings
        data = {key: "" if value is None else str(value) for key, value in message.data.items()}
        return messaging.MulticastMessage(
            tokens=list(message.tokens),
            notification=messaging.Notification(title=message.title, body=message.body),
            data=data,
            android=messaging.AndroidConfig(priority="high"),
        )

    async def send_multicast(self, message: MulticastMessage) -> MulticastResult:
        """Send one push to every token in the message.

        Returns:
            MulticastResult with one SendResponse per token, in token order
        """
        if not self.enabled:
            logger.debug("Push notifications not configured, skipping")
            return MulticastResult()

        if not message.tokens:
            return MulticastResult()

        try:
            batch = await asyncio.to_thread(
                messaging.send_each_for_multicast,
                self._build_message(message),
                app=self._app,
            )
        except (FirebaseError, ValueError) as e:
            raise TransientProviderFailure(f"FCM multicast failed: {e}") from e

        if len(batch.responses) != len(message.tokens):
            raise TransientProviderFailure(
                f"FCM returned {len(batch.responses)} results for {len(message.tokens)} tokens"
            )

        responses = []
        for token, response in zip(message.tokens, batch.responses):
            error = None
            if not response.success:
                exc = response.exception
                error = getattr(exc, "code", None) or str(exc)
            responses.append(SendResponse(
                token=token,
                success=response.success,
                message_id=response.message_id,
                error=error,
            ))
        return MulticastResult(responses=responses)

    async def close(self) -> None:
        if self._owns_app and self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
            self.enabled = False
