import asyncio
import logging
import uuid
from dataclasses import dataclass

from aioapns import APNs, NotificationRequest, PushType
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.config import settings
from alertaseguro.models.user import User

logger = logging.getLogger(__name__)

NO_TOKEN = "no-token"
TRANSPORT_ERROR = "transport-error"


@dataclass
class DeliveryResult:
    sent: bool
    reason: str | None = None


class ApnsPushTransport:
    """Push transport over an aioapns client.

    Anything with the same ``send`` coroutine can stand in for it.
    """

    def __init__(self, client: APNs):
        self._client = client

    @classmethod
    def from_settings(cls) -> "ApnsPushTransport | None":
        if not settings.APNS_KEY_PATH:
            logger.info("APNS_KEY_PATH not set, push notifications disabled")
            return None
        try:
            client = APNs(
                key=settings.APNS_KEY_PATH,
                key_id=settings.APNS_KEY_ID,
                team_id=settings.APNS_TEAM_ID,
                topic=settings.APNS_BUNDLE_ID,
                use_sandbox=settings.APNS_USE_SANDBOX,
            )
        except Exception:
            logger.exception("Failed to configure APNs client, push notifications disabled")
            return None
        logger.info("APNs client configured (sandbox=%s)", settings.APNS_USE_SANDBOX)
        return cls(client)

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> bool:
        message = {
            "aps": {
                "alert": {"title": title, "body": body},
                "sound": "default",
            }
        }
        if data:
            message.update(data)

        request = NotificationRequest(
            device_token=token,
            message=message,
            push_type=PushType.ALERT,
        )
        response = await self._client.send_notification(request)
        if not response.is_successful:
            logger.warning(
                "APNs rejected push to %s...: %s", token[:16], response.description
            )
        return response.is_successful


async def get_push_token(db: AsyncSession, user_id: uuid.UUID) -> str | None:
    user = await db.get(User, user_id)
    return user.push_token if user is not None else None


async def deliver(
    token: str | None,
    device_id: str,
    message: str,
    transport=None,
    title: str | None = None,
    timeout: float | None = None,
) -> DeliveryResult:
    """Send one motion alert to an already-resolved push token.

    Touches no database session, so callers can release their connection
    before the network call. A missing token or a failing transport is a
    normal outcome, never an exception.
    """
    if not token:
        logger.info("No push token, alert for %s not sent", device_id)
        return DeliveryResult(sent=False, reason=NO_TOKEN)

    if transport is None:
        logger.warning("No push transport configured, alert for %s not sent", device_id)
        return DeliveryResult(sent=False, reason=TRANSPORT_ERROR)

    if timeout is None:
        timeout = settings.PUSH_TIMEOUT_SECONDS

    try:
        sent = await asyncio.wait_for(
            transport.send(
                token,
                title or settings.NOTIFICATION_TITLE,
                message,
                {"device_id": device_id, "message": message},
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Push to %s... timed out after %ss", token[:16], timeout)
        return DeliveryResult(sent=False, reason=TRANSPORT_ERROR)
    except Exception as exc:
        logger.warning("Push to %s... failed: %s", token[:16], exc)
        return DeliveryResult(sent=False, reason=TRANSPORT_ERROR)

    if not sent:
        return DeliveryResult(sent=False, reason=TRANSPORT_ERROR)
    logger.info("Alert for %s delivered to %s...", device_id, token[:16])
    return DeliveryResult(sent=True)


async def dispatch(
    db: AsyncSession,
    user_id: uuid.UUID,
    device_id: str,
    message: str,
    transport=None,
    title: str | None = None,
    timeout: float | None = None,
) -> DeliveryResult:
    """Look up the owner's push token and deliver one motion alert to it.

    The session stays checked out for the whole push. The event pipeline
    calls get_push_token and deliver separately so it holds no connection
    while the push is in flight.
    """
    token = await get_push_token(db, user_id)
    return await deliver(token, device_id, message, transport, title, timeout)
