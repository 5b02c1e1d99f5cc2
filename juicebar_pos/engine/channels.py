"""
Juice Bar POS — Outbound notification channels

A channel accepts (destination, message) and either returns or raises
ExternalChannelError. Delivery confirmation is not modelled.
"""
import logging
from urllib.parse import quote

import httpx

from juicebar_pos.core.config import Settings, get_settings
from juicebar_pos.core.errors import ExternalChannelError

logger = logging.getLogger(__name__)


class NotificationChannel:
    name = "abstract"

    async def send(self, destination: str, message: str) -> None:
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


class WhatsAppLinkChannel(NotificationChannel):
    """
    Click-to-chat hand-off: builds the wa.me link the counter device opens.
    No network I/O happens here, so submission always succeeds.
    """
    name = "whatsapp_link"
    BASE_URL = "https://wa.me"

    def __init__(self):
        self.last_link: str | None = None

    def link_for(self, destination: str, message: str) -> str:
        return f"{self.BASE_URL}/{destination}?text={quote(message)}"

    async def send(self, destination: str, message: str) -> None:
        if not destination:
            raise ExternalChannelError("WhatsApp destination is empty.")
        self.last_link = self.link_for(destination, message)
        logger.info("WhatsApp bill link prepared for +%s", destination)


class HttpGatewayChannel(NotificationChannel):
    """Posts the message to a messaging gateway service."""
    name = "http"

    def __init__(self, base_url: str, timeout: float, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, destination: str, message: str) -> None:
        try:
            response = await self._client.post(
                f"{self.base_url}/messages",
                json={"destination": destination, "message": message},
            )
        except httpx.TimeoutException as exc:
            raise ExternalChannelError("Notification gateway did not respond in time.") from exc
        except httpx.RequestError as exc:
            raise ExternalChannelError(f"Notification gateway unreachable: {exc}") from exc

        if not response.is_success:
            raise ExternalChannelError(
                f"Notification gateway rejected message: HTTP {response.status_code}"
            )

    async def aclose(self) -> None:
        await self._client.aclose()


def build_channel(settings: Settings | None = None) -> NotificationChannel:
    settings = settings or get_settings()
    if settings.NOTIFICATION_CHANNEL == HttpGatewayChannel.name:
        return HttpGatewayChannel(settings.NOTIFICATION_GATEWAY_URL, settings.HTTP_TIMEOUT_SECONDS)
    if settings.NOTIFICATION_CHANNEL == WhatsAppLinkChannel.name:
        return WhatsAppLinkChannel()
    raise ValueError(f"Unknown NOTIFICATION_CHANNEL '{settings.NOTIFICATION_CHANNEL}'.")


_channel: NotificationChannel | None = None


def get_channel() -> NotificationChannel:
    global _channel
    if _channel is None:
        _channel = build_channel()
    return _channel


async def close_channel():
    global _channel
    if _channel:
        await _channel.aclose()
        _channel = None
