"""
Juice Bar POS — Customer bill notifications

Runs as a SaleCommitted subscriber, strictly after the sale transaction has
committed. Neither a failing channel nor a failing log write can touch the
sale or the inventory deductions.
"""
import logging
import re
from dataclasses import dataclass

from juicebar_pos.core.config import get_settings
from juicebar_pos.core.errors import ExternalChannelError, StorageTransactionError
from juicebar_pos.core.quantities import format_amount
from juicebar_pos.db.store import RecordStore
from juicebar_pos.engine.channels import NotificationChannel
from juicebar_pos.engine.events import SaleCommitted
from juicebar_pos.models.sales import NotificationLogEntry, NotificationStatus

settings = get_settings()
logger = logging.getLogger(__name__)

BILL_CONTEXT = "Customer Bill"


@dataclass(frozen=True)
class NotificationOutcome:
    destination: str
    message: str
    status: str
    log_id: int | None = None
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status == NotificationStatus.SENT.value


def clean_phone(phone: str | None, country_code: str | None = None) -> str:
    """Digits only; a bare 10-digit local number gets the country code."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return f"{country_code or settings.DEFAULT_COUNTRY_CODE}{digits}"
    return digits


def format_bill(event: SaleCommitted, currency_symbol: str | None = None) -> str:
    symbol = settings.CURRENCY_SYMBOL if currency_symbol is None else currency_symbol
    items = ", ".join(f"{line.product_name} x{line.qty}" for line in event.lines)
    return f"Thanks for visiting! Your total: {symbol}{format_amount(event.total)}. Items: {items}."


class BillNotifier:
    def __init__(self, store: RecordStore, channel: NotificationChannel):
        self.store = store
        self.channel = channel

    async def __call__(self, event: SaleCommitted) -> NotificationOutcome | None:
        if not event.customer_phone:
            return None

        destination = clean_phone(event.customer_phone)
        message = format_bill(event)
        status = NotificationStatus.SENT.value
        error = None

        try:
            await self.channel.send(destination, message)
        except ExternalChannelError as exc:
            logger.warning("Bill for sale %s could not be sent to %s: %s", event.sale_id, destination, exc)
            status = NotificationStatus.FAILED.value
            error = str(exc)
        except Exception as exc:
            logger.exception("Channel %s crashed sending bill for sale %s", self.channel.name, event.sale_id)
            status = NotificationStatus.FAILED.value
            error = f"{type(exc).__name__}: {exc}"

        try:
            async with self.store.transaction() as uow:
                entry = await uow.notifications.put(NotificationLogEntry(
                    destination=destination,
                    message=message,
                    context=BILL_CONTEXT,
                    status=status,
                    error=error,
                    sale_id=event.sale_id,
                ))
                log_id = entry.id
        except StorageTransactionError as exc:
            logger.exception("Notification log write failed for sale %s", event.sale_id)
            # log_id stays None: the attempt happened but left no log entry
            return NotificationOutcome(
                destination=destination,
                message=message,
                status=status,
                error="; ".join(filter(None, [error, f"log write failed: {exc}"])),
            )

        return NotificationOutcome(
            destination=destination, message=message, status=status, log_id=log_id, error=error
        )
