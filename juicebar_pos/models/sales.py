"""
Juice Bar POS — Sales and notification log models

[TRANSACTIONAL DATA] sales, sale_lines, notification_log: append-only,
never mutated after creation, retained indefinitely.
"""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from juicebar_pos.core.quantities import utcnow
from juicebar_pos.db.database import Base, UTCDateTime


class PaymentMode(str, PyEnum):
    CASH = "Cash"
    UPI = "UPI"
    CARD = "Card"


class NotificationStatus(str, PyEnum):
    SENT = "sent"
    FAILED = "failed"


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, index=True, nullable=False
    )
    total: Mapped[float] = mapped_column(Float, nullable=False)
    payment_mode: Mapped[str] = mapped_column(String(16), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    lines: Mapped[list["SaleLine"]] = relationship(
        back_populates="sale",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} total={self.total}>"


class SaleLine(Base):
    """Snapshot of the product name and unit price at commit time."""
    __tablename__ = "sale_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)

    sale: Mapped[Sale] = relationship(back_populates="lines")

    @property
    def amount(self) -> float:
        return self.qty * self.unit_price


class NotificationLogEntry(Base):
    """Every outbound message attempt, with the status the core assigned it."""
    __tablename__ = "notification_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    destination: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, index=True, nullable=False
    )
