"""
Juice Bar POS — Settings flags and externally supplied predictions
"""
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from juicebar_pos.core.quantities import utcnow
from juicebar_pos.db.database import Base, UTCDateTime


class Setting(Base):
    """[CONFIG DATA] process-wide one-time flags such as 'seeded'."""
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)


class Prediction(Base):
    """
    [TRANSACTIONAL DATA] demand forecasts produced elsewhere, stored for display.
    """
    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    for_date: Mapped[date] = mapped_column("date", Date, index=True, nullable=False)
    predicted_units: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
