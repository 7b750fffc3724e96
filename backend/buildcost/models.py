"""
Database models for the component catalog and saved configurations.

No ORM relationships are declared: services join explicitly at the call
site so every query states what it loads.
"""
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CategoryName(str, enum.Enum):
    """Part types a category can represent."""

    CPU = "CPU"
    GPU = "GPU"
    RAM = "RAM"
    STORAGE = "Storage"
    MOTHERBOARD = "Motherboard"
    CASE = "Case"
    POWER_SUPPLY = "PowerSupply"
    COOLING = "Cooling"


class SyncFrequency(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class Category(TimestampMixin, Base):
    """
    A part type (CPU, GPU, ...).

    Categories are never hard-deleted; clearing `active` hides them.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name}, active={self.active})>"


class Component(TimestampMixin, Base):
    """A purchasable part belonging to exactly one category."""
    __tablename__ = "components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    brand: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    specifications: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Component(id={self.id}, brand={self.brand}, model={self.model})>"


class Merchant(TimestampMixin, Base):
    """
    A shop that lists component prices.

    `api_key` is accepted on write but never serialized back out.
    """
    __tablename__ = "merchants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    url: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    api_key: Mapped[str] = mapped_column(String(255), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sync_frequency: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SyncFrequency.DAILY.value
    )
    last_sync: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Merchant(id={self.id}, name={self.name})>"


class Price(TimestampMixin, Base):
    """
    A merchant's listed price for a component.

    At most one row per (component, merchant) pair.
    """
    __tablename__ = "prices"
    __table_args__ = (
        UniqueConstraint("component_id", "merchant_id", name="uq_price_component_merchant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    component_id: Mapped[int] = mapped_column(ForeignKey("components.id"), nullable=False)
    merchant_id: Mapped[int] = mapped_column(ForeignKey("merchants.id"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    product_url: Mapped[str] = mapped_column(Text, nullable=False)
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Price(component={self.component_id}, merchant={self.merchant_id}, "
            f"unit_price={self.unit_price})>"
        )


class Configuration(TimestampMixin, Base):
    """
    A saved build owned by a user.

    `total_price` always equals the sum of its ConfigurationItem prices;
    both are written in the same transaction.
    """
    __tablename__ = "configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Configuration(id={self.id}, owner={self.owner_id}, total={self.total_price})>"


class ConfigurationItem(Base):
    """One priced line of a configuration, ordered by `position`."""
    __tablename__ = "configuration_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    configuration_id: Mapped[int] = mapped_column(
        ForeignKey("configurations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    component_id: Mapped[int] = mapped_column(ForeignKey("components.id"), nullable=False)
    merchant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("merchants.id"), nullable=True
    )
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
