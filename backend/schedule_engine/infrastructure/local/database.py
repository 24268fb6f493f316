"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
Datetimes are stored as naive UTC.
"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from schedule_engine.core.config import get_settings
from schedule_engine.utils.datetime_utils import to_naive_utc, now_utc


def _utcnow_naive():
    return to_naive_utc(now_utc())


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class ScheduleORM(Base):
    """Schedule ORM model."""

    __tablename__ = "schedules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    organization_id = Column(String(255), nullable=False, index=True)
    asset_id = Column(String(255), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    kind = Column(String(20), nullable=False, index=True)
    params = Column(JSON, nullable=False)  # kind-specific parameters
    start_date = Column(DateTime, nullable=False)
    task_template = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, index=True)
    last_occurrence = Column(DateTime, nullable=True)
    next_occurrence = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow_naive)
    updated_at = Column(DateTime, default=_utcnow_naive, onupdate=_utcnow_naive)


class ScheduleRuleORM(Base):
    """Schedule rule ORM model."""

    __tablename__ = "schedule_rules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    schedule_id = Column(String(36), ForeignKey("schedules.id"), nullable=False, index=True)
    rule_type = Column(String(30), nullable=False)
    config = Column(JSON, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow_naive, index=True)


class ScheduleDependencyORM(Base):
    """Schedule dependency edge ORM model."""

    __tablename__ = "schedule_dependencies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    schedule_id = Column(String(36), ForeignKey("schedules.id"), nullable=False, index=True)
    depends_on_schedule_id = Column(
        String(36), ForeignKey("schedules.id"), nullable=False, index=True
    )
    offset_days = Column(Integer, nullable=False, default=0)
    rule_id = Column(String(36), ForeignKey("schedule_rules.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow_naive)


class UsageCounterORM(Base):
    """Usage counter ORM model."""

    __tablename__ = "usage_counters"
    __table_args__ = (
        UniqueConstraint("asset_id", "counter_type", name="uq_usage_counter_asset_type"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id = Column(String(255), nullable=False, index=True)
    counter_type = Column(String(100), nullable=False)
    schedule_id = Column(String(36), ForeignKey("schedules.id"), nullable=True)
    current_value = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    last_updated_at = Column(DateTime, nullable=True)
    last_reset_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow_naive)


class CompletionRecordORM(Base):
    """Task completion log ORM model."""

    __tablename__ = "completion_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    schedule_id = Column(String(36), ForeignKey("schedules.id"), nullable=False, index=True)
    task_id = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="DONE", index=True)
    completed_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow_naive)


# ===========================================
# Database Session Management
# ===========================================


def get_engine(database_url: str | None = None):
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(database_url or settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory(engine=None):
    """Get async session factory."""
    engine = engine or get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine=None):
    """Initialize database tables."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
