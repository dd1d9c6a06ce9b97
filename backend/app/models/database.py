"""
SQLAlchemy database models for ingested news threads.
Uses SQLAlchemy 2.0 async patterns.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Base
# =============================================================================

class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""
    pass


# =============================================================================
# Threads
# =============================================================================

class DBThread(Base):
    """A stored news post. At most one row per URL."""
    __tablename__ = "threads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    url: Mapped[str] = mapped_column(Text, nullable=False)

    # Content
    title: Mapped[str] = mapped_column(Text, default="")
    text: Mapped[str] = mapped_column(Text, default="")
    author: Mapped[str] = mapped_column(String(255), default="")
    language: Mapped[str] = mapped_column(String(50), default="")
    main_image: Mapped[str] = mapped_column(Text, default="")

    # Site
    site_domain: Mapped[str] = mapped_column(String(255), default="")
    site_name: Mapped[str] = mapped_column(String(255), default="")
    site_type: Mapped[str] = mapped_column(String(50), default="news")
    site_section: Mapped[str] = mapped_column(Text, default="")
    country: Mapped[str] = mapped_column(String(10), default="")

    categories: Mapped[Optional[list]] = mapped_column(JSON)
    published: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Ranking / engagement
    performance_score: Mapped[int] = mapped_column(Integer, default=0)
    domain_rank: Mapped[int] = mapped_column(Integer, default=0)
    replies_count: Mapped[int] = mapped_column(Integer, default=0)
    participants_count: Mapped[int] = mapped_column(Integer, default=0)
    rating: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    # Relationships
    social: Mapped[Optional["DBSocial"]] = relationship(
        back_populates="thread", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_threads_url", "url", unique=True),
        Index("ix_threads_published", "published"),
        Index("ix_threads_site_domain", "site_domain"),
    )


# =============================================================================
# Social engagement
# =============================================================================

class DBSocial(Base):
    """Social engagement attached to a thread (1:1)."""
    __tablename__ = "socials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    thread_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("threads.id"), unique=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    # Relationships
    thread: Mapped["DBThread"] = relationship(back_populates="social")
    facebook: Mapped[Optional["DBFacebookEngagement"]] = relationship(
        back_populates="social", uselist=False, cascade="all, delete-orphan"
    )
    vk: Mapped[Optional["DBVkEngagement"]] = relationship(
        back_populates="social", uselist=False, cascade="all, delete-orphan"
    )


class DBFacebookEngagement(Base):
    __tablename__ = "facebook_engagement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    social_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("socials.id"), unique=True, nullable=False
    )
    likes: Mapped[int] = mapped_column(Integer, default=0)
    comments: Mapped[int] = mapped_column(Integer, default=0)
    shares: Mapped[int] = mapped_column(Integer, default=0)

    social: Mapped["DBSocial"] = relationship(back_populates="facebook")


class DBVkEngagement(Base):
    __tablename__ = "vk_engagement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    social_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("socials.id"), unique=True, nullable=False
    )
    shares: Mapped[int] = mapped_column(Integer, default=0)

    social: Mapped["DBSocial"] = relationship(back_populates="vk")


# =============================================================================
# Database Connection
# =============================================================================

class Database:
    """Database connection manager."""

    def __init__(self, database_url: str):
        self.engine = create_async_engine(
            database_url,
            echo=False,  # Set to True for SQL logging
        )
        self.async_session = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    async def create_tables(self):
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        """Drop all tables (use with caution!)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        """Close pooled connections."""
        await self.engine.dispose()
