"""
SQLAlchemy ORM models for the primary review store.

Tables (the feed service only reads them; writes belong to other services):
  users           — individual and business accounts
  follows         — social graph edges (follower → followee)
  categories      — category catalogue
  user_categories — user × category; a viewer's preferences, or the
                    categories a business operates in
  locations       — saved coordinates per user (viewer home, business address)
  reviews         — video reviews, optionally tagged with a business
  likes           — user × review engagement
  comments        — user × review engagement
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from review_feed.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the store persists DATETIME columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserStatus:
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BLOCKED = "BLOCKED"


class UserType:
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class ReviewStatus:
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    HIDDEN = "HIDDEN"
    DELETED = "DELETED"


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    user_type: Mapped[str] = mapped_column(
        String(20), default=UserType.INDIVIDUAL, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=UserStatus.ACTIVE, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )


class Follow(Base):
    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    followee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_followee", "followee_id"),
    )


class Category(Base):
    __tablename__ = "categories"

    category_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class UserCategory(Base):
    __tablename__ = "user_categories"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.category_id"), primary_key=True
    )


class Location(Base):
    __tablename__ = "locations"

    location_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_locations_user_updated", "user_id", "updated_at"),
    )


class Review(Base):
    __tablename__ = "reviews"

    review_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    # The reviewed business, when the review is about one
    business_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.user_id")
    )
    title: Mapped[Optional[str]] = mapped_column(String(255))
    caption: Mapped[Optional[str]] = mapped_column(Text)
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    # NULL until the upload pipeline has produced playable media
    video_url: Mapped[Optional[str]] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(
        String(20), default=ReviewStatus.PENDING, nullable=False
    )
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_reviews_user", "user_id"),
        Index("idx_reviews_status_created", "status", "created_at"),
    )


class Like(Base):
    __tablename__ = "likes"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), primary_key=True
    )
    review_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reviews.review_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.user_id"), nullable=False
    )
    review_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reviews.review_id"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_comments_review", "review_id"),
    )
