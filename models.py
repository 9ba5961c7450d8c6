from datetime import datetime
from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Table, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database import Base

# Roles / statuses stored as plain strings
ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

STATUS_ACTIVE = "ACTIVE"
STATUS_PENDING = "PENDING"
STATUS_DELETED = "DELETED"


sref_tags = Table(
    "sref_tags",
    Base.metadata,
    Column("sref_code_id", Integer, ForeignKey("sref_codes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(100))
    password_hash = Column(String, nullable=False)
    role = Column(String(20), default=ROLE_USER, nullable=False)
    avatar_url = Column(String(600))
    status = Column(String(20), default=STATUS_ACTIVE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime)
    login_count = Column(Integer, default=0, nullable=False)

    submissions = relationship("SREFCode", back_populates="submitted_by")
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, index=True)
    slug = Column(String(140), unique=True, index=True, nullable=False)
    description = Column(Text)
    icon = Column(String(32))
    color = Column(String(16))
    featured = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent")
    sref_codes = relationship("SREFCode", back_populates="category")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), unique=True, index=True, nullable=False)
    slug = Column(String(80), unique=True, index=True, nullable=False)
    description = Column(Text)
    featured = Column(Boolean, default=False, nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)

    sref_codes = relationship("SREFCode", secondary=sref_tags, back_populates="tags")


class SREFCode(Base):
    __tablename__ = "sref_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False)
    slug = Column(String(280), unique=True, index=True, nullable=False)
    description = Column(Text)
    prompt_examples = Column(JSON, default=list)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    submitted_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    popularity_score = Column(Float, default=0, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    favorite_count = Column(Integer, default=0, nullable=False)
    premium = Column(Boolean, default=False, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default=STATUS_ACTIVE, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime)

    category = relationship("Category", back_populates="sref_codes")
    submitted_by = relationship("User", back_populates="submissions")
    tags = relationship("Tag", secondary=sref_tags, back_populates="sref_codes")
    images = relationship(
        "SREFImage", back_populates="sref_code",
        order_by="SREFImage.image_order", cascade="all, delete-orphan"
    )
    likes = relationship("Like", back_populates="sref_code", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="sref_code", cascade="all, delete-orphan")


class SREFImage(Base):
    __tablename__ = "sref_images"

    id = Column(Integer, primary_key=True, index=True)
    sref_code_id = Column(Integer, ForeignKey("sref_codes.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(600), nullable=False)
    image_order = Column(Integer, default=1, nullable=False)
    alt_text = Column(String(300))

    sref_code = relationship("SREFCode", back_populates="images")


class Like(Base):
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sref_code_id = Column(Integer, ForeignKey("sref_codes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="likes")
    sref_code = relationship("SREFCode", back_populates="likes")

    __table_args__ = (
        UniqueConstraint('user_id', 'sref_code_id', name='unique_user_sref_like'),
    )


class Favorite(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sref_code_id = Column(Integer, ForeignKey("sref_codes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="favorites")
    sref_code = relationship("SREFCode", back_populates="favorites")

    __table_args__ = (
        UniqueConstraint('user_id', 'sref_code_id', name='unique_user_sref_favorite'),
    )
