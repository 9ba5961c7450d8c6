import logging
import math
import re
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from models import (
    Category, Favorite, Like, SREFCode, SREFImage, Tag, User, STATUS_ACTIVE
)

logger = logging.getLogger(__name__)

SREF_SORT_FIELDS = {
    "createdAt": SREFCode.created_at,
    "views": SREFCode.view_count,
    "likes": SREFCode.like_count,
    "favorites": SREFCode.favorite_count,
    "popularity": SREFCode.popularity_score,
    "title": SREFCode.title,
}


class ToggleError(Exception):
    """A like/favorite toggle could not be applied."""


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-") or "item"


def unique_slug(db: Session, model, value: str) -> str:
    base = slugify(value)
    slug = base
    counter = 1
    while db.query(model.id).filter(model.slug == slug).first():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


# Users

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


# Categories

def category_counts(db: Session, category_ids: Optional[Iterable[int]] = None) -> Dict[int, int]:
    """Number of ACTIVE SREF codes per category id."""
    query = (
        db.query(SREFCode.category_id, func.count(SREFCode.id))
        .filter(SREFCode.status == STATUS_ACTIVE, SREFCode.category_id.isnot(None))
    )
    if category_ids is not None:
        query = query.filter(SREFCode.category_id.in_(list(category_ids)))
    return {cat_id: count for cat_id, count in query.group_by(SREFCode.category_id).all()}


# SREF codes

def active_srefs(db: Session):
    return (
        db.query(SREFCode)
        .options(
            selectinload(SREFCode.category),
            selectinload(SREFCode.tags),
            selectinload(SREFCode.images),
            selectinload(SREFCode.submitted_by),
        )
        .filter(SREFCode.status == STATUS_ACTIVE, SREFCode.deleted_at.is_(None))
    )


def get_active_sref(db: Session, sref_id: int) -> Optional[SREFCode]:
    return active_srefs(db).filter(SREFCode.id == sref_id).first()


def search_condition(term: str):
    pattern = f"%{term}%"
    return or_(
        SREFCode.title.ilike(pattern),
        SREFCode.description.ilike(pattern),
        SREFCode.code.ilike(pattern),
    )


def list_srefs(
    db: Session,
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    featured: bool = False,
    premium: bool = False,
    search: Optional[str] = None,
    sort: str = "createdAt",
    order: str = "desc",
) -> Tuple[List[SREFCode], int]:
    query = active_srefs(db)

    if featured:
        query = query.filter(SREFCode.featured.is_(True))
    if premium:
        query = query.filter(SREFCode.premium.is_(True))
    if search:
        query = query.filter(search_condition(search))
    if category:
        query = query.filter(SREFCode.category.has(Category.slug == category))
    if tag:
        query = query.filter(SREFCode.tags.any(Tag.slug == tag))

    total = query.count()

    column = SREF_SORT_FIELDS.get(sort, SREFCode.created_at)
    ordering = column.asc() if order == "asc" else column.desc()
    items = (
        query.order_by(ordering, SREFCode.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def set_sref_tags(db: Session, sref: SREFCode, tag_ids: List[int]) -> None:
    """Replace the tags of ``sref`` and keep every tag's usage_count in step."""
    new_tags = db.query(Tag).filter(Tag.id.in_(tag_ids)).all() if tag_ids else []
    old_ids = {t.id for t in sref.tags}
    new_ids = {t.id for t in new_tags}
    for t in sref.tags:
        if t.id not in new_ids:
            t.usage_count = max((t.usage_count or 0) - 1, 0)
    for t in new_tags:
        if t.id not in old_ids:
            t.usage_count = (t.usage_count or 0) + 1
    sref.tags = new_tags


def set_sref_images(sref: SREFCode, image_urls: List[str]) -> None:
    sref.images = [
        SREFImage(url=url, image_order=index, alt_text=f"{sref.title} - Image {index}")
        for index, url in enumerate(image_urls, start=1)
    ]


# Likes / favorites

def _toggle(db: Session, model, counter: str, user_id: int, sref_id: int) -> Tuple[bool, int]:
    sref = db.query(SREFCode).filter(
        SREFCode.id == sref_id, SREFCode.status == STATUS_ACTIVE
    ).first()
    if not sref:
        raise ToggleError("SREF not found")

    existing = db.query(model).filter(
        model.user_id == user_id, model.sref_code_id == sref_id
    ).first()

    column = getattr(SREFCode, counter)
    try:
        if existing:
            db.delete(existing)
            present = False
            # Counter never drops below zero
            step = -1 if (getattr(sref, counter) or 0) > 0 else 0
        else:
            db.add(model(user_id=user_id, sref_code_id=sref_id))
            present = True
            step = 1
        db.flush()

        db.query(SREFCode).filter(SREFCode.id == sref_id).update(
            {column: column + step}, synchronize_session=False
        )
        db.commit()
        db.refresh(sref)
        count = getattr(sref, counter)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Toggle of %s failed (user=%s, sref=%s): %s", model.__tablename__, user_id, sref_id, e)
        raise ToggleError(f"Failed to update {model.__tablename__}") from e

    return present, count


def toggle_like(db: Session, user_id: int, sref_id: int) -> Tuple[bool, int]:
    """Flip the like of ``user_id`` on ``sref_id``; returns (liked, like_count)."""
    return _toggle(db, Like, "like_count", user_id, sref_id)


def toggle_favorite(db: Session, user_id: int, sref_id: int) -> Tuple[bool, int]:
    """Flip the favorite of ``user_id`` on ``sref_id``; returns (favorited, favorite_count)."""
    return _toggle(db, Favorite, "favorite_count", user_id, sref_id)


def has_membership(db: Session, model, user_id: int, sref_id: int) -> bool:
    try:
        db.query(model.id).filter(
            model.user_id == user_id, model.sref_code_id == sref_id
        ).one()
    except NoResultFound:
        # Not liked / not favorited
        return False
    return True
