from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from database import get_db
from models import Tag

router = APIRouter(
    prefix="/api/tags",
    tags=["tags"]
)

TAG_LIMIT_DEFAULT = 50
TAG_LIMIT_MAX = 200


@router.get("")
def list_tags(
    featured: Optional[str] = None,
    popular: Optional[str] = None,
    limit: int = TAG_LIMIT_DEFAULT,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Tag)

    is_featured = featured == "true"
    if is_featured:
        query = query.filter(Tag.featured.is_(True))

    if search:
        query = query.filter(Tag.name.ilike(f"%{search}%"))

    ordering = []
    if is_featured:
        ordering.append(Tag.featured.desc())
    if popular == "true":
        ordering.append(Tag.usage_count.desc())
    else:
        ordering.append(Tag.name.asc())

    # Clamp server-side whatever the client asks for
    take = max(0, min(limit, TAG_LIMIT_MAX))
    tags = query.order_by(*ordering).limit(take).all()
    return {"data": [schemas.Tag.model_validate(t) for t in tags]}
