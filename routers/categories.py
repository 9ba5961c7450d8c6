from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

import crud
import schemas
from database import get_db
from models import Category, SREFCode

router = APIRouter(
    prefix="/api/categories",
    tags=["categories"]
)

CATEGORY_SORTS = {
    "newest": [SREFCode.created_at.desc()],
    "popular": [SREFCode.like_count.desc(), SREFCode.favorite_count.desc(), SREFCode.created_at.desc()],
    "likes": [SREFCode.like_count.desc()],
}


@router.get("")
def list_categories(
    featured: Optional[str] = None,
    counts: Optional[str] = None,
    parent: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Category)

    if featured == "true":
        query = query.filter(Category.featured.is_(True))

    if parent:
        if parent == "null":
            query = query.filter(Category.parent_id.is_(None))
        else:
            try:
                parent_id = int(parent)
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid parent id")
            query = query.filter(Category.parent_id == parent_id)

    categories = query.order_by(Category.sort_order.asc(), Category.name.asc()).all()

    with_counts = counts == "true"
    sref_counts = crud.category_counts(db, [c.id for c in categories]) if with_counts and categories else {}

    data = []
    for c in categories:
        item = schemas.Category.model_validate(c)
        item.srefCount = sref_counts.get(c.id, 0)
        data.append(item)
    return {"data": data}


@router.get("/{slug}")
def get_category(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    sort: str = Query("newest", pattern="^(newest|popular|likes)$"),
    db: Session = Depends(get_db),
):
    category = db.query(Category).filter(Category.slug == slug).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    query = crud.active_srefs(db).filter(SREFCode.category_id == category.id)
    total = query.count()
    skip = (page - 1) * limit
    srefs = query.order_by(*CATEGORY_SORTS[sort]).offset(skip).limit(limit).all()

    summary = schemas.Category.model_validate(category).model_dump()
    summary["count"] = total
    page_info = crud.pagination(page, limit, total)

    return {
        "success": True,
        "data": [schemas.SREF.model_validate(s) for s in srefs],
        "category": summary,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "hasMore": skip + limit < total,
            "totalPages": page_info["totalPages"],
        },
    }
