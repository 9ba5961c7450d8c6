import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

import crud
import schemas
from database import get_db
from models import Category, SREFCode, Tag, STATUS_ACTIVE

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/search",
    tags=["search"]
)

SEARCH_SORTS = {
    "relevance": "createdAt",
    "newest": "createdAt",
    "popularity": "popularity",
    "views": "views",
    "likes": "likes",
    "favorites": "favorites",
    "title": "title",
}
SUGGESTION_THRESHOLD = 10
SECTION_LIMIT = 10


def get_search_suggestions(db: Session) -> dict:
    popular = (
        db.query(SREFCode)
        .filter(SREFCode.status == STATUS_ACTIVE, SREFCode.popularity_score > 0)
        .order_by(SREFCode.popularity_score.desc())
        .limit(5)
        .all()
    )

    counts = crud.category_counts(db)
    top_category_ids = sorted((cid for cid, n in counts.items() if n > 0), key=lambda cid: -counts[cid])[:5]
    categories = db.query(Category).filter(Category.id.in_(top_category_ids)).all() if top_category_ids else []
    categories.sort(key=lambda c: -counts[c.id])

    tags = (
        db.query(Tag)
        .filter(Tag.usage_count > 0)
        .order_by(Tag.usage_count.desc())
        .limit(5)
        .all()
    )

    return {
        "popular": [
            {"code": s.code, "title": s.title, "popularity_score": s.popularity_score} for s in popular
        ],
        "categories": [
            {"name": c.name, "slug": c.slug, "srefCount": counts[c.id]} for c in categories
        ],
        "tags": [
            {"name": t.name, "slug": t.slug, "usage_count": t.usage_count} for t in tags
        ],
    }


@router.get("")
def search(
    q: str = "",
    type: str = Query("all", pattern="^(all|srefs|categories|tags)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    featured: Optional[str] = None,
    premium: Optional[str] = None,
    sort: str = "relevance",
    order: str = "desc",
    db: Session = Depends(get_db),
):
    query = q.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")

    limit = min(limit, 100)
    results = {}
    pattern = f"%{query}%"

    if type in ("all", "srefs"):
        sort_key = SEARCH_SORTS.get(sort, "createdAt")
        # Only "title" honours an explicit order; counters always rank high-to-low
        sort_order = order if sort_key == "title" else "desc"
        items, total = crud.list_srefs(
            db,
            page=page,
            limit=limit,
            category=category,
            tag=tag,
            featured=featured == "true",
            premium=premium == "true",
            search=query,
            sort=sort_key,
            order=sort_order,
        )
        results["srefs"] = {
            "data": [schemas.SREF.model_validate(s) for s in items],
            "pagination": crud.pagination(page, limit, total),
        }

    if type in ("all", "categories"):
        categories = (
            db.query(Category)
            .filter(or_(Category.name.ilike(pattern), Category.description.ilike(pattern)))
            .order_by(Category.name.asc())
            .limit(limit if type == "categories" else SECTION_LIMIT)
            .all()
        )
        counts = crud.category_counts(db, [c.id for c in categories]) if categories else {}
        data = []
        for c in categories:
            item = schemas.Category.model_validate(c)
            item.srefCount = counts.get(c.id, 0)
            data.append(item)
        results["categories"] = {"data": data, "total": len(data)}

    if type in ("all", "tags"):
        tags = (
            db.query(Tag)
            .filter(or_(Tag.name.ilike(pattern), Tag.description.ilike(pattern)))
            .order_by(Tag.usage_count.desc())
            .limit(limit if type == "tags" else SECTION_LIMIT)
            .all()
        )
        results["tags"] = {"data": [schemas.Tag.model_validate(t) for t in tags], "total": len(tags)}

    total_results = (
        results.get("srefs", {}).get("pagination", {}).get("total", 0)
        + results.get("categories", {}).get("total", 0)
        + results.get("tags", {}).get("total", 0)
    )

    if type == "all" and total_results < SUGGESTION_THRESHOLD:
        results["suggestions"] = get_search_suggestions(db)

    logger.debug("Search %r (type=%s) -> %d results", query, type, total_results)
    return {
        "query": query,
        "type": type,
        "results": results,
        "totalResults": total_results,
    }
