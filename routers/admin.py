from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

import auth
import crud
import schemas
from database import get_db
from models import Category, SREFCode, Tag, User, STATUS_ACTIVE, STATUS_PENDING
from routers.user import invalidate_stats_cache

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"]
)

RECENT_WINDOW = timedelta(days=7)
REQUIRED_CATEGORY_FIELDS = ("name", "featured", "sort_order")


# Protected Dependency (admin role only)
def require_admin_user(current_user: User = Depends(auth.require_admin)):
    return current_user


# Dashboard Stats
@router.get("/stats")
def get_dashboard_stats(current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    since = datetime.utcnow() - RECENT_WINDOW
    active = db.query(SREFCode).filter(SREFCode.status == STATUS_ACTIVE)

    total_views = db.query(func.coalesce(func.sum(SREFCode.view_count), 0)).filter(SREFCode.status == STATUS_ACTIVE).scalar()
    total_likes = db.query(func.coalesce(func.sum(SREFCode.like_count), 0)).filter(SREFCode.status == STATUS_ACTIVE).scalar()

    return {
        "success": True,
        "data": {
            "totalSrefs": active.count(),
            "totalUsers": db.query(User).filter(User.status == STATUS_ACTIVE).count(),
            "totalViews": int(total_views or 0),
            "totalLikes": int(total_likes or 0),
            "pendingSrefs": db.query(SREFCode).filter(SREFCode.status == STATUS_PENDING).count(),
            "recentUsers": db.query(User).filter(User.created_at >= since).count(),
            "recentSrefs": db.query(SREFCode).filter(SREFCode.created_at >= since).count(),
            "timestamp": datetime.utcnow(),
        },
    }


# Category Management
@router.post("/categories", response_model=schemas.Category, status_code=201)
def create_category(category: schemas.CategoryCreate, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    existing_category = db.query(Category).filter(Category.name == category.name).first()
    if existing_category:
        raise HTTPException(status_code=400, detail="Category with this name already exists")

    if category.parent_id is not None and not db.get(Category, category.parent_id):
        raise HTTPException(status_code=400, detail="Parent category not found")

    slug = crud.unique_slug(db, Category, category.slug or category.name)
    db_category = Category(**category.model_dump(exclude={"slug"}), slug=slug)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    invalidate_stats_cache()
    return db_category


@router.put("/categories/reorder")
def reorder_categories(payload: schemas.CategoryReorderRequest, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    # payload.items is a list of category IDs in the new order
    for index, cat_id in enumerate(payload.items):
        db.query(Category).filter(Category.id == cat_id).update({"sort_order": index})
    db.commit()
    return {"message": "Categories reordered successfully"}


@router.put("/categories/{category_id}", response_model=schemas.Category)
def update_category(category_id: int, category_update: schemas.CategoryUpdate, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    db_category = db.query(Category).filter(Category.id == category_id).first()
    if not db_category:
        raise HTTPException(status_code=404, detail="Category not found")

    changes = category_update.model_dump(exclude_unset=True)
    for field in REQUIRED_CATEGORY_FIELDS:
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=400, detail=f"Category {field} cannot be null")

    parent_id = changes.get("parent_id")
    if parent_id is not None:
        if parent_id == category_id:
            raise HTTPException(status_code=400, detail="A category cannot be its own parent")
        parent = db.get(Category, parent_id)
        if not parent:
            raise HTTPException(status_code=400, detail="Parent category not found")
        # Walk up from the new parent; meeting this category again means a cycle
        seen = set()
        ancestor = parent
        while ancestor is not None and ancestor.id not in seen:
            if ancestor.id == category_id:
                raise HTTPException(status_code=400, detail="A category cannot be moved under its own subcategory")
            seen.add(ancestor.id)
            ancestor = ancestor.parent

    for field, value in changes.items():
        setattr(db_category, field, value)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    db_category = db.query(Category).filter(Category.id == category_id).first()
    if not db_category:
        raise HTTPException(status_code=404, detail="Category not found")

    sref_count = db.query(SREFCode).filter(SREFCode.category_id == category_id).count()
    child_count = db.query(Category).filter(Category.parent_id == category_id).count()
    if sref_count or child_count:
        raise HTTPException(
            status_code=400,
            detail=f"Category still has {sref_count} SREF codes and {child_count} subcategories",
        )

    db.delete(db_category)
    db.commit()
    invalidate_stats_cache()
    return {"message": "Category deleted successfully"}


# Tag Management
@router.post("/tags", response_model=schemas.Tag, status_code=201)
def create_tag(tag: schemas.TagCreate, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    if db.query(Tag).filter(Tag.name == tag.name).first():
        raise HTTPException(status_code=400, detail="Tag already exists")

    db_tag = Tag(**tag.model_dump(), slug=crud.unique_slug(db, Tag, tag.name))
    db.add(db_tag)
    db.commit()
    db.refresh(db_tag)
    invalidate_stats_cache()
    return db_tag


@router.delete("/tags/{tag_id}")
def delete_tag(tag_id: int, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    db_tag = db.query(Tag).filter(Tag.id == tag_id).first()
    if not db_tag:
        raise HTTPException(status_code=404, detail="Tag not found")

    db.delete(db_tag)
    db.commit()
    invalidate_stats_cache()
    return {"message": "Tag deleted successfully"}


# SREF moderation
@router.get("/sref/pending", response_model=List[schemas.SREF])
def get_pending_srefs(current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    return (
        db.query(SREFCode)
        .filter(SREFCode.status == STATUS_PENDING)
        .order_by(SREFCode.created_at.asc(), SREFCode.id.asc())
        .all()
    )


@router.put("/sref/{sref_id}/status", response_model=schemas.SREF)
def update_sref_status(sref_id: int, payload: schemas.SREFStatusUpdate, current_user: User = Depends(require_admin_user), db: Session = Depends(get_db)):
    sref = db.query(SREFCode).filter(SREFCode.id == sref_id).first()
    if not sref:
        raise HTTPException(status_code=404, detail="SREF not found")

    sref.status = payload.status
    sref.deleted_at = datetime.utcnow() if payload.status == "DELETED" else None
    if payload.featured is not None:
        sref.featured = payload.featured
    db.commit()
    db.refresh(sref)
    invalidate_stats_cache()
    return sref
