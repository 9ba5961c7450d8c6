import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

import config
import crud
import schemas
import storage
from auth import get_current_user, get_current_user_optional
from database import get_db
from models import Category, Favorite, Like, SREFCode, User, STATUS_DELETED, STATUS_PENDING

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/sref",
    tags=["sref"]
)

SREF_LIMIT_MAX = 100


@router.get("")
def list_srefs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    featured: Optional[str] = None,
    premium: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "createdAt",
    order: str = "desc",
    db: Session = Depends(get_db),
):
    limit = min(limit, SREF_LIMIT_MAX)
    items, total = crud.list_srefs(
        db,
        page=page,
        limit=limit,
        category=category,
        tag=tag,
        featured=featured == "true",
        premium=premium == "true",
        search=search,
        sort=sort,
        order=order,
    )
    return {
        "data": [schemas.SREF.model_validate(s) for s in items],
        "pagination": crud.pagination(page, limit, total),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_sref(
    payload: schemas.SREFCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if db.query(SREFCode.id).filter(SREFCode.code == payload.code).first():
        raise HTTPException(status_code=409, detail="SREF code already exists")

    if payload.category_id is not None and not db.get(Category, payload.category_id):
        raise HTTPException(status_code=400, detail="Unknown category")

    sref = SREFCode(
        code=payload.code,
        title=payload.title,
        slug=crud.unique_slug(db, SREFCode, payload.title),
        description=payload.description,
        prompt_examples=payload.prompt_examples,
        category_id=payload.category_id,
        premium=payload.premium,
        submitted_by_id=current_user.id,
        # New submissions wait for approval
        status=STATUS_PENDING,
    )
    db.add(sref)
    crud.set_sref_tags(db, sref, payload.tag_ids)
    crud.set_sref_images(sref, payload.image_urls)
    db.commit()
    db.refresh(sref)

    logger.info("SREF %s submitted by user %s", sref.code, current_user.id)
    return {"data": schemas.SREF.model_validate(sref), "message": "SREF created successfully"}


@router.post("/upload")
def upload_image(file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    # Runs in FastAPI's threadpool
    content = file.file.read(config.MAX_UPLOAD_BYTES + 1)
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large (max {config.MAX_UPLOAD_BYTES} bytes)")
    try:
        url = storage.store_image(content, file.filename or "", file.content_type or "image/jpeg")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"url": url}


@router.get("/{sref_id}")
def get_sref(sref_id: int, db: Session = Depends(get_db)):
    sref = crud.get_active_sref(db, sref_id)
    if not sref:
        raise HTTPException(status_code=404, detail="SREF not found")

    sref.view_count = (sref.view_count or 0) + 1
    db.commit()
    db.refresh(sref)
    return {"success": True, "data": schemas.SREF.model_validate(sref)}


def _owned_sref(db: Session, sref_id: int, user: User, action: str) -> SREFCode:
    sref = db.query(SREFCode).filter(SREFCode.id == sref_id, SREFCode.status != STATUS_DELETED).first()
    if not sref:
        raise HTTPException(status_code=404, detail="SREF not found")
    if sref.submitted_by_id != user.id:
        raise HTTPException(status_code=403, detail=f"Unauthorized - You can only {action} your own SREFs")
    return sref


@router.put("/{sref_id}")
def update_sref(
    sref_id: int,
    payload: schemas.SREFUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sref = _owned_sref(db, sref_id, current_user, "edit")

    if payload.title is not None:
        sref.title = payload.title
    if payload.description is not None:
        sref.description = payload.description
    if payload.prompt_examples is not None:
        sref.prompt_examples = payload.prompt_examples
    if payload.premium is not None:
        sref.premium = payload.premium
    if payload.category_id is not None:
        if not db.get(Category, payload.category_id):
            raise HTTPException(status_code=400, detail="Unknown category")
        sref.category_id = payload.category_id
    if payload.tag_ids is not None:
        crud.set_sref_tags(db, sref, payload.tag_ids)
    if payload.image_urls is not None:
        crud.set_sref_images(sref, payload.image_urls)

    sref.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(sref)
    return {"success": True, "data": schemas.SREF.model_validate(sref), "message": "SREF updated successfully"}


@router.delete("/{sref_id}")
def delete_sref(
    sref_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sref = _owned_sref(db, sref_id, current_user, "delete")

    # Soft delete
    sref.status = STATUS_DELETED
    sref.deleted_at = datetime.utcnow()
    db.commit()
    return {"success": True, "message": "SREF deleted successfully"}


# Likes

@router.post("/{sref_id}/like")
def toggle_like(
    sref_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        liked, like_count = crud.toggle_like(db, current_user.id, sref_id)
    except crud.ToggleError as e:
        raise HTTPException(status_code=400, detail=str(e) or "Failed to toggle like")

    return {
        "success": True,
        "data": {"liked": liked, "likeCount": like_count},
        "message": "SREF liked successfully" if liked else "Like removed successfully",
    }


@router.get("/{sref_id}/like")
def like_status(
    sref_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    if current_user is None:
        return {"success": True, "data": {"liked": False}}
    return {"success": True, "data": {"liked": crud.has_membership(db, Like, current_user.id, sref_id)}}


# Favorites

@router.post("/{sref_id}/favorite")
def toggle_favorite(
    sref_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        favorited, favorite_count = crud.toggle_favorite(db, current_user.id, sref_id)
    except crud.ToggleError as e:
        raise HTTPException(status_code=400, detail=str(e) or "Failed to toggle favorite")

    return {
        "success": True,
        "data": {"favorited": favorited, "favoriteCount": favorite_count},
        "message": (
            "SREF added to favorites successfully" if favorited
            else "SREF removed from favorites successfully"
        ),
    }


@router.get("/{sref_id}/favorite")
def favorite_status(
    sref_id: int,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    if current_user is None:
        return {"success": True, "data": {"favorited": False}}
    return {"success": True, "data": {"favorited": crud.has_membership(db, Favorite, current_user.id, sref_id)}}
