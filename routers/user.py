import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

import auth
import crud
import schemas
from database import get_db
from models import Category, Favorite, Like, SREFCode, Tag, User, STATUS_ACTIVE, STATUS_DELETED

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["user"]
)

# Cache for site stats (1 minute TTL)
_stats_cache = {"data": None, "timestamp": 0}
STATS_CACHE_TTL = 60  # seconds

RECENT_ACTIVITY_LIMIT = 5


def invalidate_stats_cache():
    global _stats_cache
    _stats_cache = {"data": None, "timestamp": 0}


@router.get("/stats")
def get_site_stats(db: Session = Depends(get_db)):
    """Catalog totals for the landing page, memoized for a minute."""
    global _stats_cache
    current_time = time.time()

    # Return cached data if still valid
    if _stats_cache["data"] and (current_time - _stats_cache["timestamp"]) < STATS_CACHE_TTL:
        return _stats_cache["data"]

    result = {
        "totalSREFs": db.query(SREFCode).filter(SREFCode.status == STATUS_ACTIVE).count(),
        "totalCategories": db.query(Category).count(),
        "totalTags": db.query(Tag).count(),
        "totalUsers": db.query(User).filter(User.status == STATUS_ACTIVE).count(),
    }

    _stats_cache["data"] = result
    _stats_cache["timestamp"] = current_time

    return result


def _recent(db: Session, model, user_id: int):
    rows = (
        db.query(model)
        .options(selectinload(model.sref_code).selectinload(SREFCode.images))
        .filter(model.user_id == user_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return [schemas.SREFBrief.model_validate(r.sref_code) for r in rows]


@router.get("/user/profile")
def get_profile(current_user: User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    user_id = current_user.id
    submissions = (
        db.query(SREFCode)
        .filter(SREFCode.submitted_by_id == user_id)
        .order_by(SREFCode.created_at.desc(), SREFCode.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    profile = schemas.UserProfile.model_validate(current_user).model_dump()
    profile["stats"] = {
        "submissions": db.query(SREFCode).filter(SREFCode.submitted_by_id == user_id).count(),
        "favorites": db.query(Favorite).filter(Favorite.user_id == user_id).count(),
        "likes": db.query(Like).filter(Like.user_id == user_id).count(),
    }
    profile["recentActivity"] = {
        "favorites": _recent(db, Favorite, user_id),
        "likes": _recent(db, Like, user_id),
        "submissions": [schemas.SREFBrief.model_validate(s) for s in submissions],
    }
    return {"data": profile}


@router.put("/user/profile")
def update_profile(
    payload: schemas.ProfileUpdate,
    current_user: User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    if payload.username and payload.username != current_user.username:
        taken = db.query(User).filter(User.username == payload.username, User.id != current_user.id).first()
        if taken:
            raise HTTPException(status_code=409, detail="Username already taken")
        current_user.username = payload.username

    if payload.new_password:
        if not payload.current_password or not auth.verify_password(payload.current_password, current_user.password_hash):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        current_user.password_hash = auth.get_password_hash(payload.new_password)

    if payload.name is not None:
        current_user.name = payload.name
    if payload.avatar_url:
        current_user.avatar_url = payload.avatar_url

    db.commit()
    db.refresh(current_user)
    return {"data": schemas.UserProfile.model_validate(current_user), "message": "Profile updated successfully"}


@router.delete("/user/profile")
def delete_account(
    confirm: bool = False,
    current_user: User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    if not confirm:
        raise HTTPException(status_code=400, detail="Account deletion must be confirmed with ?confirm=true")

    # Soft delete: submitted SREFs keep their owner row
    user_id = current_user.id
    current_user.status = STATUS_DELETED
    current_user.email = f"deleted_{user_id}@deleted.invalid"
    current_user.username = f"deleted_{user_id}"
    current_user.name = None
    current_user.avatar_url = None
    db.commit()
    invalidate_stats_cache()

    logger.info("User %s deleted their account", user_id)
    return {"message": "Account deleted successfully"}


@router.get("/user/favorites")
def list_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Favorite).filter(Favorite.user_id == current_user.id)
    total = query.count()
    favorites = (
        query.order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    data = [
        {
            "id": f.id,
            "created_at": f.created_at,
            "sref_code": schemas.SREF.model_validate(f.sref_code),
        }
        for f in favorites
    ]
    return {"data": data, "pagination": crud.pagination(page, limit, total)}
