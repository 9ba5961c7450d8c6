import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import auth
import config
import crud
import schemas
from database import get_db
from models import User, ROLE_USER, STATUS_ACTIVE

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"]
)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    # Check-then-insert; the unique indexes are the final guard
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    if crud.get_user_by_username(db, payload.username):
        raise HTTPException(status_code=400, detail="Username is already taken")

    user = User(
        email=payload.email,
        username=payload.username,
        name=payload.name,
        password_hash=auth.get_password_hash(payload.password),
        role=ROLE_USER,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error creating user %s: %s", payload.email, e)
        raise HTTPException(status_code=500, detail="Failed to create user")

    logger.info("User registered (id=%s, username=%s)", user.id, user.username)
    return {
        "success": True,
        "data": {"user": schemas.UserPublic.model_validate(user)},
        "message": "User registered successfully",
    }


def _issue_token(user: User, db: Session, response: Response) -> dict:
    user.last_login = datetime.utcnow()
    user.login_count = (user.login_count or 0) + 1
    db.commit()
    db.refresh(user)

    expires = timedelta(minutes=auth.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = auth.create_access_token(
        data={"sub": str(user.id), "role": user.role}, expires_delta=expires
    )
    response.set_cookie(
        auth.TOKEN_COOKIE_NAME,
        access_token,
        max_age=int(expires.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=config.IS_PRODUCTION,
    )
    logger.info("User logged in (id=%s)", user.id)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(expires.total_seconds()),
        "user": schemas.UserPublic.model_validate(user),
    }


def _authenticate(db: Session, login: str, password: str) -> User:
    user = db.query(User).filter(or_(User.email == login, User.username == login)).first()
    if not user or not auth.verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.status != STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is not active")
    return user


@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = _authenticate(db, payload.email, payload.password)
    return _issue_token(user, db, response)


# OAuth2 password flow (username field accepts email or username)
@router.post("/token", response_model=schemas.Token)
def login_for_access_token(response: Response, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form_data.username, form_data.password)
    return _issue_token(user, db, response)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(auth.TOKEN_COOKIE_NAME)
    return {"success": True, "message": "Logged out"}
