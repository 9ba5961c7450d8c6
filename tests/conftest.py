import os
import tempfile

# Configure before any application module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="sref-uploads-")
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import auth
import crud
from database import Base, get_db
from main import app
from models import Category, SREFCode, SREFImage, Tag, User, ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE
from routers import user as user_router

PASSWORD = "longenough"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    user_router.invalidate_stats_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make_user(email="user@mail.com", username="user", password=PASSWORD, role=ROLE_USER, name=None):
        user = User(
            email=email,
            username=username,
            name=name,
            password_hash=auth.get_password_hash(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture()
def auth_headers():
    def _auth_headers(user):
        token = auth.create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture()
def admin_headers(make_user, auth_headers):
    admin = make_user(email="admin@mail.com", username="admin", role=ROLE_ADMIN)
    return auth_headers(admin)


@pytest.fixture()
def make_category(db):
    def _make_category(name, featured=False, sort_order=0, parent=None, description=None):
        category = Category(
            name=name,
            slug=crud.slugify(name),
            description=description,
            featured=featured,
            sort_order=sort_order,
            parent_id=parent.id if parent else None,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make_category


@pytest.fixture()
def make_tag(db):
    def _make_tag(name, featured=False, usage_count=0, description=None):
        tag = Tag(
            name=name,
            slug=crud.slugify(name),
            description=description,
            featured=featured,
            usage_count=usage_count,
        )
        db.add(tag)
        db.commit()
        db.refresh(tag)
        return tag
    return _make_tag


@pytest.fixture()
def make_sref(db):
    def _make_sref(code, title=None, category=None, tags=(), status=STATUS_ACTIVE, owner=None, **fields):
        title = title or f"Style {code}"
        sref = SREFCode(
            code=code,
            title=title,
            slug=crud.unique_slug(db, SREFCode, title),
            category_id=category.id if category else None,
            submitted_by_id=owner.id if owner else None,
            status=status,
            images=[SREFImage(url=f"/images/sref/{code}.webp", image_order=1)],
            **fields,
        )
        sref.tags = list(tags)
        db.add(sref)
        db.commit()
        db.refresh(sref)
        return sref
    return _make_sref
