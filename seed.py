"""
Fill an empty database with sample categories, tags, users and SREF codes.

    python seed.py            # seed if the catalog is empty
    python seed.py --admin    # only create the default admin account
"""

import argparse
import logging

import auth
import config
import crud
from database import SessionLocal, init_db
from models import Category, SREFCode, SREFImage, Tag, User, ROLE_ADMIN, ROLE_USER

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Abstract", "Abstract and conceptual styles", "🎨", "#FF6B6B"),
    ("Anime", "Anime and manga inspired styles", "🎌", "#4ECDC4"),
    ("Photography", "Photographic and realistic styles", "📷", "#45B7D1"),
    ("Fantasy", "Fantasy and magical styles", "🔮", "#96CEB4"),
    ("Minimal", "Minimalist and clean styles", "⚪", "#FFEAA7"),
    ("Cyberpunk", "Futuristic and cyberpunk styles", "🤖", "#DDA0DD"),
]

TAGS = [
    "trending", "popular", "new", "aesthetic", "vibrant",
    "dark", "light", "colorful", "monochrome", "vintage",
]

# code, title, description, category slug, tags, featured, views, likes
SREFS = [
    ("1747943467", "Dreamy Watercolor", "Soft, ethereal watercolor style with pastel tones", "abstract", ["trending", "aesthetic", "light"], True, 1234, 89),
    ("2849203750", "Neon Tokyo Nights", "Vibrant cyberpunk aesthetic with neon lighting", "cyberpunk", ["popular", "vibrant", "dark"], True, 2341, 156),
    ("3951847293", "Studio Ghibli Dreams", "Whimsical anime style inspired by Studio Ghibli", "anime", ["trending", "aesthetic", "colorful"], False, 3456, 234),
    ("4829374619", "Vintage Film Photography", "Classic 35mm film photography aesthetic", "photography", ["vintage", "aesthetic"], False, 987, 67),
    ("5738291047", "Dark Fantasy", "Gothic and dark fantasy art style", "fantasy", ["dark", "popular"], False, 1876, 145),
    ("6492837561", "Minimalist Architecture", "Clean, geometric architectural visualization", "minimal", ["new", "monochrome"], False, 654, 45),
    ("7381920475", "Ethereal Portrait", "Soft, dreamy portrait photography style", "photography", ["aesthetic", "light"], True, 2987, 189),
    ("8293746510", "Retro Anime 80s", "80s and 90s retro anime aesthetic", "anime", ["vintage", "colorful"], False, 1543, 112),
    ("9182736450", "Abstract Geometry", "Bold geometric abstract compositions", "abstract", ["vibrant", "new"], False, 876, 56),
    ("1029384756", "Magical Realism", "Surreal blend of reality and fantasy", "fantasy", ["trending", "aesthetic"], False, 2134, 167),
]


def create_admin(db):
    if crud.get_user_by_email(db, config.DEFAULT_ADMIN_EMAIL):
        logger.info("Admin '%s' already exists, skipping", config.DEFAULT_ADMIN_EMAIL)
        return
    db.add(User(
        email=config.DEFAULT_ADMIN_EMAIL,
        username="admin",
        name="Administrator",
        password_hash=auth.get_password_hash(config.DEFAULT_ADMIN_PASSWORD),
        role=ROLE_ADMIN,
    ))
    db.commit()
    logger.info("Default admin created (%s)", config.DEFAULT_ADMIN_EMAIL)


def seed_catalog(db):
    if db.query(SREFCode).count():
        logger.info("Catalog already seeded, skipping")
        return

    categories = {}
    for order, (name, description, icon, color) in enumerate(CATEGORIES, start=1):
        category = Category(
            name=name, slug=crud.slugify(name), description=description,
            icon=icon, color=color, sort_order=order, featured=order <= 3,
        )
        db.add(category)
        categories[category.slug] = category

    tags = {name: Tag(name=name, slug=crud.slugify(name), featured=name in ("trending", "popular")) for name in TAGS}
    db.add_all(tags.values())

    user = crud.get_user_by_email(db, "demo@srefgallery.com")
    if not user:
        user = User(
            email="demo@srefgallery.com",
            username="demo",
            name="Demo User",
            password_hash=auth.get_password_hash("password123"),
            role=ROLE_USER,
        )
        db.add(user)
    db.flush()

    for code, title, description, category_slug, tag_names, featured, views, likes in SREFS:
        sref = SREFCode(
            code=code,
            title=title,
            slug=crud.slugify(title),
            description=description,
            prompt_examples=[
                f"A beautiful scene in {title} style",
                f"Portrait photography with {title} aesthetic",
                f"Landscape art using {title} techniques",
            ],
            category=categories[category_slug],
            featured=featured,
            view_count=views,
            like_count=likes,
            favorite_count=int(likes * 0.6),
            popularity_score=likes * 2 + views / 100,
            submitted_by_id=user.id,
            images=[
                SREFImage(url=f"/images/sref/{code}.webp", image_order=1, alt_text=f"{title} - Image 1"),
                SREFImage(url=f"/images/sref/{code}-thumb.webp", image_order=2, alt_text=f"{title} - Image 2"),
            ],
        )
        for name in tag_names:
            sref.tags.append(tags[name])
            tags[name].usage_count = (tags[name].usage_count or 0) + 1
        db.add(sref)

    db.commit()
    logger.info("Seeded %d categories, %d tags, %d SREF codes", len(CATEGORIES), len(TAGS), len(SREFS))


def main():
    parser = argparse.ArgumentParser(description="Seed the SREF gallery database")
    parser.add_argument("--admin", action="store_true", help="only create the default admin account")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        create_admin(db)
        if not args.admin:
            seed_catalog(db)
    except Exception:
        db.rollback()
        logger.exception("Error seeding database")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
