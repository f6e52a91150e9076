import sys

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from sharelink.core.config import settings
from sharelink.core.security import get_password_hash
from sharelink.db import base
from sharelink.db.session import SessionLocal, engine
from sharelink.models.pricing_tier import PricingTier
from sharelink.models.user import User

DEFAULT_TIERS = [
    {
        "name": "Free",
        "description": "Share files up to 2GB for 4 hours",
        "file_size_limit": 2,
        "validity_in_hours": 4,
        "price": 0,
        "currency_code": "INR",
        "is_default": True,
    },
    {
        "name": "Standard",
        "description": "Share files up to 5GB for 24 hours",
        "file_size_limit": 5,
        "validity_in_hours": 24,
        "price": 40,
        "currency_code": "INR",
        "is_default": False,
    },
    {
        "name": "Premium",
        "description": "Share files up to 10GB for 3 days",
        "file_size_limit": 10,
        "validity_in_hours": 72,
        "price": 80,
        "currency_code": "INR",
        "is_default": False,
    },
]


def init_database():
    """Create all tables"""
    print("\n Creating database tables...")
    try:
        base.Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        print(f" Error creating tables: {e}")
        sys.exit(1)
    tables = inspect(engine).get_table_names()
    print(f" Tables: {', '.join(tables)}")


def seed_pricing_tiers(db) -> int:
    """Insert the default tiers that are missing (matched by name). Returns how many were added."""
    created = 0
    for tier_data in DEFAULT_TIERS:
        if db.query(PricingTier).filter(PricingTier.name == tier_data["name"]).first():
            continue
        db.add(PricingTier(**tier_data))
        created += 1
    db.commit()
    return created


def create_admin_user(db, email: str, password: str):
    """Create the admin account, or promote an existing user with that email."""
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user:
        if not user.is_admin:
            user.is_admin = True
            db.commit()
        return user, False

    user = User(
        name="Administrator",
        email=email,
        password_hash=get_password_hash(password),
        is_admin=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print(f" Initializing {settings.PROJECT_NAME} database")
    print("=" * 60)
    print(f" Database URL: {settings.DATABASE_URL}")

    init_database()

    db = SessionLocal()
    try:
        added = seed_pricing_tiers(db)
        print(f"\n Pricing tiers added: {added}")

        if settings.ADMIN_PASSWORD:
            admin, created = create_admin_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
            state = "created" if created else "already exists"
            print(f" Admin user {admin.email} {state}")
        else:
            print(" ADMIN_PASSWORD not set, skipping admin user")
    finally:
        db.close()

    print("\n" + "=" * 60)
    print("Database initialization completed!")
    print("=" * 60)
    print("\nNext steps:")
    print("1. Install: pip install -e .")
    print("2. Start server: uvicorn sharelink.main:app --reload")
    print("3. API Docs: http://localhost:8000/docs")
    print()
