"""Create the first admin account, or reset it when SEED_ADMIN_RESET=true.

Usage: python -m evote.seed_admin
"""
import logging

from pymongo.database import Database

from evote import config
from evote.database.connection import MongoConnector, ensure_indexes, get_database
from evote.models.user_model import Role
from evote.security import hash_password
from evote.timeutils import utcnow

logger = logging.getLogger(__name__)


def seed_admin(db: Database, email: str, name: str, password: str, reset: bool = False) -> str:
    """Return "created", "reset" or "exists" depending on what was done."""
    users = db[config.USERS_COLLECTION]
    email = email.lower()
    existing = users.find_one({"email": email})
    if existing:
        if not reset:
            print(f"Admin already exists: {email}")
            return "exists"
        users.update_one(
            {"_id": existing["_id"]},
            {"$set": {"password_hash": hash_password(password), "role": Role.ADMIN.value, "name": name}},
        )
        print(f"Admin password reset: {email}")
        return "reset"

    users.insert_one(
        {
            "email": email,
            "name": name,
            "password_hash": hash_password(password),
            "role": Role.ADMIN.value,
            "organization_id": None,
            "created_at": utcnow(),
            "last_login": None,
        }
    )
    print(f"Seeded admin: {email}")
    return "created"


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    db = get_database()
    try:
        ensure_indexes(db)
        seed_admin(
            db,
            config.SEED_ADMIN_EMAIL,
            config.SEED_ADMIN_NAME,
            config.SEED_ADMIN_PASSWORD,
            reset=config.SEED_ADMIN_RESET,
        )
    finally:
        MongoConnector.reset()


if __name__ == "__main__":
    main()
