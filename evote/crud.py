import logging
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from evote import config
from evote.errors import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from evote.models.user_model import Role
from evote.schemas import RegisterRequest, UserOut
from evote.security import hash_password, verify_password
from evote.storage_mongo import parse_object_id, storage_call
from evote.timeutils import utcnow

logger = logging.getLogger(__name__)


def _users(db: Database):
    return db[config.USERS_COLLECTION]


def _to_out(user: Dict[str, Any]) -> UserOut:
    return UserOut(id=str(user["_id"]), **{k: v for k, v in user.items() if k != "_id"})


# Register a new account; it stays pending until an admin approves it
def create_user(db: Database, data: RegisterRequest) -> UserOut:
    user = {
        "email": data.email.lower(),
        "name": data.name.strip(),
        "password_hash": hash_password(data.password),
        "role": Role.PENDING.value,
        "organization_id": None,
        "created_at": utcnow(),
        "last_login": None,
    }
    try:
        with storage_call("register account"):
            result = _users(db).insert_one(user)
    except DuplicateKeyError:
        logger.warning(f"Registration refused, email {user['email']} already exists")
        raise ConflictError("Email already registered")
    user["_id"] = result.inserted_id
    logger.info(f"Account {result.inserted_id} registered, awaiting approval")
    return _to_out(user)


# Get all pending accounts
def get_pending_users(db: Database) -> List[UserOut]:
    with storage_call("list pending accounts"):
        users = list(_users(db).find({"role": Role.PENDING.value}))
    return [_to_out(u) for u in users]


# Give a pending account its role
def approve_user(db: Database, user_id: str, role: Role, organization_id: Optional[str] = None) -> UserOut:
    if role == Role.PENDING:
        raise InvalidArgumentError("Role required")
    oid = parse_object_id(user_id)
    if oid is None:
        raise NotFoundError("User not found")
    with storage_call("approve account"):
        updated = _users(db).find_one_and_update(
            {"_id": oid, "role": Role.PENDING.value},
            {"$set": {"role": role.value, "organization_id": organization_id}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            exists = _users(db).find_one({"_id": oid}, {"_id": 1}) is not None
    if updated is None:
        if not exists:
            raise NotFoundError("User not found")
        raise InvalidStateError("User is not pending")
    logger.info(f"Account {user_id} approved as {role.value}")
    return _to_out(updated)


# Reject and delete a pending account
def reject_user(db: Database, user_id: str) -> None:
    oid = parse_object_id(user_id)
    if oid is None:
        raise NotFoundError("User not found")
    with storage_call("reject account"):
        result = _users(db).delete_one({"_id": oid, "role": Role.PENDING.value})
    if result.deleted_count == 0:
        raise NotFoundError("User not found or not pending")
    logger.info(f"Account {user_id} rejected and deleted")


# Login
def login_user(db: Database, email: str, password: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    with storage_call("load account"):
        user = _users(db).find_one({"email": email.lower()})
    if not user:
        return None, "Invalid credentials"

    if not verify_password(password, user["password_hash"]):
        return None, "Invalid credentials"

    if user.get("role") == Role.PENDING.value:
        return None, "Account pending approval"

    with storage_call("record login"):
        _users(db).update_one({"_id": user["_id"]}, {"$set": {"last_login": utcnow()}})
    return user, None
