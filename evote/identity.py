import logging
from typing import Any, Dict, Optional

from pymongo.database import Database

from evote import config
from evote.errors import ForbiddenError, UnauthorizedError
from evote.models.user_model import Caller, Role
from evote.storage_mongo import parse_object_id, storage_call

logger = logging.getLogger(__name__)


class IdentityStore:
    """Read-only view of the account records that gate every operation."""

    def __init__(self, db: Database):
        self.collection = db[config.USERS_COLLECTION]

    def _account(self, caller_id: str) -> Optional[Dict[str, Any]]:
        oid = parse_object_id(caller_id)
        if oid is None:
            return None
        with storage_call("load account"):
            return self.collection.find_one({"_id": oid}, {"role": 1, "organization_id": 1})

    def _role(self, account: Dict[str, Any]) -> Optional[Role]:
        try:
            return Role(account.get("role"))
        except ValueError:
            logger.warning(f"Account {account['_id']} has unknown role {account.get('role')!r}")
            return None

    def get_caller_role(self, caller_id: str) -> Optional[Role]:
        account = self._account(caller_id)
        return self._role(account) if account else None

    def get_caller_org(self, caller_id: str) -> Optional[str]:
        account = self._account(caller_id)
        return account.get("organization_id") if account else None

    def resolve(self, caller_id: str) -> Caller:
        account = self._account(caller_id)
        if account is None:
            logger.warning(f"Token presented for unknown account {caller_id}")
            raise UnauthorizedError("Unauthorized")
        role = self._role(account)
        if role is None:
            raise ForbiddenError("Forbidden")
        return Caller(
            id=str(account["_id"]),
            role=role,
            organization_id=account.get("organization_id"),
        )
