"""FastAPI dependencies: database handles and the calling account."""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.database import Database

from evote.database.connection import get_database
from evote.errors import ForbiddenError, UnauthorizedError
from evote.identity import IdentityStore
from evote.models.user_model import Caller, Role
from evote.security import decode_access_token
from evote.storage_mongo import BallotLedger, ElectionRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Database:
    return get_database()


def get_election_repo(db: Database = Depends(get_db)) -> ElectionRepository:
    return ElectionRepository(db)


def get_ballot_ledger(db: Database = Depends(get_db)) -> BallotLedger:
    return BallotLedger(db)


def get_identity_store(db: Database = Depends(get_db)) -> IdentityStore:
    return IdentityStore(db)


def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityStore = Depends(get_identity_store),
) -> Caller:
    if credentials is None:
        raise UnauthorizedError("Unauthorized")
    caller_id = decode_access_token(credentials.credentials)
    if not caller_id:
        raise UnauthorizedError("Unauthorized")
    # role and organization come from the store, not from the token
    caller = identity.resolve(caller_id)
    if caller.role == Role.PENDING:
        raise ForbiddenError("Account pending approval")
    return caller


def require_roles(*roles: Role):
    def checker(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not caller.has_role(*roles):
            raise ForbiddenError("Forbidden")
        return caller

    return checker
