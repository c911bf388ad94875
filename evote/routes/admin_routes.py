from typing import List

from fastapi import APIRouter, Depends, Request
from pymongo.database import Database

from evote.crud import approve_user, get_pending_users, reject_user
from evote.dependencies import get_db, require_roles
from evote.models.user_model import Caller, Role
from evote.rate_limit import admin_limit
from evote.schemas import ApproveRequest, UserOut

admin_router = APIRouter(prefix="/admin", tags=["Admin"])


@admin_router.get("/pending-users", response_model=List[UserOut])
@admin_limit
def list_pending_users(
    request: Request,
    caller: Caller = Depends(require_roles(Role.ADMIN)),
    db: Database = Depends(get_db),
):
    return get_pending_users(db)


@admin_router.post("/approve/{user_id}")
@admin_limit
def approve(
    request: Request,
    user_id: str,
    payload: ApproveRequest,
    caller: Caller = Depends(require_roles(Role.ADMIN)),
    db: Database = Depends(get_db),
):
    # a scoped admin can only hand out its own organization
    organization_id = payload.organization_id if caller.organization_id is None else caller.organization_id
    user = approve_user(db, user_id, payload.role, organization_id)
    return {"message": "User approved", "id": user.id, "role": user.role}


@admin_router.post("/reject/{user_id}")
@admin_limit
def reject(
    request: Request,
    user_id: str,
    caller: Caller = Depends(require_roles(Role.ADMIN)),
    db: Database = Depends(get_db),
):
    reject_user(db, user_id)
    return {"message": "User rejected and deleted"}
