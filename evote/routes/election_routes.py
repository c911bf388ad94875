from typing import List

from fastapi import APIRouter, Depends, Request

from evote.dependencies import get_current_caller, get_election_repo, require_roles
from evote.lifecycle import close_election, create_election, list_elections, publish_election
from evote.models.election_model import Election, ElectionCreate, ElectionSummary
from evote.models.user_model import Caller, Role
from evote.rate_limit import admin_limit, api_limit
from evote.storage_mongo import ElectionRepository

router = APIRouter(prefix="/elections", tags=["Election"])


@router.post("", response_model=Election, status_code=201)
@api_limit
@admin_limit
def create(
    request: Request,
    payload: ElectionCreate,
    caller: Caller = Depends(require_roles(Role.MANAGER, Role.ADMIN)),
    repo: ElectionRepository = Depends(get_election_repo),
):
    return create_election(repo, caller, payload)


@router.get("", response_model=List[ElectionSummary])
@api_limit
def get_all_elections(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    repo: ElectionRepository = Depends(get_election_repo),
):
    return [ElectionSummary.from_election(e) for e in list_elections(repo, caller)]


@router.post("/{election_id}/close")
@api_limit
@admin_limit
def close(
    request: Request,
    election_id: str,
    caller: Caller = Depends(require_roles(Role.MANAGER, Role.ADMIN)),
    repo: ElectionRepository = Depends(get_election_repo),
):
    close_election(repo, caller, election_id)
    return {"message": "Election closed"}


@router.post("/{election_id}/publish")
@api_limit
@admin_limit
def publish(
    request: Request,
    election_id: str,
    caller: Caller = Depends(require_roles(Role.MANAGER)),
    repo: ElectionRepository = Depends(get_election_repo),
):
    publish_election(repo, caller, election_id)
    return {"message": "Results published"}
