from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from evote.dependencies import get_ballot_ledger, get_current_caller, get_election_repo, require_roles
from evote.models.user_model import Caller, Role
from evote.models.vote_model import VoteIn
from evote.rate_limit import api_limit
from evote.results import aggregate_csv, raw_csv, results_for_caller
from evote.storage_mongo import BallotLedger, ElectionRepository
from evote.voting import cast_vote

vote_router = APIRouter(prefix="/elections", tags=["Vote"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ------------------------------
# CAST VOTE
# ------------------------------
@vote_router.post("/{election_id}/vote", status_code=201)
@api_limit
def vote(
    request: Request,
    election_id: str,
    payload: VoteIn,
    caller: Caller = Depends(require_roles(Role.VOTER)),
    repo: ElectionRepository = Depends(get_election_repo),
    ledger: BallotLedger = Depends(get_ballot_ledger),
):
    ballot = cast_vote(repo, ledger, caller, election_id, payload.candidate_id)
    return {
        "message": "Vote recorded",
        "election_id": ballot.election_id,
        "candidate_id": ballot.candidate_id,
    }


# ------------------------------
# RESULTS
# ------------------------------
@vote_router.get("/{election_id}/results")
@api_limit
def get_results(
    request: Request,
    election_id: str,
    caller: Caller = Depends(get_current_caller),
    repo: ElectionRepository = Depends(get_election_repo),
    ledger: BallotLedger = Depends(get_ballot_ledger),
):
    return results_for_caller(repo, ledger, caller, election_id).to_json()


@vote_router.get("/{election_id}/results.csv")
@api_limit
def get_results_csv(
    request: Request,
    election_id: str,
    caller: Caller = Depends(require_roles(Role.MANAGER)),
    repo: ElectionRepository = Depends(get_election_repo),
    ledger: BallotLedger = Depends(get_ballot_ledger),
):
    content = aggregate_csv(repo, ledger, caller, election_id)
    return _csv_response(content, f"results_{election_id}.csv")


@vote_router.get("/{election_id}/results_raw.csv")
@api_limit
def get_raw_results_csv(
    request: Request,
    election_id: str,
    caller: Caller = Depends(require_roles(Role.MANAGER, Role.ADMIN)),
    repo: ElectionRepository = Depends(get_election_repo),
    ledger: BallotLedger = Depends(get_ballot_ledger),
):
    content = raw_csv(repo, ledger, caller, election_id)
    return _csv_response(content, f"results_raw_{election_id}.csv")
