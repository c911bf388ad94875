"""Ballot admission: at most one ballot per voter per election.

The existence check below only gives a friendly early answer. Two requests
from the same voter can both pass it; the unique index on
(election_id, voter_id) then rejects the later insert and the ledger turns
that into the same ConflictError.
"""
import logging
from datetime import datetime
from typing import Optional

from evote.access import require_role, require_scope
from evote.errors import ConflictError, InvalidArgumentError, InvalidStateError
from evote.lifecycle import load_election
from evote.models.election_model import ElectionStatus
from evote.models.user_model import Caller, Role
from evote.models.vote_model import Ballot
from evote.storage_mongo import BallotLedger, ElectionRepository
from evote.timeutils import utcnow

logger = logging.getLogger(__name__)


def cast_vote(
    repo: ElectionRepository,
    ledger: BallotLedger,
    caller: Caller,
    election_id: str,
    candidate_id: Optional[str],
    now: Optional[datetime] = None,
) -> Ballot:
    # role is re-checked here even though the route already gates it
    require_role(caller, Role.VOTER)
    now = now or utcnow()

    election = load_election(repo, election_id, now)
    require_scope(caller, election)

    if election.status != ElectionStatus.OPEN:
        raise InvalidStateError("Election is not open")

    if not candidate_id or election.candidate(candidate_id) is None:
        raise InvalidArgumentError("Invalid candidateId")

    if ledger.has_voted(election.id, caller.id):
        logger.warning(f"Voter {caller.id} tried to vote twice in election {election.id}")
        raise ConflictError("You have already voted in this election")

    return ledger.record(
        election_id=election.id,
        voter_id=caller.id,
        candidate_id=candidate_id,
        created_at=now,
        organization_id=election.organization_id,
    )
