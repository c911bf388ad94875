"""Tallying ballots and rendering them as JSON or CSV."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from evote.access import require_role, require_scope
from evote.errors import ForbiddenError
from evote.lifecycle import load_election
from evote.models.election_model import Election
from evote.models.user_model import Caller, Role
from evote.storage_mongo import BallotLedger, ElectionRepository
from evote.timeutils import to_iso_millis

logger = logging.getLogger(__name__)

AGGREGATE_CSV_HEADER = "election_id,candidate_id,candidate_name,total_votes"
RAW_CSV_HEADER = "election_id,voter_id,candidate_id,timestamp"


class CandidateTally(BaseModel):
    candidate_id: str
    candidate_name: str
    total_votes: int


class Aggregate(BaseModel):
    election_id: str
    title: str
    per_candidate: List[CandidateTally]

    def to_json(self) -> Dict[str, Any]:
        return {
            "election_id": self.election_id,
            "title": self.title,
            "results": [row.model_dump() for row in self.per_candidate],
        }


def tally_election(ledger: BallotLedger, election: Election) -> Aggregate:
    """Count ballots per candidate.

    Every candidate of the election gets a row, zero when nobody picked it,
    and rows follow the election's candidate order rather than the counts.
    """
    counts = ledger.tally(election.id)
    rows = [
        CandidateTally(candidate_id=c.id, candidate_name=c.name, total_votes=counts.get(c.id, 0))
        for c in election.candidates
    ]
    return Aggregate(election_id=election.id, title=election.title, per_candidate=rows)


def aggregate(
    repo: ElectionRepository, ledger: BallotLedger, election_id: str, now: Optional[datetime] = None
) -> Aggregate:
    return tally_election(ledger, load_election(repo, election_id, now))


def results_for_caller(
    repo: ElectionRepository,
    ledger: BallotLedger,
    caller: Caller,
    election_id: str,
    now: Optional[datetime] = None,
) -> Aggregate:
    """Voter-facing summary, only once the results are published."""
    election = load_election(repo, election_id, now)
    can_view = election.published and caller.role == Role.VOTER
    if not can_view:
        raise ForbiddenError("Results not available")
    require_scope(caller, election)
    return tally_election(ledger, election)


def _escape(value: Any) -> str:
    return str(value).replace('"', '""')


def _quoted(value: Any) -> str:
    return f'"{_escape(value)}"'


def aggregate_csv(
    repo: ElectionRepository,
    ledger: BallotLedger,
    caller: Caller,
    election_id: str,
    now: Optional[datetime] = None,
) -> str:
    require_role(caller, Role.MANAGER)
    election = load_election(repo, election_id, now)
    require_scope(caller, election)

    summary = tally_election(ledger, election)
    rows = [AGGREGATE_CSV_HEADER]
    for row in summary.per_candidate:
        rows.append(
            ",".join(
                [
                    _escape(summary.election_id),
                    _escape(row.candidate_id),
                    _quoted(row.candidate_name),
                    str(row.total_votes),
                ]
            )
        )
    logger.info(f"Aggregate CSV for election {election.id} exported by {caller.id}")
    return "\n".join(rows)


def raw_csv(
    repo: ElectionRepository,
    ledger: BallotLedger,
    caller: Caller,
    election_id: str,
    now: Optional[datetime] = None,
) -> str:
    """Every ballot of the election, one row each, for audit."""
    require_role(caller, Role.MANAGER, Role.ADMIN)
    election = load_election(repo, election_id, now)
    require_scope(caller, election)

    rows = [RAW_CSV_HEADER]
    for ballot in ledger.ballots(election.id):
        rows.append(
            ",".join(
                [
                    _escape(election.id),
                    _escape(ballot.voter_id),
                    _escape(ballot.candidate_id),
                    to_iso_millis(ballot.created_at),
                ]
            )
        )
    logger.info(f"Raw ballot CSV for election {election.id} exported by {caller.id} ({len(rows) - 1} rows)")
    return "\n".join(rows)
