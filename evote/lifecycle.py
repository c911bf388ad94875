"""Election lifecycle: open -> closed, then published once.

Deadlines are enforced when an election is read, not by a timer: any code
path that loads an election through ``load_election`` sees an open election
whose ``end_at`` has passed as closed, and the flip is persisted before the
caller continues. ``expire_due_elections`` does the same in bulk and backs
the optional sweep command, but the read-time check stays authoritative.
"""
import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId

from evote.access import in_scope, require_role, require_scope
from evote.errors import InvalidStateError, NotFoundError
from evote.models.election_model import Election, ElectionCreate, ElectionStatus
from evote.models.user_model import Caller, Role
from evote.storage_mongo import ElectionRepository
from evote.timeutils import to_storage, utcnow

logger = logging.getLogger(__name__)


def create_election(
    repo: ElectionRepository, caller: Caller, payload: ElectionCreate, now: Optional[datetime] = None
) -> Election:
    require_role(caller, Role.MANAGER, Role.ADMIN)
    now = now or utcnow()
    document = {
        "title": payload.title,
        "candidates": [{"id": str(ObjectId()), "name": c.name} for c in payload.candidates],
        "status": ElectionStatus.OPEN.value,
        "published": False,
        "end_at": to_storage(payload.end_at),
        "created_by": caller.id,
        "organization_id": caller.organization_id,
        "created_at": now,
        "closed_at": None,
        "published_at": None,
    }
    return repo.insert(document)


def load_election(repo: ElectionRepository, election_id: str, now: Optional[datetime] = None) -> Election:
    """Fetch an election, closing it first if its deadline has passed."""
    now = now or utcnow()
    election = repo.get(election_id)
    if election is None:
        raise NotFoundError("Election not found")
    if election.is_expired(now):
        expired = repo.expire_if_due(election_id, now)
        if expired is not None:
            logger.info(f"Election {election_id} closed at read time, deadline {election.end_at} passed")
            return expired
        # someone else changed it in between; the stored state is authoritative
        election = repo.get(election_id)
        if election is None:
            raise NotFoundError("Election not found")
    return election


def expire_due_elections(repo: ElectionRepository, now: Optional[datetime] = None) -> int:
    return repo.expire_all_due(now or utcnow())


def list_elections(repo: ElectionRepository, caller: Caller, now: Optional[datetime] = None) -> List[Election]:
    expire_due_elections(repo, now)
    return [e for e in repo.list() if in_scope(caller, e)]


def close_election(
    repo: ElectionRepository, caller: Caller, election_id: str, now: Optional[datetime] = None
) -> Election:
    require_role(caller, Role.MANAGER, Role.ADMIN)
    now = now or utcnow()
    election = load_election(repo, election_id, now)
    require_scope(caller, election)
    if election.status != ElectionStatus.OPEN:
        raise InvalidStateError("Already closed")

    closed = repo.close_if_open(election_id, now)
    if closed is None:
        raise InvalidStateError("Already closed")
    logger.info(f"Election {election_id} closed by {caller.id}")
    return closed


def publish_election(
    repo: ElectionRepository, caller: Caller, election_id: str, now: Optional[datetime] = None
) -> Election:
    require_role(caller, Role.MANAGER)
    now = now or utcnow()
    election = load_election(repo, election_id, now)
    require_scope(caller, election)
    if election.status != ElectionStatus.CLOSED:
        raise InvalidStateError("Election must be closed before publishing")
    if election.published:
        raise InvalidStateError("Already published")

    published = repo.publish_if_closed(election_id, now)
    if published is None:
        raise InvalidStateError("Already published")
    logger.info(f"Results of election {election_id} published by {caller.id}")
    return published
