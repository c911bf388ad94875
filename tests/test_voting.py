import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from conftest import make_caller, new_election
from evote.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    TransientError,
)
from evote.lifecycle import close_election
from evote.models.election_model import ElectionStatus
from evote.models.user_model import Role
from evote.timeutils import utcnow
from evote.voting import cast_vote


def test_vote_recorded(repo, ledger, manager, voter):
    election = new_election(repo, manager)
    a = election.candidates[0]
    ballot = cast_vote(repo, ledger, voter, election.id, a.id)
    assert ballot.election_id == election.id
    assert ballot.voter_id == voter.id
    assert ballot.candidate_id == a.id
    assert ledger.count(election.id) == 1


def test_second_vote_conflicts(repo, ledger, manager, voter):
    election = new_election(repo, manager)
    a, b = election.candidates
    cast_vote(repo, ledger, voter, election.id, a.id)
    with pytest.raises(ConflictError):
        cast_vote(repo, ledger, voter, election.id, b.id)
    assert ledger.tally(election.id) == {a.id: 1}


def test_race_past_existence_check_still_conflicts(repo, ledger, manager, voter, monkeypatch):
    # both requests see "not voted yet"; the unique index decides
    election = new_election(repo, manager)
    monkeypatch.setattr(ledger, "has_voted", lambda election_id, voter_id: False)
    cast_vote(repo, ledger, voter, election.id, election.candidates[0].id)
    with pytest.raises(ConflictError):
        cast_vote(repo, ledger, voter, election.id, election.candidates[1].id)
    assert ledger.count(election.id) == 1


class SerializedCollection:
    """Runs each call alone, the way a single MongoDB operation is atomic."""

    def __init__(self, collection, lock):
        self._collection = collection
        self._lock = lock

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        def call(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return call


def test_concurrent_votes_from_one_voter(repo, ledger, manager, voter):
    attempts = 8
    election = new_election(repo, manager)
    candidate_ids = [c.id for c in election.candidates]

    lock = threading.Lock()
    repo.collection = SerializedCollection(repo.collection, lock)
    ledger.collection = SerializedCollection(ledger.collection, lock)

    # hold every request after its existence check so all of them pass it
    barrier = threading.Barrier(attempts)
    check = ledger.has_voted

    def racing_check(election_id, voter_id):
        seen = check(election_id, voter_id)
        barrier.wait(timeout=10)
        return seen

    ledger.has_voted = racing_check

    def attempt(i):
        try:
            cast_vote(repo, ledger, voter, election.id, candidate_ids[i % 2])
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, range(attempts)))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == attempts - 1
    assert ledger.count(election.id) == 1


def test_same_voter_different_elections(repo, ledger, manager, voter):
    first = new_election(repo, manager, title="first")
    second = new_election(repo, manager, title="second")
    cast_vote(repo, ledger, voter, first.id, first.candidates[0].id)
    cast_vote(repo, ledger, voter, second.id, second.candidates[0].id)
    assert ledger.count(first.id) == 1
    assert ledger.count(second.id) == 1


def test_precondition_order(repo, ledger, manager, voter):
    with pytest.raises(NotFoundError):
        cast_vote(repo, ledger, voter, "5f0000000000000000000000", "x")

    election = new_election(repo, manager)
    with pytest.raises(InvalidArgumentError):
        cast_vote(repo, ledger, voter, election.id, "not-a-candidate")
    with pytest.raises(InvalidArgumentError):
        cast_vote(repo, ledger, voter, election.id, None)

    close_election(repo, manager, election.id)
    # closed beats a bad candidate id
    with pytest.raises(InvalidStateError):
        cast_vote(repo, ledger, voter, election.id, "not-a-candidate")


def test_closed_beats_already_voted(repo, ledger, manager, voter):
    election = new_election(repo, manager)
    cast_vote(repo, ledger, voter, election.id, election.candidates[0].id)
    close_election(repo, manager, election.id)
    with pytest.raises(InvalidStateError):
        cast_vote(repo, ledger, voter, election.id, election.candidates[0].id)


def test_vote_after_deadline_without_close(repo, ledger, manager, voter):
    now = utcnow()
    election = new_election(repo, manager, end_at=now + timedelta(minutes=10))
    with pytest.raises(InvalidStateError):
        cast_vote(repo, ledger, voter, election.id, election.candidates[0].id, now=now + timedelta(minutes=11))
    assert repo.get(election.id).status == ElectionStatus.CLOSED
    assert ledger.count(election.id) == 0


def test_vote_after_real_deadline(repo, ledger, manager, voter):
    election = new_election(repo, manager, end_at=utcnow() - timedelta(seconds=1))
    with pytest.raises(InvalidStateError):
        cast_vote(repo, ledger, voter, election.id, election.candidates[0].id)


def test_vote_at_exact_deadline_is_accepted(repo, ledger, manager, voter):
    end_at = utcnow().replace(microsecond=0) + timedelta(hours=1)
    election = new_election(repo, manager, end_at=end_at)
    ballot = cast_vote(repo, ledger, voter, election.id, election.candidates[0].id, now=end_at)
    assert ballot.election_id == election.id
    assert repo.get(election.id).status == ElectionStatus.OPEN

    late_voter = make_caller(Role.VOTER)
    with pytest.raises(InvalidStateError):
        cast_vote(
            repo, ledger, late_voter, election.id, election.candidates[0].id, now=end_at + timedelta(milliseconds=1)
        )
    assert ledger.count(election.id) == 1


@pytest.mark.parametrize("role", [Role.MANAGER, Role.ADMIN, Role.PENDING])
def test_only_voters_vote(repo, ledger, manager, role):
    election = new_election(repo, manager)
    with pytest.raises(ForbiddenError):
        cast_vote(repo, ledger, make_caller(role), election.id, election.candidates[0].id)
    assert ledger.count(election.id) == 0


def test_voter_outside_organization(repo, ledger):
    election = new_election(repo, make_caller(Role.MANAGER, "org-a"))
    outsider = make_caller(Role.VOTER, "org-b")
    insider = make_caller(Role.VOTER, "org-a")
    with pytest.raises(ForbiddenError):
        cast_vote(repo, ledger, outsider, election.id, election.candidates[0].id)
    ballot = cast_vote(repo, ledger, insider, election.id, election.candidates[0].id)
    assert ballot.organization_id == "org-a"


def test_storage_outage_is_transient(repo, ledger, manager, voter):
    election = new_election(repo, manager)
    ledger.collection = MagicMock()
    ledger.collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(TransientError):
        cast_vote(repo, ledger, voter, election.id, election.candidates[0].id)
