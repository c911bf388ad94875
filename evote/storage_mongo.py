# storage_mongo.py
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from evote import config
from evote.errors import ConflictError, TransientError
from evote.models.election_model import Election, ElectionStatus
from evote.models.vote_model import Ballot

logger = logging.getLogger(__name__)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return ``value`` as an ObjectId, or None when it is not a valid one."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


@contextmanager
def storage_call(action: str):
    """Translate driver failures into TransientError; duplicates pass through."""
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"Storage failure while trying to {action}: {e}")
        raise TransientError("Storage temporarily unavailable") from e


class ElectionRepository:
    """Durable store of election definitions."""

    def __init__(self, db: Database):
        self.collection = db[config.ELECTIONS_COLLECTION]

    def insert(self, document: Dict[str, Any]) -> Election:
        with storage_call("create election"):
            result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(f"Election {result.inserted_id} created")
        return Election.from_document(document)

    def get(self, election_id: str) -> Optional[Election]:
        oid = parse_object_id(election_id)
        if oid is None:
            return None
        with storage_call("load election"):
            doc = self.collection.find_one({"_id": oid})
        return Election.from_document(doc) if doc else None

    def list(self, query: Optional[Dict[str, Any]] = None) -> List[Election]:
        with storage_call("list elections"):
            docs = list(self.collection.find(query or {}).sort("created_at", ASCENDING))
        return [Election.from_document(doc) for doc in docs]

    def _transition(self, election_id: str, expected: Dict[str, Any], changes: Dict[str, Any]) -> Optional[Election]:
        # the expected state sits in the filter, so at most one caller wins
        oid = parse_object_id(election_id)
        if oid is None:
            return None
        with storage_call("update election"):
            doc = self.collection.find_one_and_update(
                {"_id": oid, **expected},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return Election.from_document(doc) if doc else None

    def close_if_open(self, election_id: str, now: datetime) -> Optional[Election]:
        return self._transition(
            election_id,
            {"status": ElectionStatus.OPEN.value},
            {"status": ElectionStatus.CLOSED.value, "closed_at": now},
        )

    def expire_if_due(self, election_id: str, now: datetime) -> Optional[Election]:
        return self._transition(
            election_id,
            {"status": ElectionStatus.OPEN.value, "end_at": {"$ne": None, "$lt": now}},
            {"status": ElectionStatus.CLOSED.value, "closed_at": now},
        )

    def publish_if_closed(self, election_id: str, now: datetime) -> Optional[Election]:
        return self._transition(
            election_id,
            {"status": ElectionStatus.CLOSED.value, "published": False},
            {"published": True, "published_at": now},
        )

    def expire_all_due(self, now: datetime) -> int:
        with storage_call("close expired elections"):
            result = self.collection.update_many(
                {"status": ElectionStatus.OPEN.value, "end_at": {"$ne": None, "$lt": now}},
                {"$set": {"status": ElectionStatus.CLOSED.value, "closed_at": now}},
            )
        if result.modified_count:
            logger.info(f"Closed {result.modified_count} election(s) past their deadline")
        return result.modified_count


class BallotLedger:
    """Durable store of cast votes, one row per (election, voter)."""

    def __init__(self, db: Database):
        self.collection = db[config.VOTES_COLLECTION]

    def has_voted(self, election_id: str, voter_id: str) -> bool:
        with storage_call("check existing ballot"):
            doc = self.collection.find_one(
                {"election_id": ObjectId(election_id), "voter_id": voter_id},
                {"_id": 1},
            )
        return doc is not None

    def record(
        self,
        election_id: str,
        voter_id: str,
        candidate_id: str,
        created_at: datetime,
        organization_id: Optional[str] = None,
    ) -> Ballot:
        """Insert a ballot; the unique index rejects a second one for the same voter."""
        document = {
            "election_id": ObjectId(election_id),
            "voter_id": voter_id,
            "candidate_id": candidate_id,
            "organization_id": organization_id,
            "created_at": created_at,
        }
        try:
            with storage_call("record ballot"):
                result = self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning(f"Duplicate ballot rejected for voter {voter_id} in election {election_id}")
            raise ConflictError("You have already voted in this election")
        document["_id"] = result.inserted_id
        logger.info(f"Ballot recorded for voter {voter_id} in election {election_id}")
        return Ballot.from_document(document)

    def tally(self, election_id: str) -> Dict[str, int]:
        pipeline = [
            {"$match": {"election_id": ObjectId(election_id)}},
            {"$group": {"_id": "$candidate_id", "total": {"$sum": 1}}},
        ]
        with storage_call("aggregate ballots"):
            grouped = list(self.collection.aggregate(pipeline))
        return {str(row["_id"]): row["total"] for row in grouped}

    def ballots(self, election_id: str) -> List[Ballot]:
        with storage_call("read ballots"):
            docs = list(
                self.collection.find({"election_id": ObjectId(election_id)}).sort(
                    [("created_at", ASCENDING), ("_id", ASCENDING)]
                )
            )
        return [Ballot.from_document(doc) for doc in docs]

    def count(self, election_id: str) -> int:
        with storage_call("count ballots"):
            return self.collection.count_documents({"election_id": ObjectId(election_id)})
