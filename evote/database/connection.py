import logging

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from evote import config

logger = logging.getLogger(__name__)


class MongoConnector:
    """Process-wide MongoDB client.

    The client is created lazily on first use. Every call is bounded by
    ``MONGO_TIMEOUT_MS`` so a missing server surfaces as an error instead
    of hanging the request.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super(MongoConnector, cls).__new__(cls)
            instance.client = MongoClient(
                config.MONGO_URI,
                serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS,
                connectTimeoutMS=config.MONGO_TIMEOUT_MS,
                socketTimeoutMS=config.MONGO_TIMEOUT_MS,
            )
            instance.db = instance.client[config.MONGO_DB]
            logger.info(f"MongoDB client created for database: {config.MONGO_DB}")
            cls._instance = instance
        return cls._instance

    @classmethod
    def reset(cls):
        if cls._instance is not None:
            cls._instance.client.close()
            logger.info("MongoDB connection closed")
        cls._instance = None


def get_database() -> Database:
    return MongoConnector().db


def ensure_indexes(db: Database) -> None:
    """Create the indexes the vote invariants depend on.

    The compound unique index on (election_id, voter_id) is what makes a
    second ballot from the same voter fail, even when two requests race.
    """
    votes = db[config.VOTES_COLLECTION]
    votes.create_index(
        [("election_id", ASCENDING), ("voter_id", ASCENDING)],
        unique=True,
        name="one_ballot_per_voter",
    )
    votes.create_index([("election_id", ASCENDING), ("created_at", ASCENDING)])
    db[config.ELECTIONS_COLLECTION].create_index([("status", ASCENDING), ("end_at", ASCENDING)])
    db[config.USERS_COLLECTION].create_index("email", unique=True)
    db[config.USERS_COLLECTION].create_index("role")
    logger.info("MongoDB indexes ensured")
