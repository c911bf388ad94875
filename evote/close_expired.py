"""Close every open election whose deadline has passed.

Meant to run from cron. Reads already close expired elections on their own,
this only keeps listings and exports tidy between requests.

Usage: python -m evote.close_expired
"""
import logging

from evote import config
from evote.database.connection import MongoConnector, get_database
from evote.lifecycle import expire_due_elections
from evote.storage_mongo import ElectionRepository

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    try:
        closed = expire_due_elections(ElectionRepository(get_database()))
        print(f"Closed {closed} expired election(s)")
    finally:
        MongoConnector.reset()


if __name__ == "__main__":
    main()
