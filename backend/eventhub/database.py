"""
EventHub Backend — MongoDB Connection Management
==================================================

What:  Owns the Motor client for the process and exposes the events collection.
How:   `MongoDatabase` is constructed by the application factory, connected in
       the FastAPI lifespan, and closed on shutdown. Route handlers receive
       the collection through the `get_events_collection` dependency, which
       reads the instance attached to `app.state`.
Who:   main.py (lifecycle), routes (dependency), health check (ping).

Connection Strategy:
    Motor keeps its own connection pool per client, so one client is shared by
    every request. The Stable API is pinned to version "1" (strict, with
    deprecation errors) so server upgrades cannot silently change behavior.
    Startup pings the server once; a failed ping is fatal and the process
    exits instead of serving requests it cannot fulfil.
"""

import logging
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from eventhub.config import Settings, settings as default_settings
from eventhub.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class MongoDatabase:
    """
    Explicit init/teardown wrapper around a Motor client.

    Lifecycle:
        db = MongoDatabase(settings)
        await db.connect()     # creates client, pings server (raises on failure)
        db.events              # AsyncIOMotorCollection used by services
        await db.ping()        # health check
        db.close()             # releases pooled connections
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.client: Optional[AsyncIOMotorClient] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    async def connect(self) -> None:
        """
        Create the client and verify the server is reachable.

        Raises:
            DatabaseError: the initial ping failed. The caller treats this as
                fatal; there is no retry.
        """
        if self.client is not None:
            return

        self.client = AsyncIOMotorClient(
            self.config.mongo_uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            serverSelectionTimeoutMS=self.config.mongo_server_selection_timeout_ms,
        )
        try:
            await self.ping()
        except DatabaseError:
            self.close()
            raise

        logger.info("Connected to MongoDB, using database: %s", self.config.mongo_db_name)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> None:
        """Round-trip a `ping` command; raises DatabaseError on any driver failure."""
        try:
            await self.db.command("ping")
        except PyMongoError as e:
            logger.error("Error connecting to MongoDB: %s", str(e))
            raise DatabaseError(
                message="Could not reach the database",
                reason=str(e),
            )

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self.client is None:
            raise DatabaseError(
                message="Database not initialized",
                reason="connect() must be awaited before the database is used",
            )
        return self.client[self.config.mongo_db_name]

    @property
    def events(self) -> AsyncIOMotorCollection:
        return self.db[self.config.mongo_events_collection]


# ── Dependencies ──────────────────────────────────────────────────────────

def get_database(request: Request) -> MongoDatabase:
    """FastAPI dependency returning the MongoDatabase attached by create_app()."""
    return request.app.state.database


def get_events_collection(request: Request) -> AsyncIOMotorCollection:
    """
    FastAPI dependency providing the events collection.

    Example usage in a route:
        @router.get("/events/{event_id}")
        async def get_event(event_id: str,
                            collection=Depends(get_events_collection)):
            ...

    Tests replace this dependency with an in-memory collection via
    `app.dependency_overrides`.
    """
    return get_database(request).events
