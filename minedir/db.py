"""MongoDB connection settings loaded from the environment or a .env file."""

from __future__ import annotations

import logging
import os
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

log = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(ROOT_DIR / ".env")

DEFAULT_DB_NAME = "mining_app"
SERVER_SELECTION_TIMEOUT_MS = int(os.environ.get("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))

_CREDENTIALS = re.compile(r"//[^/@:]+:[^/@]+@")


def get_mongo_uri() -> str:
    uri = (os.environ.get("MONGO_URI") or os.environ.get("MONGODB_URI") or "").strip()
    if not uri:
        raise RuntimeError(
            "MONGO_URI environment variable is not defined. "
            "Set MONGO_URI (or MONGODB_URI) in the environment or in the .env file."
        )
    return uri


def mask_uri(uri: str) -> str:
    return _CREDENTIALS.sub("//***:***@", uri)


def environment_summary() -> Dict[str, str]:
    uri = os.environ.get("MONGO_URI") or os.environ.get("MONGODB_URI")
    return {
        "APP_ENV": os.environ.get("APP_ENV") or "undefined",
        "MONGO_URI": "defined" if os.environ.get("MONGO_URI") else "undefined",
        "MONGODB_URI": "defined" if os.environ.get("MONGODB_URI") else "undefined",
        "uri": mask_uri(uri) if uri else "-",
        "DB_NAME": os.environ.get("DB_NAME") or "(from URI)",
        "cwd": os.getcwd(),
        "env_file": str(ROOT_DIR / ".env"),
    }


def create_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(uri or get_mongo_uri(), serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS)


def get_database(client: AsyncIOMotorClient, name: Optional[str] = None) -> AsyncIOMotorDatabase:
    name = name or os.environ.get("DB_NAME")
    if name:
        return client[name]
    return client.get_default_database(default=DEFAULT_DB_NAME)


@asynccontextmanager
async def connect(uri: Optional[str] = None, db_name: Optional[str] = None) -> AsyncIterator[AsyncIOMotorDatabase]:
    """Yield a database handle after confirming the server is reachable.

    Raises ``pymongo.errors.ConnectionFailure`` when no server answers within
    the selection timeout.
    """
    uri = uri or get_mongo_uri()
    client = create_client(uri)
    try:
        await client.admin.command("ping")
        db = get_database(client, db_name)
        log.info("Connected to MongoDB at %s (db=%s)", mask_uri(uri), db.name)
        yield db
    finally:
        client.close()
        log.info("Disconnected from MongoDB")
