"""
Credential storage for gateway users.
Uses Redis when REDIS_URL is configured, in-memory storage otherwise.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.core.security import get_password_hash

logger = logging.getLogger("employee_api.credential_store")

DEMO_USERS = {
    "admin": "admin",
    "user": "user123",
}


@dataclass(frozen=True)
class CredentialRecord:
    """A registered user: username plus bcrypt hash."""
    username: str
    hashed_password: str
    disabled: bool = False
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "CredentialRecord":
        data = json.loads(raw)
        return cls(
            username=data["username"],
            hashed_password=data["hashed_password"],
            disabled=bool(data.get("disabled", False)),
            created_at=data.get("created_at") or datetime.now(timezone.utc).isoformat(),
        )


class CredentialStore:
    """Base class for credential storage backends."""

    async def get(self, username: str) -> Optional[CredentialRecord]:
        """Return the record for an exact (case-sensitive) username, or None."""
        raise NotImplementedError

    async def add(self, record: CredentialRecord) -> bool:
        """Insert the record unless the username exists. Returns True if inserted."""
        raise NotImplementedError

    async def exists(self, username: str) -> bool:
        return await self.get(username) is not None

    async def close(self) -> None:
        return None


class InMemoryCredentialStore(CredentialStore):
    """
    In-memory credential store for single-instance deployments.
    Not suitable for horizontal scaling.
    """

    def __init__(self):
        self._records: dict[str, CredentialRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, username: str) -> Optional[CredentialRecord]:
        async with self._lock:
            return self._records.get(username)

    async def add(self, record: CredentialRecord) -> bool:
        async with self._lock:
            if record.username in self._records:
                return False
            self._records[record.username] = record
            return True


class RedisCredentialStore(CredentialStore):
    """
    Redis-backed credential store for horizontal scaling.
    All records live in a single hash; HSETNX makes inserts atomic.
    """

    HASH_KEY = "employee_api:credentials"

    def __init__(self, redis_url: str, client=None):
        self._url = redis_url
        self._redis = client

    async def _get_client(self):
        if self._redis is None:
            import redis.asyncio as redis
            self._redis = redis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis credential store connected")
        return self._redis

    async def get(self, username: str) -> Optional[CredentialRecord]:
        client = await self._get_client()
        raw = await client.hget(self.HASH_KEY, username)
        if raw is None:
            return None
        return CredentialRecord.from_json(raw)

    async def add(self, record: CredentialRecord) -> bool:
        client = await self._get_client()
        inserted = await client.hsetnx(self.HASH_KEY, record.username, record.to_json())
        return bool(inserted)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


async def seed_demo_users(store: CredentialStore) -> int:
    """Register the demo accounts that are not present yet. Returns how many were added."""
    added = 0
    for username, password in DEMO_USERS.items():
        record = CredentialRecord(username=username, hashed_password=get_password_hash(password))
        if await store.add(record):
            added += 1
    if added:
        logger.info(f"Seeded {added} demo user(s)")
    return added


# Global instance
_credential_store: Optional[CredentialStore] = None


def get_credential_store() -> CredentialStore:
    """Get the global credential store instance."""
    global _credential_store
    if _credential_store is None:
        if settings.REDIS_URL:
            logged_url = settings.REDIS_URL.split('@')[-1]
            logger.info(f"Credential store using Redis backend: {logged_url}")
            _credential_store = RedisCredentialStore(settings.REDIS_URL)
        else:
            logger.info("Credential store using in-memory storage (single-instance only)")
            _credential_store = InMemoryCredentialStore()
    return _credential_store


async def close_credential_store() -> None:
    """Close the global credential store."""
    global _credential_store
    if _credential_store is not None:
        await _credential_store.close()
        _credential_store = None
