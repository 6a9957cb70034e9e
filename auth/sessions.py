"""
auth/sessions.py -- SQL-backed server-side session store with a fixed TTL.

Every session row is keyed by HMAC-SHA256(SECRET_KEY, raw id); the raw id
only ever lives in the client's cookie. Expiry is fixed at creation
(created_at + ttl) and never slides on access.

Expired rows are treated as absent on read and deleted lazily; purge_expired()
trims the rest and is called periodically by the API lifespan.

Usage:
    sessions = SessionStore("sqlite:///sessiongate.db", ttl=86400)
    session = sessions.create(user_id=1, username="alice")
    sessions.get(session.id)       # Session or None once expired / destroyed
    sessions.destroy(session.id)
    sessions.purge_expired()

Layer rule: no imports from api/.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from sqlalchemy import Column, Float, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from auth.credentials import generate_session_id, hash_session_id
from auth.models import Session
from auth.store import make_engine

_DEFAULT_TTL = 60 * 60 * 24  # 24 hours in seconds

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("id_hash", String(64), primary_key=True),  # HMAC-SHA256 hex of the raw id
    Column("user_id", Integer, nullable=False, index=True),
    Column("username", String(255), nullable=False),
    Column("created_at", Float, nullable=False),
    Column("expires_at", Float, nullable=False, index=True),
)


class SessionStore:
    def __init__(
        self,
        db_url: str,
        ttl: int = _DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create(self, user_id: int, username: str) -> Session:
        """Persist a new session for the user and return it with its raw id."""
        raw_id = generate_session_id()
        now = self._clock()
        session = Session(
            id=raw_id,
            user_id=user_id,
            username=username,
            created_at=now,
            expires_at=now + self.ttl,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    id_hash=hash_session_id(raw_id),
                    user_id=user_id,
                    username=username,
                    created_at=session.created_at,
                    expires_at=session.expires_at,
                )
            )
            conn.commit()
        return session

    def get(self, raw_id: str) -> Session | None:
        """Return the live session for raw_id, or None if unknown or expired."""
        if not raw_id:
            return None
        id_hash = hash_session_id(raw_id)
        with self.engine.connect() as conn:
            row = conn.execute(_sessions.select().where(_sessions.c.id_hash == id_hash)).fetchone()
        if row is None:
            return None
        if row.expires_at <= self._clock():
            self._delete_hash(id_hash)
            return None
        return Session(
            id=raw_id,
            user_id=row.user_id,
            username=row.username,
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    def destroy(self, raw_id: str) -> bool:
        """Delete the session. Returns True if a row was removed."""
        return self._delete_hash(hash_session_id(raw_id))

    def destroy_for_user(self, user_id: int) -> int:
        """Delete every session belonging to user_id. Returns number of rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.user_id == user_id))
            conn.commit()
        return result.rowcount

    def purge_expired(self) -> int:
        """Delete all sessions past their expiry. Returns number of rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= self._clock()))
            conn.commit()
        return result.rowcount

    def _delete_hash(self, id_hash: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.id_hash == id_hash))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()
