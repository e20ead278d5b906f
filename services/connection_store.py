"""Persistence helpers for Classroom connections and their OAuth credentials."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from datetime_utils import to_db, utc_now
from models.connection import Connection
from storage.db import SessionFactory, get_session, session_scope


class ConnectionStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    def _get(self, session: Session, user_id: str) -> Optional[Connection]:
        stmt = select(Connection).where(Connection.user_id == user_id)
        return session.exec(stmt).first()

    def get(self, user_id: str) -> Optional[Connection]:
        with session_scope(self._session_factory) as session:
            return self._get(session, user_id)

    def list_syncable(self) -> List[Connection]:
        """Connections the sync job may poll: enabled and holding an OAuth token."""
        with session_scope(self._session_factory) as session:
            stmt = (
                select(Connection)
                .where(Connection.sync_enabled == True)  # noqa: E712
                .where(Connection.access_token != "")
                .order_by(Connection.id)
            )
            return list(session.exec(stmt))

    def create(
        self,
        user_id: str,
        *,
        access_token: str = "",
        refresh_token: str = "",
        token_expiry: Optional[datetime] = None,
        google_email: Optional[str] = None,
        sync_enabled: bool = True,
    ) -> Connection:
        with session_scope(self._session_factory) as session:
            connection = Connection(
                user_id=user_id,
                google_email=google_email,
                access_token=access_token,
                refresh_token=refresh_token,
                sync_enabled=sync_enabled,
            )
            if token_expiry is not None:
                connection.token_expiry = to_db(token_expiry)
            session.add(connection)
            session.commit()
            session.refresh(connection)
            return connection

    def save_credentials(
        self,
        user_id: str,
        *,
        access_token: str,
        refresh_token: str,
        token_expiry: datetime,
    ) -> Connection:
        """Write the refreshed credential triple in a single commit."""
        with session_scope(self._session_factory) as session:
            connection = self._get(session, user_id)
            if connection is None:
                raise LookupError(f"No Classroom connection for user {user_id}")
            connection.access_token = access_token
            connection.refresh_token = refresh_token
            connection.token_expiry = to_db(token_expiry)
            session.add(connection)
            session.commit()
            session.refresh(connection)
            return connection

    def mark_synced(self, user_id: str, moment: Optional[datetime] = None) -> None:
        with session_scope(self._session_factory) as session:
            connection = self._get(session, user_id)
            if connection is None:
                return
            connection.last_sync_at = to_db(moment or utc_now())
            session.add(connection)
            session.commit()

    def delete(self, user_id: str) -> bool:
        with session_scope(self._session_factory) as session:
            connection = self._get(session, user_id)
            if connection is None:
                return False
            session.delete(connection)
            session.commit()
            return True


__all__ = ["ConnectionStore"]
