"""
Adapter: Account persistence.

Implements the AccountRepository port on the ``users`` table. Credential
columns are write-only from the document point of view, and inactive
accounts are excluded from every read so a deactivated user behaves as if
they no longer existed.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.engine import RowMapping

from tourbook.domain.tours.entities import Account, Role
from tourbook.domain.tours.ports import AccountRepository
from tourbook.infrastructure.tours.document_store import (
    SqlDocumentRepository,
    as_utc,
    parse_id,
)
from tourbook.infrastructure.tours.tables import users

logger = logging.getLogger(__name__)


def _to_account(row: RowMapping) -> Account:
    return Account(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        password_hash=row["password_hash"],
        photo=row["photo"],
        password_changed_at=as_utc(row["password_changed_at"]),
        password_reset_token=row["password_reset_token"],
        password_reset_expires=as_utc(row["password_reset_expires"]),
        active=row["active"],
    )


class AccountRepositoryAdapter(SqlDocumentRepository, AccountRepository):
    """SQLAlchemy adapter for accounts."""

    table = users

    def _base_conditions(self) -> list:
        return [users.c.active.is_(True)]

    def _fetch_account(self, *conditions) -> Optional[Account]:
        stmt = select(users).where(*conditions, *self._base_conditions())
        with self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _to_account(row) if row is not None else None

    def get_account(self, account_id: str) -> Optional[Account]:
        try:
            account_id = str(UUID(str(account_id)))
        except ValueError:
            return None
        return self._fetch_account(users.c.id == account_id)

    def get_by_email(self, email: str) -> Optional[Account]:
        return self._fetch_account(users.c.email == email.lower())

    def get_by_reset_token(self, token_hash: str) -> Optional[Account]:
        return self._fetch_account(users.c.password_reset_token == token_hash)

    def set_password(
        self, account_id: str, password_hash: str, changed_at: Optional[datetime]
    ) -> None:
        stmt = (
            update(users)
            .where(users.c.id == account_id)
            .values(
                password_hash=password_hash,
                password_changed_at=changed_at,
                password_reset_token=None,
                password_reset_expires=None,
                version=users.c.version + 1,
            )
        )
        with self._engine.begin() as conn:
            conn.execute(stmt)
        logger.info("Password changed for account=%s", account_id)

    def set_reset_token(
        self,
        account_id: str,
        token_hash: Optional[str],
        expires: Optional[datetime],
    ) -> None:
        stmt = (
            update(users)
            .where(users.c.id == account_id)
            .values(password_reset_token=token_hash, password_reset_expires=expires)
        )
        with self._engine.begin() as conn:
            conn.execute(stmt)

    def deactivate(self, account_id: str) -> bool:
        stmt = (
            update(users)
            .where(users.c.id == parse_id(account_id), *self._base_conditions())
            .values(active=False, version=users.c.version + 1)
        )
        with self._engine.begin() as conn:
            deactivated = conn.execute(stmt).rowcount > 0
        if deactivated:
            logger.info("Deactivated account=%s", account_id)
        return deactivated
