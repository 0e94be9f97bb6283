# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Persistence collaborator for credential rows.

A thin, filter-dict based facade over a SQLAlchemy session.  The store talks
to storage only through these six primitives, so it never builds queries
itself:

    create(record)            -> id
    find(filter)              -> [Credential]
    find_one(filter)          -> Credential | None
    update_one(filter, patch) -> matched row count
    delete_one(filter)        -> deleted row count
    create_index(field)       -> None (idempotent)

Each write commits immediately; a request performs at most one write.
"""

from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from models.credential import Credential


class CredentialCollection:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, filter: dict):
        return self.db.query(Credential).filter_by(**filter)

    def create(self, record: dict) -> str:
        row = Credential(**record)
        self.db.add(row)
        self.db.commit()
        return row.id

    def find(self, filter: dict) -> List[Credential]:
        return (
            self._query(filter)
            .order_by(Credential.created_at.asc(), Credential.id.asc())
            .all()
        )

    def find_one(self, filter: dict) -> Optional[Credential]:
        return self._query(filter).first()

    def update_one(self, filter: dict, patch: dict) -> int:
        # filter always includes the primary key, so at most one row matches
        matched = self._query(filter).update(patch, synchronize_session=False)
        self.db.commit()
        return matched

    def delete_one(self, filter: dict) -> int:
        deleted = self._query(filter).delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def create_index(self, field: str) -> None:
        """Create the declared index covering *field* unless it already exists."""
        table = Credential.__table__
        index = next(
            (ix for ix in table.indexes if [c.name for c in ix.columns] == [field]),
            None,
        )
        if index is None:
            raise ValueError(f"No index declared on credentials.{field}")

        bind = self.db.get_bind()
        try:
            index.create(bind=bind, checkfirst=True)
        except DBAPIError:
            # Another request created it between the check and the CREATE.
            existing = {ix["name"] for ix in inspect(bind).get_indexes(table.name)}
            if index.name not in existing:
                raise

    def rollback(self) -> None:
        self.db.rollback()
