# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Owner-scoped CRUD over credential rows.

A ``CredentialStore`` is built per request, bound to the identity the gate
attached and to a ``CredentialCollection`` wrapping that request's session.
Every operation is scoped to that identity:

* List only ever filters on ``owner_id``.
* Create takes ``owner_id`` from the bound identity, never from the body.
* Update / Delete walk the same ladder – malformed id (400), no such row
  (404), someone else's row (403) – and the final write is filtered on
  ``id`` AND ``owner_id``.  A row deleted between the ownership check and the
  write therefore matches nothing and surfaces as 404.

Persistence errors are logged with their traceback and re-raised as
``InternalFailure``; the caller only ever sees a generic message.
"""

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from core.errors import Forbidden, InternalFailure, InvalidInput, NotFound
from core.logger import logger
from models.credential import Credential
from vault.collection import CredentialCollection
from vault.schemas import CredentialCreate, CredentialUpdate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_credential_id(raw) -> str:
    """Normalise a client-supplied id to 32-char hex, or raise InvalidInput."""
    if not raw or not isinstance(raw, str):
        raise InvalidInput("id is required")
    try:
        return uuid.UUID(raw).hex
    except ValueError:
        raise InvalidInput("Invalid id format")


class CredentialStore:
    def __init__(self, collection: CredentialCollection, owner_id: str):
        self.collection = collection
        self.owner_id = owner_id

    @contextmanager
    def _persistence(self, action: str):
        try:
            yield
        except SQLAlchemyError:
            logger.exception("Persistence failure during %s (owner=%s)", action, self.owner_id)
            self.collection.rollback()
            raise InternalFailure()

    def _own(self, credential_id: str) -> dict:
        """
        Resolve *credential_id* for the bound owner.  Returns the filter that
        the conditioned write must use.
        """
        with self._persistence("lookup"):
            row = self.collection.find_one({"id": credential_id})
        if row is None:
            raise NotFound()
        if row.owner_id != self.owner_id:
            logger.warning(
                "Owner mismatch on credential %s (caller=%s)", credential_id, self.owner_id
            )
            raise Forbidden()
        return {"id": credential_id, "owner_id": self.owner_id}

    # -- Operations --------------------------------------------------------

    def list(self) -> List[Credential]:
        with self._persistence("list"):
            self.collection.create_index("owner_id")
            return self.collection.find({"owner_id": self.owner_id})

    def create(self, body: CredentialCreate) -> str:
        record = {
            "site": body.site,
            "username": body.username,
            "password": body.password,
            "owner_id": self.owner_id,
            "created_at": _utcnow(),
        }
        with self._persistence("create"):
            credential_id = self.collection.create(record)
        logger.info("Credential %s created (owner=%s, site=%s)", credential_id, self.owner_id, body.site)
        return credential_id

    def update(self, body: CredentialUpdate) -> None:
        credential_id = parse_credential_id(body.id)
        scope = self._own(credential_id)

        patch = {
            "site": body.site,
            "username": body.username,
            "password": body.password,
            "updated_at": _utcnow(),
        }
        with self._persistence("update"):
            matched = self.collection.update_one(scope, patch)
        if matched == 0:
            # deleted by a concurrent request after the ownership check
            raise NotFound()
        logger.info("Credential %s updated (owner=%s)", credential_id, self.owner_id)

    def delete(self, raw_id) -> None:
        credential_id = parse_credential_id(raw_id)
        scope = self._own(credential_id)

        with self._persistence("delete"):
            deleted = self.collection.delete_one(scope)
        if deleted == 0:
            raise NotFound()
        logger.info("Credential %s deleted (owner=%s)", credential_id, self.owner_id)
