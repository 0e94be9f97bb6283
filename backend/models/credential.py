# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Credential ORM model."""

import uuid

from sqlalchemy import Column, String, Text, DateTime, Index

from database import Base


def new_credential_id() -> str:
    """32 lowercase hex chars – the canonical wire form of a credential id."""
    return uuid.uuid4().hex


# Column widths.  Request schemas and the identity gate validate against these
# so oversize input is rejected before it reaches a strict-mode database.
SITE_MAX_LENGTH = 2048
USERNAME_MAX_LENGTH = 255
OWNER_ID_MAX_LENGTH = 255
# TEXT holds 65535 bytes; 4096 chars stays under it at 4 bytes per char.
PASSWORD_MAX_LENGTH = 4096


class Credential(Base):
    __tablename__ = "credentials"

    id = Column(String(32), primary_key=True, default=new_credential_id)
    site = Column(String(SITE_MAX_LENGTH), nullable=False)
    username = Column(String(USERNAME_MAX_LENGTH), nullable=False)
    # Opaque secret stored verbatim – this service does not encrypt it.
    password = Column(Text, nullable=False)
    # Identity of the caller that created the row.  Never changes.
    owner_id = Column(String(OWNER_ID_MAX_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    # NULL until the first successful update
    updated_at = Column(DateTime(timezone=True), nullable=True)


# Declared separately from the column so the store can ensure it lazily on
# databases that were created before the index existed.
owner_index = Index("ix_credentials_owner_id", Credential.owner_id)
