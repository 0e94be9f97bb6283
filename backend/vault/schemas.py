# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the credential endpoints."""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from models.credential import (
    PASSWORD_MAX_LENGTH,
    SITE_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
)


# -- Requests --------------------------------------------------------------
# Unknown keys are ignored, so an ``owner_id`` smuggled into a body never
# reaches the store.  Ownership always comes from the identity header.

# Upper bounds mirror the column widths on the credentials table.
Site = Annotated[str, Field(min_length=1, max_length=SITE_MAX_LENGTH)]
Username = Annotated[str, Field(min_length=1, max_length=USERNAME_MAX_LENGTH)]
Password = Annotated[str, Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)]

# Older clients address records by ``_id``
CredentialId = Annotated[
    str, Field(min_length=1, validation_alias=AliasChoices("id", "_id"))
]


class CredentialCreate(BaseModel):
    site: Site
    username: Username
    password: Password


class CredentialUpdate(BaseModel):
    id: CredentialId
    site: Site
    username: Username
    password: Password


class CredentialDelete(BaseModel):
    id: CredentialId


# -- Responses -------------------------------------------------------------
# The public shape of a record.  owner_id is deliberately not a field here,
# so it can never be serialised back to a client.


class CredentialResponse(BaseModel):
    id: str
    site: str
    username: str
    password: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Rows come back naive from SQLite and MySQL DATETIME; they were
        # written in UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class StatusResponse(BaseModel):
    success: bool
    message: str


class CreatedResponse(StatusResponse):
    id: str
