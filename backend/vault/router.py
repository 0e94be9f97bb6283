# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Credential endpoints – list, create, update and delete, all on one path.

Security invariants enforced by every handler
---------------------------------------------
* The identity gate has already run; ``get_identity`` hands over the bound
  identity and the store is built around it.
* Handlers never touch ``owner_id`` themselves.  Scoping lives entirely in
  ``CredentialStore``.
* List responses go through ``CredentialResponse``, which has no owner field.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from core.security import get_identity
from vault.collection import CredentialCollection
from vault.schemas import (
    CreatedResponse,
    CredentialCreate,
    CredentialDelete,
    CredentialResponse,
    CredentialUpdate,
    StatusResponse,
)
from vault.store import CredentialStore

CREDENTIALS_PATH = "/"

router = APIRouter(tags=["credentials"])


def get_store(
    identity: str = Depends(get_identity),
    db: Session = Depends(get_db),
) -> CredentialStore:
    """Dependency: a store bound to the caller and this request's session."""
    return CredentialStore(CredentialCollection(db), identity)


# ---------------------------------------------------------------------------
# GET /  – list the caller's credentials
# ---------------------------------------------------------------------------


@router.get(CREDENTIALS_PATH, response_model=List[CredentialResponse])
def list_credentials(store: CredentialStore = Depends(get_store)):
    return store.list()


# ---------------------------------------------------------------------------
# POST /  – save a credential
# ---------------------------------------------------------------------------


@router.post(CREDENTIALS_PATH, response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
def create_credential(
    body: CredentialCreate,
    store: CredentialStore = Depends(get_store),
):
    credential_id = store.create(body)
    return CreatedResponse(success=True, message="Password saved successfully", id=credential_id)


# ---------------------------------------------------------------------------
# PUT /  – overwrite site, username and password
# ---------------------------------------------------------------------------


@router.put(CREDENTIALS_PATH, response_model=StatusResponse)
def update_credential(
    body: CredentialUpdate,
    store: CredentialStore = Depends(get_store),
):
    """Full replacement of the mutable fields.  The body is not echoed back."""
    store.update(body)
    return StatusResponse(success=True, message="Password updated successfully")


# ---------------------------------------------------------------------------
# DELETE /  – remove a credential
# ---------------------------------------------------------------------------


@router.delete(CREDENTIALS_PATH, response_model=StatusResponse)
def delete_credential(
    body: CredentialDelete,
    store: CredentialStore = Depends(get_store),
):
    store.delete(body.id)
    return StatusResponse(success=True, message="Password deleted successfully")
