"""Tests for CredentialStore against a real session: races and failures."""

import uuid
from unittest.mock import patch

import httpx
import pytest
from httpx import ASGITransport
from sqlalchemy.exc import OperationalError

from core.errors import Forbidden, InternalFailure, InvalidInput, NotFound
from database import SessionLocal, engine
from main import app
from models.credential import Credential, owner_index
from vault.collection import CredentialCollection
from vault.schemas import CredentialCreate, CredentialUpdate
from vault.store import CredentialStore, parse_credential_id


def _store(db, owner):
    return CredentialStore(CredentialCollection(db), owner)


def _delete_behind_the_stores_back(credential_id):
    other = SessionLocal()
    try:
        other.query(Credential).filter_by(id=credential_id).delete()
        other.commit()
    finally:
        other.close()


@pytest.fixture
def alice(db):
    return _store(db, "alice")


@pytest.fixture
def saved_id(alice):
    return alice.create(CredentialCreate(site="x.com", username="a", password="p1"))


# ─── Id parsing ──────────────────────────────────────────────────────


class TestParseCredentialId:
    def test_hex_passes_through(self):
        raw = uuid.uuid4().hex
        assert parse_credential_id(raw) == raw

    def test_hyphenated_is_normalised(self):
        value = uuid.uuid4()
        assert parse_credential_id(str(value)) == value.hex

    @pytest.mark.parametrize("raw", [None, "", "nope", 42])
    def test_bad_values_raise(self, raw):
        with pytest.raises(InvalidInput):
            parse_credential_id(raw)


# ─── Ownership ───────────────────────────────────────────────────────


class TestOwnership:
    def test_create_binds_owner(self, db, saved_id):
        row = db.query(Credential).filter_by(id=saved_id).one()
        assert row.owner_id == "alice"
        assert row.created_at is not None
        assert row.updated_at is None

    def test_update_keeps_immutable_fields(self, db, alice, saved_id):
        before = db.query(Credential).filter_by(id=saved_id).one()
        created_at = before.created_at

        alice.update(CredentialUpdate(id=saved_id, site="y.com", username="b", password="p2"))

        db.expire_all()
        after = db.query(Credential).filter_by(id=saved_id).one()
        assert after.id == saved_id
        assert after.owner_id == "alice"
        assert after.created_at == created_at
        assert after.site == "y.com"
        assert after.updated_at is not None

    def test_foreign_update_and_delete_are_forbidden(self, db, saved_id):
        bob = _store(db, "bob")
        with pytest.raises(Forbidden):
            bob.update(CredentialUpdate(id=saved_id, site="y.com", username="b", password="p2"))
        with pytest.raises(Forbidden):
            bob.delete(saved_id)
        assert [r.id for r in _store(db, "alice").list()] == [saved_id]

    def test_list_is_owner_scoped(self, db, saved_id):
        assert _store(db, "bob").list() == []
        assert [r.id for r in _store(db, "alice").list()] == [saved_id]


# ─── Races ───────────────────────────────────────────────────────────


class TestConcurrentDelete:
    """A row removed between the ownership check and the write is NotFound."""

    def _racing_find_one(self, collection):
        original = collection.find_one

        def find_then_vanish(filter):
            row = original(filter)
            if row is not None:
                _delete_behind_the_stores_back(row.id)
            return row

        return find_then_vanish

    def test_update_after_racing_delete(self, db, alice, saved_id):
        alice.collection.find_one = self._racing_find_one(alice.collection)
        with pytest.raises(NotFound):
            alice.update(CredentialUpdate(id=saved_id, site="y.com", username="b", password="p2"))
        assert db.query(Credential).count() == 0

    def test_delete_after_racing_delete(self, db, alice, saved_id):
        alice.collection.find_one = self._racing_find_one(alice.collection)
        with pytest.raises(NotFound):
            alice.delete(saved_id)


# ─── Persistence failures ────────────────────────────────────────────


def _boom(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is gone"))


class TestPersistenceFailure:
    def test_list_failure_maps_to_internal(self, alice):
        with patch.object(alice.collection, "find", side_effect=_boom):
            with pytest.raises(InternalFailure) as info:
                alice.list()
        assert "database is gone" not in info.value.message

    def test_create_failure_maps_to_internal(self, alice):
        with patch.object(alice.collection, "create", side_effect=_boom):
            with pytest.raises(InternalFailure):
                alice.create(CredentialCreate(site="x.com", username="a", password="p"))

    def test_delete_failure_maps_to_internal(self, alice, saved_id):
        with patch.object(alice.collection, "delete_one", side_effect=_boom):
            with pytest.raises(InternalFailure):
                alice.delete(saved_id)

    @pytest.mark.asyncio
    async def test_http_body_is_generic(self, client):
        with patch("vault.collection.CredentialCollection.find", side_effect=_boom):
            resp = await client.get("/", headers={"X-User-Id": "alice"})

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "Server error"}

    @pytest.mark.asyncio
    async def test_unexpected_error_body_is_generic(self):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            with patch(
                "vault.collection.CredentialCollection.find",
                side_effect=RuntimeError("cursor exploded at 0xdeadbeef"),
            ):
                resp = await c.get("/", headers={"X-User-Id": "alice"})

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "Server error"}
        assert "0xdeadbeef" not in resp.text


# ─── Owner index ─────────────────────────────────────────────────────


class TestOwnerIndex:
    def test_concurrent_creation_is_tolerated(self, alice, saved_id):
        """CREATE INDEX losing a race to another request still lists."""
        with patch.object(owner_index, "create", side_effect=_boom):
            assert [r.id for r in alice.list()] == [saved_id]

    def test_real_creation_failure_surfaces(self, alice):
        owner_index.drop(bind=engine)
        with patch.object(owner_index, "create", side_effect=_boom):
            with pytest.raises(InternalFailure):
                alice.list()
