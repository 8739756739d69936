"""Tests for UserStore against an embedded SQLite database.

Covers the versioned write protocol (create/update/conflict/duplicate),
soft delete, filtered listing and hydration.  Row-lock contention needs
PostgreSQL and lives in ``tests/integration``.
"""

from __future__ import annotations

import pytest

from user_accounts.core.errors import (
    ConfigError,
    DuplicateKeyError,
    InvalidFilterError,
    NotFoundError,
    VersionConflictError,
)
from user_accounts.storage.postgres.repos import UserStore


# ===========================================================================
# store(): create
# ===========================================================================

class TestStoreCreate:
    async def test_create_assigns_id_and_version_one(self, user_store, new_user):
        created = await user_store.store(new_user(), 0)

        assert created.id > 0
        assert created.version == 1
        assert created.meta.disabled is False
        assert created.meta.has_changes is False

    async def test_create_round_trip(self, user_store, new_user):
        created = await user_store.store(
            new_user(first_name="Ada", last_name="Lovelace", nickname="ada", email="ada@example.qqq"),
            0,
        )
        fetched = await user_store.get(created.id)

        assert fetched.field_values() == created.field_values()
        assert fetched.first_name == "Ada"
        assert fetched.nickname == "ada"
        assert fetched.version == 1

    async def test_create_with_nonzero_expected_version_conflicts(self, user_store, new_user):
        with pytest.raises(VersionConflictError):
            await user_store.store(new_user(), 1)

        assert await user_store.list({}) == []

    async def test_duplicate_nickname_on_create(self, user_store, seeded_users, new_user):
        with pytest.raises(DuplicateKeyError):
            await user_store.store(new_user(nickname="testuser"), 0)

        assert len(await user_store.list({})) == 2


# ===========================================================================
# store(): update
# ===========================================================================

class TestStoreUpdate:
    async def test_update_bumps_version_by_one(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        user.country = "uk-Updated"
        user.email = "example@example.qqq-Updated"

        updated = await user_store.store(user, 1)

        assert updated.id == user.id
        assert updated.version == 2
        assert updated.country == "uk-Updated"
        assert updated.email == "example@example.qqq-Updated"
        assert updated.nickname == "testuser"
        assert updated.meta.updated_at >= updated.meta.created_at

    async def test_stale_version_conflicts(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        user.country = "ab"
        await user_store.store(user, 1)

        user.country = "zz"
        with pytest.raises(VersionConflictError):
            await user_store.store(user, 1)

        current = await user_store.get(seeded_users[0].id)
        assert current.country == "ab"
        assert current.version == 2

    async def test_expected_version_ahead_of_stored_conflicts(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        user.country = "ab"
        with pytest.raises(VersionConflictError):
            await user_store.store(user, 5)

    async def test_create_against_existing_row_conflicts(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        user.country = "ab"
        with pytest.raises(VersionConflictError):
            await user_store.store(user, 0)

    async def test_update_of_missing_user_conflicts(self, user_store, seeded_users, new_user):
        ghost = new_user(nickname="notanuser")
        ghost.id = 100
        with pytest.raises(VersionConflictError):
            await user_store.store(ghost, 1)

    async def test_duplicate_nickname_on_update(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[1].id)
        user.nickname = "testuser"

        with pytest.raises(DuplicateKeyError):
            await user_store.store(user, 1)

        unchanged = await user_store.get(seeded_users[1].id)
        assert unchanged.nickname == "testuser-2"
        assert unchanged.version == 1

    async def test_store_returns_fresh_instance(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        user.country = "ab"
        updated = await user_store.store(user, 1)

        assert updated is not user
        assert updated.meta.has_changes is False
        # The caller's instance keeps its markers until it clears them.
        assert user.meta.has_changes is True


# ===========================================================================
# get() / list()
# ===========================================================================

class TestReads:
    async def test_get_missing_raises_not_found(self, user_store):
        with pytest.raises(NotFoundError):
            await user_store.get(42)

    async def test_get_hydrates_metadata(self, user_store, seeded_users):
        user = await user_store.get(seeded_users[0].id)
        assert user.version == 1
        assert user.meta.created_at is not None
        assert user.meta.updated_at is not None
        assert user.password == "qwerty"

    async def test_list_all(self, user_store, seeded_users):
        users = await user_store.list({})
        assert [u.nickname for u in users] == ["testuser", "testuser-2"]

    async def test_list_none_means_all(self, user_store, seeded_users):
        assert len(await user_store.list(None)) == 2

    async def test_list_by_country(self, user_store, seeded_users):
        users = await user_store.list({"country": "uk"})
        assert [u.nickname for u in users] == ["testuser"]

    async def test_list_conjunctive_filters(self, user_store, seeded_users):
        assert await user_store.list({"country": "uk", "nickname": "testuser-2"}) == []
        match = await user_store.list({"country": "ab", "nickname": "testuser-2"})
        assert len(match) == 1

    async def test_list_no_match_is_empty(self, user_store, seeded_users):
        assert await user_store.list({"country": "fr"}) == []

    async def test_list_rejects_non_allowed_field(self, user_store, seeded_users):
        with pytest.raises(InvalidFilterError):
            await user_store.list({"password": "qwerty"})


# ===========================================================================
# delete()
# ===========================================================================

class TestDelete:
    async def test_delete_then_get_is_not_found(self, user_store, seeded_users):
        await user_store.delete(seeded_users[0].id)

        with pytest.raises(NotFoundError):
            await user_store.get(seeded_users[0].id)

    async def test_list_excludes_deleted(self, user_store, seeded_users):
        await user_store.delete(seeded_users[0].id)

        users = await user_store.list({})
        assert [u.nickname for u in users] == ["testuser-2"]
        assert await user_store.list({"country": "uk"}) == []

    async def test_delete_is_idempotent(self, user_store, seeded_users):
        await user_store.delete(seeded_users[0].id)
        await user_store.delete(seeded_users[0].id)

        with pytest.raises(NotFoundError):
            await user_store.get(seeded_users[0].id)

    async def test_delete_missing_id_is_silent(self, user_store):
        await user_store.delete(999)

    async def test_delete_keeps_row_and_version(self, user_store, seeded_users):
        # A deleted row still holds its version: a create against it conflicts.
        await user_store.delete(seeded_users[0].id)
        user = seeded_users[0]
        user.country = "ab"
        with pytest.raises(VersionConflictError):
            await user_store.store(user, 0)


# ===========================================================================
# Construction
# ===========================================================================

class TestConstruction:
    def test_unknown_filterable_field_is_config_error(self, database):
        with pytest.raises(ConfigError, match="nope"):
            UserStore(database.session_factory, filterable_fields=["country", "nope"])

    async def test_custom_allow_list(self, database, seeded_users):
        store = UserStore(database.session_factory, filterable_fields=["nickname"])
        assert len(await store.list({"nickname": "testuser"})) == 1
        with pytest.raises(InvalidFilterError):
            await store.list({"country": "uk"})
