"""Tests for key-level database operations."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from quickdoc.core.exceptions import BackendError, InvalidKeyError, TypeMismatchError
from quickdoc.database.core import Database
from tests.utils import FakeClock


class TestGetSet:
    """Test get, set and has."""

    async def test_set_then_get_round_trips(self, database: Database, sample_profile):
        """Test that a stored value comes back deep-equal."""
        result = await database.set("profile", sample_profile)

        assert result == sample_profile
        assert await database.get("profile") == sample_profile

    async def test_get_missing_key_returns_none(self, database: Database):
        assert await database.get("missing") is None
        assert await database.get("missing.nested") is None

    async def test_fetch_is_alias_of_get(self, database: Database):
        await database.set("foo", "bar")
        assert await database.fetch("foo") == "bar"

    async def test_dotted_set_creates_nested_value(self, database: Database):
        """Test that set("a.b", 1) writes inside master record "a"."""
        result = await database.set("a.b", 1)

        assert result == {"b": 1}
        assert await database.get("a") == {"b": 1}
        assert await database.get("a.b") == 1

    async def test_dotted_set_returns_full_master_value(self, database: Database, sample_profile):
        await database.set("profile", sample_profile)

        result = await database.set("profile.preferences.theme", "light")

        assert result["preferences"]["theme"] == "light"
        assert result["name"] == "Ada"
        assert result["preferences"]["language"] == "en"

    async def test_set_through_scalar_raises(self, database: Database):
        await database.set("name", "Ada")

        with pytest.raises(TypeMismatchError):
            await database.set("name.first", "A")

        assert await database.get("name") == "Ada"

    async def test_values_are_stored_as_is(self, database: Database):
        """Test that scalars keep their types."""
        for key, value in [("int", 1), ("float", 1.5), ("bool", False), ("none", None), ("list", [1, "a"])]:
            await database.set(key, value)
            assert await database.get(key) == value
            assert type(await database.get(key)) is type(value)

    async def test_has(self, database: Database):
        await database.set("present", 0)
        await database.set("nullish", None)

        assert await database.has("present") is True
        assert await database.has("nullish") is False
        assert await database.has("absent") is False

    async def test_overwrite_keeps_created_at(self, database: Database, clock: FakeClock):
        """Test that upserts keep the creation time and refresh the update time."""
        await database.set("k", 1)
        first = await database.get_raw("k")

        clock.advance(30)
        await database.set("k", 2)
        second = await database.get_raw("k")

        assert second.created_at == first.created_at
        assert second.updated_at == first.updated_at + timedelta(seconds=30)
        assert second.updated_at >= second.created_at

    async def test_invalid_key_raises_before_backend_call(self, database: Database):
        with patch.object(database.backend, "find_one", new=AsyncMock()) as find_one:
            with pytest.raises(InvalidKeyError):
                await database.get("")
            with pytest.raises(InvalidKeyError):
                await database.set(".b", 1)

        find_one.assert_not_called()


class TestExpiration:
    """Test TTL handling through the database."""

    async def test_expired_value_is_hidden(self, database: Database, clock: FakeClock):
        """Test that set(k, v, 1) is invisible once the clock passes 1 second."""
        await database.set("session", "token", 1)
        assert await database.get("session") == "token"

        clock.advance(1.5)

        assert await database.get("session") is None
        assert await database.has("session") is False

    async def test_expired_value_hidden_before_purge(self, database: Database, clock: FakeClock):
        """Test that reads filter expired records even while they are still stored."""
        await database.set("session", "token", 1)
        clock.advance(2)

        assert await database.backend.count_all(database.collection) == 1
        assert await database.count() == 0
        assert await database.all() == []

    async def test_get_purges_expired_record(self, database: Database, clock: FakeClock):
        await database.set("session", "token", 1)
        clock.advance(2)

        await database.get("session")

        assert await database.backend.find_one(database.collection, "session") is None

    async def test_set_after_expiry_starts_fresh(self, database: Database, clock: FakeClock):
        """Test that an expired record is replaced rather than merged."""
        await database.set("cfg", {"a": 1}, 1)
        clock.advance(5)

        result = await database.set("cfg.b", 2)
        record = await database.get_raw("cfg")

        assert result == {"b": 2}
        assert record.created_at == clock()
        assert record.expire_at is None

    async def test_non_positive_ttl_clears_expiration(self, database: Database, clock: FakeClock):
        await database.set("k", 1, 10)
        assert (await database.get_raw("k")).expire_at == clock() + timedelta(seconds=10)

        await database.set("k", 2, -1)
        assert (await database.get_raw("k")).expire_at is None

    async def test_huge_ttl_stores_permanent_record(self, database: Database):
        assert await database.set("k", 1, 1e15) == 1

        record = await database.get_raw("k")
        assert record.expire_at is None
        assert await database.get("k") == 1

    async def test_dotted_set_stamps_master_record(self, database: Database, clock: FakeClock):
        await database.set("user", {"name": "Ada"})
        await database.set("user.session", "abc", 60)

        record = await database.get_raw("user")
        assert record.expire_at == clock() + timedelta(seconds=60)


class TestDelete:
    """Test deleting records and nested values."""

    async def test_delete_whole_record(self, database: Database):
        await database.set("k", "v")

        assert await database.delete("k") is True
        assert await database.get("k") is None

    async def test_delete_missing_record_returns_false(self, database: Database):
        assert await database.delete("never") is False

    async def test_delete_expired_record_returns_true(self, database: Database, clock: FakeClock):
        """Test that an expired but still stored record counts as deleted."""
        await database.set("k", "v", 1)
        clock.advance(2)

        assert await database.delete("k") is True

    async def test_delete_nested_leaf(self, database: Database, sample_profile):
        await database.set("profile", sample_profile)

        assert await database.delete("profile.preferences.theme") is True

        profile = await database.get("profile")
        assert "theme" not in profile["preferences"]
        assert profile["preferences"]["language"] == "en"
        assert profile["name"] == "Ada"

    async def test_delete_missing_leaf_returns_false(self, database: Database, sample_profile):
        await database.set("profile", sample_profile)

        assert await database.delete("profile.nope") is False
        assert await database.delete("ghost.nope") is False

    async def test_empty_master_is_kept(self, database: Database):
        await database.set("box.only", 1)

        assert await database.delete("box.only") is True
        assert await database.get("box") == {}
        assert await database.count() == 1


class TestPushPull:
    """Test sequence operations."""

    async def test_push_pull_sequence(self, database: Database):
        """Test push onto an absent key, push again, then pull."""
        assert await database.push("list", "a") == ["a"]
        assert await database.push("list", "b") == ["a", "b"]
        assert await database.pull("list", "a") == ["b"]

    async def test_push_flattens_one_level(self, database: Database):
        await database.push("list", "a")

        assert await database.push("list", ["b", ["c"]]) == ["a", "b", ["c"]]

    async def test_push_wraps_scalar(self, database: Database):
        await database.set("value", 1)

        assert await database.push("value", 2) == [1, 2]

    async def test_push_nested_returns_master(self, database: Database):
        await database.set("user", {"name": "Ada"})

        result = await database.push("user.tags", "admin")

        assert result == {"name": "Ada", "tags": ["admin"]}

    async def test_push_keeps_expiration(self, database: Database, clock: FakeClock):
        await database.push("list", "a")
        await database.set("timed", ["x"], 60)
        expire_at = (await database.get_raw("timed")).expire_at

        clock.advance(10)
        await database.push("timed", "y")

        record = await database.get_raw("timed")
        assert record.expire_at == expire_at
        assert record.updated_at == clock()

    async def test_pull_first_match_only_by_default(self, database: Database):
        await database.set("list", ["a", "b", "a"])

        assert await database.pull("list", "a") == ["b", "a"]

    async def test_pull_multiple(self, database: Database):
        await database.set("list", ["a", "b", "a"])

        assert await database.pull("list", "a", multiple=True) == ["b"]

    async def test_pull_sequence_of_targets(self, database: Database):
        await database.set("list", [1, 2, 3, 2, 1])

        assert await database.pull("list", [1, 2]) == [3, 2, 1]
        assert await database.pull("list", [1, 2], multiple=True) == [3]

    async def test_pull_keeps_booleans_distinct(self, database: Database):
        await database.set("list", [1, True, 1.0])

        assert await database.pull("list", True) == [1, 1.0]

    async def test_pull_absent_or_non_sequence_returns_false(self, database: Database):
        await database.set("scalar", 5)

        assert await database.pull("absent", "a") is False
        assert await database.pull("scalar", 5) is False
        assert await database.get("scalar") == 5


class TestArithmetic:
    """Test add and subtract."""

    async def test_add_subtract(self, database: Database):
        assert await database.add("n", 5) == 5
        assert await database.subtract("n", 2) == 3

    async def test_nested_counter(self, database: Database):
        await database.set("stats", {"name": "page"})

        assert await database.add("stats.views", 2) == {"name": "page", "views": 2}
        assert await database.add("stats.views", 0.5) == {"name": "page", "views": 2.5}

    async def test_non_numeric_value_raises(self, database: Database):
        with pytest.raises(TypeMismatchError):
            await database.add("n", "x")
        with pytest.raises(TypeMismatchError):
            await database.subtract("n", True)

    async def test_non_numeric_target_raises(self, database: Database):
        await database.set("word", "hello")

        with pytest.raises(TypeMismatchError) as exc_info:
            await database.add("word", 1)

        assert exc_info.value.details == {"key": "word"}
        assert await database.get("word") == "hello"


class TestBackendFailures:
    """Test that backend failures propagate and leave state untouched."""

    async def test_failed_write_keeps_prior_state(self, database: Database):
        await database.set("counter", 1)

        with patch.object(
            database.backend, "upsert", new=AsyncMock(side_effect=BackendError("boom", "upsert record"))
        ):
            with pytest.raises(BackendError):
                await database.add("counter", 1)

        assert await database.get("counter") == 1

    async def test_read_failure_propagates(self, database: Database):
        with patch.object(
            database.backend, "find_one", new=AsyncMock(side_effect=BackendError("down", "find record"))
        ):
            with pytest.raises(BackendError, match="down"):
                await database.get("anything")
