"""Tests for the SQLite db_client: filter parsing and CRUD against a temporary database."""

import pytest

from tasktracker.core import db_client
from tasktracker.core.db_client import (
    Comparison,
    DatabaseError,
    RecordNotFoundError,
    build_order_by,
    is_record_id,
    parse_filter,
    parse_filter_expression,
    sanitize_param,
)


@pytest.fixture
async def sqlite_db(monkeypatch, tmp_path, test_settings):
    """Fresh SQLite file with the schema applied."""
    monkeypatch.setattr(test_settings, "sqlite_db_path", str(tmp_path / "test.db"))
    await db_client.init_db()
    yield
    await db_client.close_connection()


async def _create_user(email: str = "a@x.com", **extra) -> dict:
    return await db_client.create_record(
        collection="users",
        data={"email": email, "name": "A", "created_at": "2025-01-01T00:00:00+00:00", **extra},
    )


async def _create_task(user_id: str, title: str, created_at: str, **extra) -> dict:
    return await db_client.create_record(
        collection="tasks",
        data={
            "title": title,
            "user_id": user_id,
            "created_at": created_at,
            "updated_at": created_at,
            **extra,
        },
    )


@pytest.mark.unit
class TestRecordIds:
    @pytest.mark.parametrize("value", ["1", "42", "9223372036854775807"])
    def test_accepts_integer_ids(self, value):
        assert is_record_id(value)

    @pytest.mark.parametrize("value", ["", "abc", "-1", "1.5", "\u00b2", "\u0661", "9223372036854775808"])
    def test_rejects_ids_sqlite_cannot_bind(self, value):
        assert not is_record_id(value)


@pytest.mark.unit
class TestFilterParsing:
    """Tests for the filter expression language."""

    def test_empty_filter(self):
        assert parse_filter("") == ("", [])

    def test_and_of_equalities(self):
        sql, params = parse_filter('user_id = "1" && status = "Done"')

        assert sql == "user_id = ? AND status = ?"
        assert params == ["1", "Done"]

    def test_or_group_with_contains(self):
        sql, params = parse_filter('user_id = "1" && (title ~ "milk" || description ~ "milk")')

        assert sql == "user_id = ? AND (casefold_contains(title, ?) = 1 OR casefold_contains(description, ?) = 1)"
        assert params == ["1", "milk", "milk"]

    def test_escaped_values_round_trip(self):
        value = 'He said "x" && (y || z) \\ done'

        groups = parse_filter_expression(f'title = "{sanitize_param(value)}"')

        assert groups == [[Comparison(field="title", op="=", value=value)]]

    def test_injection_attempt_stays_a_parameter(self):
        malicious = 'x" || email != "'

        sql, params = parse_filter(f'email = "{sanitize_param(malicious)}"')

        assert sql == "email = ?"
        assert params == [malicious]

    @pytest.mark.parametrize(
        "bad_filter",
        ['email = "unterminated', "email = unquoted", '(email = "a"', 'email; DROP TABLE users = "x"'],
    )
    def test_invalid_syntax_rejected(self, bad_filter):
        with pytest.raises(ValueError, match="Invalid filter syntax"):
            parse_filter(bad_filter)

    def test_order_by(self):
        assert build_order_by("-created_at,-id") == "created_at DESC, id DESC"
        assert build_order_by("") == "id ASC"

    def test_order_by_rejects_injection(self):
        with pytest.raises(ValueError, match="Invalid sort field"):
            build_order_by("id; DROP TABLE tasks")


@pytest.mark.unit
class TestSQLiteCrud:
    """CRUD operations against a real SQLite file."""

    async def test_create_and_get_record_with_string_ids(self, sqlite_db):
        user = await _create_user()
        task = await _create_task(user["id"], "t", "2025-01-01T00:00:00+00:00")

        fetched = await db_client.get_record(collection="tasks", record_id=task["id"])

        assert isinstance(user["id"], str)
        assert fetched["user_id"] == user["id"]
        assert fetched["priority"] == "Medium"
        assert fetched["status"] == "To Do"

    async def test_get_missing_record(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.get_record(collection="users", record_id="404")

    async def test_update_record(self, sqlite_db):
        user = await _create_user()

        updated = await db_client.update_record(collection="users", record_id=user["id"], data={"name": "B"})

        assert updated["name"] == "B"

    async def test_update_with_empty_payload_rejected(self, sqlite_db):
        user = await _create_user()

        with pytest.raises(ValueError, match="Empty update payload"):
            await db_client.update_record(collection="users", record_id=user["id"], data={})

    async def test_delete_twice(self, sqlite_db):
        user = await _create_user()

        await db_client.delete_record(collection="users", record_id=user["id"])

        with pytest.raises(RecordNotFoundError):
            await db_client.delete_record(collection="users", record_id=user["id"])

    async def test_unique_email_enforced(self, sqlite_db):
        await _create_user()

        with pytest.raises(DatabaseError):
            await _create_user()

    async def test_check_constraint_on_priority(self, sqlite_db):
        user = await _create_user()

        with pytest.raises(DatabaseError):
            await _create_task(user["id"], "t", "2025-01-01T00:00:00+00:00", priority="Urgent")

    async def test_list_filters_sorts_and_folds_case(self, sqlite_db):
        alice = await _create_user("alice@x.com")
        bob = await _create_user("bob@x.com")
        await _create_task(alice["id"], "Straße", "2025-01-01T00:00:00+00:00")
        await _create_task(alice["id"], "Other", "2025-01-02T00:00:00+00:00", description="STRASSE work")
        await _create_task(alice["id"], "Unrelated", "2025-01-03T00:00:00+00:00")
        await _create_task(bob["id"], "strasse", "2025-01-04T00:00:00+00:00")

        records = await db_client.list_records(
            collection="tasks",
            filter_query=f'user_id = "{alice["id"]}" && (title ~ "strasse" || description ~ "strasse")',
            sort="-created_at,-id",
        )

        assert [r["title"] for r in records] == ["Other", "Straße"]

    async def test_list_pagination(self, sqlite_db):
        user = await _create_user()
        for i in range(5):
            await _create_task(user["id"], f"t{i}", f"2025-01-0{i + 1}T00:00:00+00:00")

        page = await db_client.list_records(collection="tasks", page=2, per_page=2, sort="created_at")

        assert [r["title"] for r in page] == ["t2", "t3"]

    async def test_get_first_record(self, sqlite_db):
        await _create_user("a@x.com", username="alice")

        found = await db_client.get_first_record(
            collection="users", filter_query='(email = "alice" || username = "alice")'
        )
        missing = await db_client.get_first_record(collection="users", filter_query='email = "nobody@x.com"')

        assert found["email"] == "a@x.com"
        assert missing is None

    async def test_invalid_collection_name(self, sqlite_db):
        with pytest.raises(DatabaseError):
            await db_client.list_records(collection="users; DROP TABLE users")
