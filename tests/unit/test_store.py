"""Tests for the table store — snapshots, writes, sorting and locks."""

import pytest

from mer_automation.common.config import MerSettings
from mer_automation.common.exceptions import NotFoundError, ValidationError
from mer_automation.sheets.store import FIRST_DATA_ROW, VOID_ANNOTATION, TableStore


def make_settings(**overrides) -> MerSettings:
    defaults = {"db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return MerSettings(**defaults)


@pytest.fixture
async def db():
    """In-memory SQLite database for store tests."""
    from mer_automation.common.database import DatabaseManager

    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def store():
    return TableStore()


HEADERS = ["Name", "Group", "Score"]


class TestTableSnapshot:
    async def test_missing_table_raises(self, db, store):
        async with db.get_session() as session:
            with pytest.raises(NotFoundError):
                await store.get_table(session, "Nope")
            assert await store.has_table(session, "Nope") is False

    async def test_create_is_idempotent(self, db, store):
        async with db.get_session() as session:
            first = await store.create_table(session, "T", HEADERS)
            second = await store.create_table(session, "T", ["Other"])
            assert first.id == second.id
            table = await store.get_table(session, "T")
            assert table.headers == HEADERS
            assert table.rows == []
            assert table.last_row == FIRST_DATA_ROW - 1

    async def test_append_numbers_rows_from_two(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            assert await store.append_row(session, "T", ["a", "g", 1]) == 2
            assert await store.append_row(session, "T", ["b", "g", 2]) == 3
            table = await store.get_table(session, "T")
            assert [r.row_number for r in table.rows] == [2, 3]
            assert table.last_row == 3
            assert table.records()[1] == {"Name": "b", "Group": "g", "Score": 2}

    async def test_index_and_row_lookup(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["a", "g", 1])
            table = await store.get_table(session, "T")
            assert table.index("Score") == 2
            assert table.row(2).get(0) == "a"
            assert table.row(2).get(9) is None
            with pytest.raises(ValidationError):
                table.index("Missing")
            with pytest.raises(ValidationError):
                table.row(3)

    async def test_changes_survive_new_session(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["a", "g", 1])
        async with db.get_session() as session:
            table = await store.get_table(session, "T")
            assert table.rows[0].values == ["a", "g", 1]


class TestTableWrites:
    async def test_overwrite_replaces_everything(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["old", "g", 1])
            await store.overwrite_table(session, "T", ["X", "Y"], [["1", "2"], ["3", "4"]])
            table = await store.get_table(session, "T")
            assert table.headers == ["X", "Y"]
            assert [r.values for r in table.rows] == [["1", "2"], ["3", "4"]]

    async def test_overwrite_creates_missing_table(self, db, store):
        async with db.get_session() as session:
            await store.overwrite_table(session, "New", HEADERS, [["a", "g", 1]])
            table = await store.get_table(session, "New")
            assert len(table.rows) == 1

    async def test_update_cells_by_header(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["a"])
            await store.update_cells(session, "T", 2, {"Score": 7})
            table = await store.get_table(session, "T")
            assert table.rows[0].values == ["a", None, 7]

    async def test_update_cells_unknown_header(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["a", "g", 1])
            with pytest.raises(ValidationError):
                await store.update_cells(session, "T", 2, {"Missing": 1})

    async def test_update_row_out_of_bounds(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            with pytest.raises(ValidationError):
                await store.update_row(session, "T", 5, ["x"])

    async def test_annotate_keeps_values(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.append_row(session, "T", ["a", "g", 1])
            await store.annotate_row(session, "T", 2, VOID_ANNOTATION)
            row = (await store.get_table(session, "T")).rows[0]
            assert row.values == ["a", "g", 1]
            assert row.annotation == VOID_ANNOTATION

    async def test_set_formats(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            await store.set_formats(session, "T", ["@"] * 3, ["@", "@", "0.00"])
            table = await store.get_table(session, "T")
            assert table.header_formats == ["@", "@", "@"]
            assert table.column_formats == ["@", "@", "0.00"]


class TestSortTable:
    async def test_sort_ascending_renumbers(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            for name in ["carol", "alice", "bob"]:
                await store.append_row(session, "T", [name, "g", 0])
            await store.annotate_row(session, "T", 3, {"font_style": "italic"})
            await store.sort_table(session, "T")
            table = await store.get_table(session, "T")
            assert [r.get(0) for r in table.rows] == ["alice", "bob", "carol"]
            assert [r.row_number for r in table.rows] == [2, 3, 4]
            # annotation travels with its row
            assert table.rows[0].annotation == {"font_style": "italic"}

    async def test_sort_descending(self, db, store):
        async with db.get_session() as session:
            await store.create_table(session, "T", HEADERS)
            for name in ["alice", "carol", "bob"]:
                await store.append_row(session, "T", [name, "g", 0])
            await store.sort_table(session, "T", ascending=False)
            table = await store.get_table(session, "T")
            assert [r.get(0) for r in table.rows] == ["carol", "bob", "alice"]


class TestLocks:
    def test_one_lock_per_table(self, store):
        assert store.lock("A") is store.lock("A")
        assert store.lock("A") is not store.lock("B")
