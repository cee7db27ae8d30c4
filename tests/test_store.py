import pytest

from metalrates.db.dal import InMemoryStoreRateRepository, StoreRateRepository
from metalrates.db.schema import init_db
from metalrates.db.store import InMemoryKeyValueStore, SQLiteKeyValueStore


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "rates.sqlite3"
    init_db(path)
    return path


@pytest.mark.parametrize("factory", ["sqlite", "memory"])
def test_slot_write_read_delete(factory, db_path):
    store = SQLiteKeyValueStore(db_path) if factory == "sqlite" else InMemoryKeyValueStore()
    assert store.read("metalRatesCache").value is None
    assert store.write("metalRatesCache", '{"a": 1}').ok
    assert store.write("metalRatesCache", '{"a": 2}').ok
    assert store.read("metalRatesCache").value == '{"a": 2}'
    assert store.delete("metalRatesCache").value is True
    assert store.delete("metalRatesCache").value is False


def test_sqlite_slots_survive_new_store_instance(db_path):
    SQLiteKeyValueStore(db_path).write("apiUsageToday", "{}")
    assert SQLiteKeyValueStore(db_path).read("apiUsageToday").value == "{}"


def test_sqlite_errors_are_returned_not_raised(tmp_path):
    store = SQLiteKeyValueStore(tmp_path / "missing-tables.sqlite3")
    for result in (store.read("k"), store.write("k", "v"), store.delete("k")):
        assert not result.ok
        assert result.error is not None


def test_init_db_is_idempotent(db_path):
    init_db(db_path)
    assert SQLiteKeyValueStore(db_path).read("schema_version").value == "1"


@pytest.mark.parametrize("kind", ["sqlite", "memory"])
def test_store_rate_repository_upserts_single_row(kind, db_path):
    repo = StoreRateRepository(db_path) if kind == "sqlite" else InMemoryStoreRateRepository()
    assert repo.get() is None
    repo.set(11400, 150)
    row = repo.set(11450.5, 151)
    assert row["gold_rate"] == 11450.5
    assert row["silver_rate"] == 151
    assert row["updated_at"]
    with pytest.raises(ValueError):
        repo.set(0, 150)
