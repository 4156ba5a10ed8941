from datetime import datetime

import pytest

from codetracker import CodingRecord, NotFoundError, StorageError, Store, find_record


@pytest.fixture
def store(tmp_path):
    s = Store(tmp_path / "data" / "records.sqlite3")
    s.create_database()
    return s


def add(store, start, end):
    store.insert_record(CodingRecord(date_start=start, date_end=end))


def test_create_database_is_idempotent(store):
    add(store, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
    store.create_database()
    assert len(store.get_all_records()) == 1


@pytest.mark.parametrize(
    "start, end",
    [
        (datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 17, 30)),
        (datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 9, 0)),
        (datetime(2024, 2, 28, 22, 0), datetime(2024, 3, 1, 1, 45)),
    ],
)
def test_insert_then_read_back_gives_duration(store, start, end):
    add(store, start, end)
    (record,) = store.get_all_records()
    assert record.date_start == start
    assert record.date_end == end
    assert record.duration == end - start


def test_insert_ignores_given_id(store):
    store.insert_record(CodingRecord(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10), id=77))
    store.insert_record(CodingRecord(datetime(2024, 1, 2, 9), datetime(2024, 1, 2, 10), id=77))
    assert [r.id for r in store.get_all_records()] == [1, 2]


def test_bulk_insert(store):
    store.bulk_insert_records(
        [CodingRecord(datetime(2024, 1, d, 9), datetime(2024, 1, d, 11)) for d in range(1, 6)]
    )
    records = store.get_all_records()
    assert len(records) == 5
    assert len({r.id for r in records}) == 5


def test_delete_missing_id_returns_zero(store):
    assert store.delete_record(999) == 0


def test_delete_existing_id(store):
    add(store, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
    add(store, datetime(2024, 1, 2, 9), datetime(2024, 1, 2, 10))
    first, second = store.get_all_records()
    assert store.delete_record(first.id) == 1
    assert [r.id for r in store.get_all_records()] == [second.id]


def test_update_changes_only_target(store):
    for d in range(1, 4):
        add(store, datetime(2024, 1, d, 9), datetime(2024, 1, d, 10))
    before = {r.id: r for r in store.get_all_records()}
    target = before[2]
    store.update_record(CodingRecord(datetime(2024, 5, 5, 8), datetime(2024, 5, 5, 12), id=target.id))

    after = {r.id: r for r in store.get_all_records()}
    assert after.keys() == before.keys()
    assert after[2].date_start == datetime(2024, 5, 5, 8)
    assert after[2].duration.total_seconds() == 4 * 3600
    for record_id in (1, 3):
        assert after[record_id] == before[record_id]


def test_update_missing_id_is_noop(store):
    add(store, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
    before = store.get_all_records()
    store.update_record(CodingRecord(datetime(2024, 5, 5, 8), datetime(2024, 5, 5, 12), id=42))
    assert store.get_all_records() == before


def test_update_without_id(store):
    with pytest.raises(ValueError):
        store.update_record(CodingRecord(datetime(2024, 5, 5, 8), datetime(2024, 5, 5, 12)))


def test_directory_path_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        Store(tmp_path).create_database()


def test_corrupt_file_raises_storage_error(tmp_path):
    path = tmp_path / "broken.sqlite3"
    path.write_bytes(b"this is not a sqlite database at all" * 100)
    with pytest.raises(StorageError):
        Store(path).create_database()


def test_find_record():
    records = [
        CodingRecord(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10), id=1),
        CodingRecord(datetime(2024, 1, 2, 9), datetime(2024, 1, 2, 10), id=2),
    ]
    assert find_record(records, 2) is records[1]
    with pytest.raises(NotFoundError):
        find_record(records, 3)
    with pytest.raises(NotFoundError):
        find_record(records + [records[0]], 1)
