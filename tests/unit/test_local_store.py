from pathlib import Path

import pytest

from usrsp_store.exceptions import MalformedRecord, StoreIOError
from usrsp_store.files import ensure_directory
from usrsp_store.local import LocalStateStore
from usrsp_store.records import InterfaceRecord

CONTAINER_ID = "3f1d9c2b7a6e5d4c3b2a1f0e"


def build_store(tmp_path: Path, **kwargs) -> LocalStateStore:
    return LocalStateStore(tmp_path / "data", **kwargs)


def test_saved_record_is_consumed_by_load(tmp_path: Path):
    store = build_store(tmp_path)
    record = InterfaceRecord(sw_if_index=7, memif_socket_id=3)

    path = store.save(CONTAINER_ID, "net1", record)

    assert path == tmp_path / "data" / "local-3f1d9c2b7a6e-net1.json"
    assert store.load(CONTAINER_ID, "net1") == record
    assert not path.exists()
    # last record gone, so is the directory
    assert not store.shared_dir.exists()


def test_second_load_finds_nothing(tmp_path: Path):
    store = build_store(tmp_path)
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))

    store.load(CONTAINER_ID, "net1")

    assert store.load(CONTAINER_ID, "net1") is None


def test_load_without_saved_state(tmp_path: Path):
    store = build_store(tmp_path)

    assert store.load(CONTAINER_ID, "net1") is None
    assert not store.shared_dir.exists()


def test_directory_survives_while_other_records_remain(tmp_path: Path):
    store = build_store(tmp_path)
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))
    store.save(CONTAINER_ID, "net2", InterfaceRecord(sw_if_index=2))

    store.load(CONTAINER_ID, "net1")

    assert store.shared_dir.is_dir()
    assert store.load(CONTAINER_ID, "net2") == InterfaceRecord(sw_if_index=2)
    assert not store.shared_dir.exists()


def test_load_without_consume_leaves_record(tmp_path: Path):
    store = build_store(tmp_path)
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=5))

    assert store.load(CONTAINER_ID, "net1", consume=False) == InterfaceRecord(sw_if_index=5)
    assert store.path_for(CONTAINER_ID, "net1").exists()


def test_save_overwrites_existing_record(tmp_path: Path):
    store = build_store(tmp_path)
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=2))

    assert store.load(CONTAINER_ID, "net1") == InterfaceRecord(sw_if_index=2)


def test_save_leaves_no_temporary_files(tmp_path: Path):
    store = build_store(tmp_path)
    store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))

    assert [p.name for p in store.shared_dir.iterdir()] == ["local-3f1d9c2b7a6e-net1.json"]


def test_malformed_record_is_left_in_place(tmp_path: Path):
    store = build_store(tmp_path)
    path = store.path_for(CONTAINER_ID, "net1")
    path.parent.mkdir(parents=True)
    path.write_text("{broken")

    with pytest.raises(MalformedRecord) as excinfo:
        store.load(CONTAINER_ID, "net1")

    assert excinfo.value.path == path
    assert path.exists()


def test_unscoped_store_ignores_container_id(tmp_path: Path):
    store = build_store(tmp_path, scope_by_container=False)

    path = store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))

    assert path.name == "local-net1.json"
    assert store.load("another-container", "net1") == InterfaceRecord(sw_if_index=1)


def test_ensure_directory_tolerates_existing_directory(tmp_path: Path):
    directory = tmp_path / "data"

    ensure_directory(directory)
    ensure_directory(directory)

    assert directory.is_dir()


def test_save_reports_io_errors(tmp_path: Path):
    store = build_store(tmp_path)
    store.shared_dir.write_text("a file where the directory should be")

    with pytest.raises(StoreIOError) as excinfo:
        store.save(CONTAINER_ID, "net1", InterfaceRecord(sw_if_index=1))

    assert excinfo.value.path == store.shared_dir
    assert store.shared_dir.is_file()
