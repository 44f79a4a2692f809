import os
from pathlib import Path

import pytest

from usrsp_store import codec, remote
from usrsp_store.config import MemifConf, NetConf, UserSpaceConf
from usrsp_store.exceptions import (
    InvalidRecordName,
    MalformedRecord,
    MissingCompanionRecord,
    StoreIOError,
)
from usrsp_store.records import AdditionalData, IPData
from usrsp_store.remote import ClaimOrder, RemoteHandoffQueue

CONTAINER_ID = "9a8b7c6d5e4f3a2b1c0d"


def remote_conf(ifname: str = "net1") -> NetConf:
    return NetConf(
        cni_version="1.0.0",
        name="userspace-net",
        type="userspace",
        host_conf=UserSpaceConf(
            engine="vpp",
            iftype="memif",
            net_type="interface",
            memif=MemifConf(role="slave", mode="ethernet"),
        ),
        if0name=ifname,
    )


def additional(container_id: str = CONTAINER_ID) -> AdditionalData:
    return AdditionalData(container_id, IPData.from_cidr("10.10.0.4/24"))


def test_staged_config_is_claimed_once(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)

    path = queue.stage("net1", remote_conf(), additional())

    assert path == tmp_path / CONTAINER_ID / "remote-net1.json"
    assert (tmp_path / CONTAINER_ID / "addData-net1.json").exists()

    pending = queue.find_pending()

    assert pending is not None
    assert pending.config == remote_conf()
    assert pending.additional == additional()
    assert pending.container_id == CONTAINER_ID
    assert pending.path == path
    assert not (tmp_path / CONTAINER_ID).exists()
    assert tmp_path.is_dir()
    assert queue.find_pending() is None


def test_find_pending_on_empty_queue(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path / "missing")

    assert queue.pending() == []
    assert queue.find_pending() is None


def test_peek_without_consume(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    path = queue.stage("net1", remote_conf(), additional())

    assert queue.find_pending(consume=False) is not None
    assert path.exists()
    assert queue.find_pending() is not None
    assert not path.exists()


def test_missing_companion_is_reported_after_claim(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    directory = tmp_path / CONTAINER_ID
    directory.mkdir()
    remote = directory / "remote-net1.json"
    remote.write_bytes(codec.encode(remote_conf()))

    with pytest.raises(MissingCompanionRecord) as excinfo:
        queue.find_pending()

    assert excinfo.value.path == directory / "addData-net1.json"
    assert not remote.exists()
    assert queue.find_pending() is None


def test_malformed_remote_record_is_left_in_place(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    directory = tmp_path / CONTAINER_ID
    directory.mkdir()
    remote = directory / "remote-net1.json"
    remote.write_text("[]")

    with pytest.raises(MalformedRecord):
        queue.find_pending()

    assert remote.exists()


def test_records_directly_under_root_are_found(tmp_path: Path):
    # Inside the container the per-container directory is the mount root.
    queue = RemoteHandoffQueue(tmp_path)
    (tmp_path / "remote-net1.json").write_bytes(codec.encode(remote_conf()))
    (tmp_path / "addData-net1.json").write_bytes(codec.encode(additional()))

    pending = queue.find_pending()

    assert pending is not None
    assert pending.config.if0name == "net1"
    assert list(tmp_path.iterdir()) == []
    assert tmp_path.is_dir()


def test_mtime_order_claims_oldest_first(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path, order=ClaimOrder.MTIME)
    newer = queue.stage("net1", remote_conf("net1"), additional("container-b"))
    older = queue.stage("net2", remote_conf("net2"), additional("container-a"))
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    assert queue.pending() == [older, newer]

    first = queue.find_pending()
    second = queue.find_pending()

    assert first is not None and first.config.if0name == "net2"
    assert second is not None and second.config.if0name == "net1"


def test_discard_removes_container_directory(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    queue.stage("net1", remote_conf("net1"), additional())
    queue.stage("net2", remote_conf("net2"), additional())

    assert queue.discard(CONTAINER_ID) is True
    assert not queue.container_dir(CONTAINER_ID).exists()
    assert queue.discard(CONTAINER_ID) is False
    assert queue.find_pending() is None


def test_stage_rejects_unsafe_interface_name(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)

    with pytest.raises(ValueError):
        queue.stage("../net1", remote_conf(), additional())

    assert list(tmp_path.iterdir()) == []


def stage_in_order(queue: RemoteHandoffQueue):
    first = queue.stage("net1", remote_conf("net1"), additional("container-a"))
    second = queue.stage("net2", remote_conf("net2"), additional("container-b"))
    os.utime(first, (1_000_000, 1_000_000))
    os.utime(second, (2_000_000, 2_000_000))
    return first, second


def test_lost_claim_moves_on_to_next_record(tmp_path: Path, monkeypatch):
    queue = RemoteHandoffQueue(tmp_path, order=ClaimOrder.MTIME)
    first, second = stage_in_order(queue)
    real_remove = remote.remove_file

    def remove_after_other_agent(path):
        if path == first:
            # another agent unlinks it between our read and our unlink
            os.unlink(path)
        return real_remove(path)

    monkeypatch.setattr(remote, "remove_file", remove_after_other_agent)

    pending = queue.find_pending()

    assert pending is not None
    assert pending.path == second
    assert pending.container_id == "container-b"
    assert not second.exists()


def test_record_vanishing_before_read_is_skipped(tmp_path: Path, monkeypatch):
    queue = RemoteHandoffQueue(tmp_path, order=ClaimOrder.MTIME)
    first, second = stage_in_order(queue)
    real_read = remote.read_optional

    def read_after_other_agent(path):
        if path == first:
            os.unlink(path)
        return real_read(path)

    monkeypatch.setattr(remote, "read_optional", read_after_other_agent)

    pending = queue.find_pending()

    assert pending is not None
    assert pending.config.if0name == "net2"


def test_record_with_empty_interface_name_is_left_in_place(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    stray = tmp_path / "remote-.json"
    stray.write_bytes(codec.encode(remote_conf()))

    with pytest.raises(InvalidRecordName):
        queue.find_pending()

    assert stray.exists()


def test_stage_reports_io_errors(tmp_path: Path):
    queue = RemoteHandoffQueue(tmp_path)
    (tmp_path / CONTAINER_ID).write_text("not a directory")

    with pytest.raises(StoreIOError) as excinfo:
        queue.stage("net1", remote_conf(), additional())

    assert excinfo.value.path == tmp_path / CONTAINER_ID
