from pathlib import Path

import pytest

from usrsp_store.exceptions import InvalidRecordName
from usrsp_store.naming import (
    RecordKind,
    aux_data_path,
    container_dir,
    container_prefix,
    interface_name_from_path,
    interface_record_path,
    remote_config_path,
    socket_path,
    validate_component,
)

CONTAINER_ID = "0123456789abcdef0123"


def test_interface_record_path_is_scoped_by_truncated_container_id(tmp_path: Path):
    path = interface_record_path(tmp_path, "net1", CONTAINER_ID)

    assert path == tmp_path / "local-0123456789ab-net1.json"


def test_interface_record_path_without_container(tmp_path: Path):
    assert interface_record_path(tmp_path, "net1") == tmp_path / "local-net1.json"


def test_short_container_id_is_used_whole():
    assert container_prefix("abc") == "abc"


def test_remote_and_aux_paths_share_container_dir(tmp_path: Path):
    directory = container_dir(tmp_path, CONTAINER_ID)

    assert directory == tmp_path / CONTAINER_ID
    assert remote_config_path(directory, "net1") == directory / "remote-net1.json"
    assert aux_data_path(directory, "net1") == directory / "addData-net1.json"


def test_socket_path(tmp_path: Path):
    path = socket_path(tmp_path, CONTAINER_ID, "net1")

    assert path == tmp_path / CONTAINER_ID / "0123456789ab-net1"


@pytest.mark.parametrize("value", ["", ".", "..", "a/b", "eth*", "net[0]", "a\0b"])
def test_validate_component_rejects_unsafe_names(value):
    with pytest.raises(InvalidRecordName):
        validate_component(value, "interface name")


def test_invalid_record_name_is_a_value_error(tmp_path: Path):
    with pytest.raises(ValueError):
        interface_record_path(tmp_path, "../escape", CONTAINER_ID)


def test_interface_name_from_path():
    assert interface_name_from_path(Path("/x/remote-net1.json"), RecordKind.REMOTE) == "net1"

    with pytest.raises(InvalidRecordName):
        interface_name_from_path(Path("/x/addData-net1.json"), RecordKind.REMOTE)


def test_record_kind_patterns():
    assert RecordKind.REMOTE.pattern == "remote-*.json"
    assert RecordKind.AUXILIARY.pattern == "addData-*.json"
    assert RecordKind.INTERFACE.prefix == "local"
