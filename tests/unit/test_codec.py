import json

import pytest

from usrsp_store import codec
from usrsp_store.config import MemifConf, NetConf, UserSpaceConf
from usrsp_store.exceptions import MalformedRecord
from usrsp_store.naming import RecordKind
from usrsp_store.records import AdditionalData, InterfaceRecord, IPData


def test_encode_tags_schema_version():
    payload = json.loads(codec.encode(InterfaceRecord(sw_if_index=4, memif_socket_id=2)))

    assert payload == {
        "schemaVersion": 1,
        "swIfIndex": 4,
        "memifSocketId": 2,
        "socketFile": "",
    }


def test_decode_restores_every_record_kind():
    conf = NetConf(
        cni_version="0.3.1",
        name="userspace-net",
        type="userspace",
        host_conf=UserSpaceConf(
            engine="vpp", iftype="memif", memif=MemifConf(role="slave", mode="ip")
        ),
        if0name="net1",
        extra={"logLevel": "debug"},
    )
    additional = AdditionalData("abcdef", IPData.from_cidr("192.168.1.5/24"))

    assert codec.decode(codec.encode(conf), RecordKind.REMOTE) == conf
    assert codec.decode(codec.encode(additional), RecordKind.AUXILIARY) == additional


def test_decode_accepts_untagged_records():
    raw = b'{"swIfIndex": 9, "memifSocketId": 1, "socketFile": "/run/s"}'

    record = codec.decode(raw, RecordKind.INTERFACE)

    assert record == InterfaceRecord(sw_if_index=9, memif_socket_id=1, socket_file="/run/s")


def test_decode_rejects_newer_schema():
    with pytest.raises(MalformedRecord, match="newer"):
        codec.decode(b'{"schemaVersion": 2, "swIfIndex": 1}', RecordKind.INTERFACE)


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"memifSocketId": 1}',
        b'{"swIfIndex": "one"}',
        b'{"swIfIndex": -1}',
        b"\xff\xfe",
    ],
)
def test_decode_rejects_malformed_interface_records(raw):
    with pytest.raises(MalformedRecord):
        codec.decode(raw, RecordKind.INTERFACE)


def test_decode_requires_container_id_in_additional_data(tmp_path):
    path = tmp_path / "addData-net1.json"

    with pytest.raises(MalformedRecord) as excinfo:
        codec.decode(b'{"ipData": {}}', RecordKind.AUXILIARY, path)

    assert excinfo.value.path == path


def test_kind_of_rejects_unknown_types():
    with pytest.raises(TypeError):
        codec.kind_of(IPData())
