import json
import os
from pathlib import Path

import pytest

from usrsp_cni.errors import CNI_IPAM_FAILURE, IpamError
from usrsp_cni.ipam import ExecIpam, ip_data_from_result
from usrsp_cni.requests import CniRequest
from usrsp_store.records import IPData


def write_plugin(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(0o755)
    return path


def build_request(tmp_path: Path) -> CniRequest:
    return CniRequest(
        command="ADD",
        container_id="c0ffee",
        ifname="net1",
        path=(str(tmp_path),),
        stdin=b'{"cniVersion": "1.0.0", "ipam": {"type": "fake-ipam"}}',
        environ={
            "CNI_COMMAND": "ADD",
            "CNI_CONTAINERID": "c0ffee",
            "CNI_IFNAME": "net1",
            "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        },
    )


def test_ip_data_from_current_result():
    result = {"cniVersion": "1.0.0", "ips": [{"address": "10.1.2.3/24", "gateway": "10.1.2.1"}]}

    assert ip_data_from_result(result) == IPData("10.1.2.3", 24, False)


def test_ip_data_from_legacy_result():
    result = {"cniVersion": "0.2.0", "ip6": {"ip": "fd00::5/64"}}

    assert ip_data_from_result(result) == IPData("fd00::5", 64, True)


def test_result_without_address_is_an_ipam_failure():
    with pytest.raises(IpamError) as excinfo:
        ip_data_from_result({"cniVersion": "1.0.0", "ips": []})

    assert excinfo.value.code == CNI_IPAM_FAILURE
    assert excinfo.value.msg == "IPAM plugin returned missing IP config"


def test_result_with_invalid_address():
    with pytest.raises(IpamError):
        ip_data_from_result({"ips": [{"address": "not-an-address"}]})


def test_exec_ipam_runs_plugin_from_path(tmp_path: Path):
    result = {"cniVersion": "1.0.0", "ips": [{"address": "10.9.0.2/16"}]}
    write_plugin(
        tmp_path,
        "fake-ipam",
        'cat > /dev/null\necho "$CNI_COMMAND" > "$(dirname "$0")/last-command"\n'
        f"echo '{json.dumps(result)}'\n",
    )

    assert ExecIpam().add("fake-ipam", build_request(tmp_path)) == result
    assert (tmp_path / "last-command").read_text().strip() == "ADD"

    ExecIpam().delete("fake-ipam", build_request(tmp_path))
    assert (tmp_path / "last-command").read_text().strip() == "DEL"


def test_exec_ipam_reports_plugin_error(tmp_path: Path):
    write_plugin(
        tmp_path,
        "fake-ipam",
        'cat > /dev/null\necho \'{"code": 11, "msg": "no addresses left"}\'\nexit 1\n',
    )

    with pytest.raises(IpamError, match="no addresses left"):
        ExecIpam().add("fake-ipam", build_request(tmp_path))


def test_missing_plugin(tmp_path: Path):
    with pytest.raises(IpamError, match="not found"):
        ExecIpam().find_plugin("host-local", [str(tmp_path)])
