from pathlib import Path

import pytest

from usrsp_plugin.container import build_conf, main
from usrsp_store.config import MemifConf, NetConf, UserSpaceConf
from usrsp_store.records import AdditionalData, IPData
from usrsp_store.remote import ClaimOrder, RemoteHandoffQueue

CONTAINER_ID = "e1d2c3b4a5968778695a4b3c"


def write_conf_file(tmp_path: Path, helper: Path = None) -> Path:
    lines = [
        "[store]",
        f"base_dir = {tmp_path / 'cni'}",
        f"shared_dir = {tmp_path / 'data'}",
        "claim_order = mtime",
        "[agent]",
        "poll_interval = 0.1",
    ]
    if helper is not None:
        lines += ["[engines]", f"vpp_command = {helper}"]
    path = tmp_path / "agent.conf"
    path.write_text("\n".join(lines) + "\n")
    return path


def stage(tmp_path: Path) -> Path:
    conf = NetConf(
        cni_version="1.0.0",
        name="userspace-vpp-net",
        type="userspace",
        host_conf=UserSpaceConf(
            engine="vpp",
            iftype="memif",
            net_type="interface",
            memif=MemifConf(role="slave", mode="ethernet"),
        ),
        if0name="net1",
    )
    queue = RemoteHandoffQueue(tmp_path / "cni")
    return queue.stage("net1", conf, AdditionalData(CONTAINER_ID, IPData.from_cidr("10.0.0.9/24")))


def test_build_conf_reads_config_file(tmp_path: Path):
    conf = build_conf(["--config-file", str(write_conf_file(tmp_path)), "--once"])

    assert conf.once is True
    assert conf.verbose is False
    assert conf.store.base_dir == str(tmp_path / "cni")
    assert conf.store.claim_order == ClaimOrder.MTIME.value
    assert conf.agent.poll_interval == pytest.approx(0.1)
    assert conf.engines.vpp_command is None


def test_once_with_nothing_pending(tmp_path: Path):
    assert main(["--config-file", str(write_conf_file(tmp_path)), "--once"]) == 0


def test_once_applies_staged_config(tmp_path: Path):
    helper = tmp_path / "vpp-helper"
    helper.write_text("#!/bin/sh\ncat > /dev/null\necho '{\"swIfIndex\": 21}'\n")
    helper.chmod(0o755)
    staged = stage(tmp_path)

    assert main(["--config-file", str(write_conf_file(tmp_path, helper)), "--once"]) == 0

    assert not staged.exists()
    assert (tmp_path / "data" / "local-e1d2c3b4a596-net1.json").exists()


def test_once_reports_failure(tmp_path: Path):
    stage(tmp_path)

    assert main(["--config-file", str(write_conf_file(tmp_path)), "--once"]) == 1
