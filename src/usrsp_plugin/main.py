"""Entry point for the userspace CNI plugin binary."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import IO, Any, Mapping, Optional

import yaml

from usrsp_cni.dispatcher import DEFAULT_CNI_VERSION
from usrsp_cni.errors import CNI_IO_FAILURE, CniError
from usrsp_cni.factory import build_dispatcher
from usrsp_cni.requests import CniRequest

from .config import LogSettings, config_path, load_config

LOG = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _setup_logging(verbose: bool, settings: LogSettings) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.level, logging.INFO)
    # stdout carries the CNI result, so logs go to a file or stderr
    if settings.file is not None:
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=str(settings.file))
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _cni_version(raw: bytes) -> str:
    try:
        data = json.loads(raw)
    except ValueError:
        return DEFAULT_CNI_VERSION
    if isinstance(data, dict) and isinstance(data.get("cniVersion"), str) and data["cniVersion"]:
        return data["cniVersion"]
    return DEFAULT_CNI_VERSION


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    # The runtime never passes arguments; these exist for running by hand.
    parser = argparse.ArgumentParser(description="Userspace (memif/vhost-user) CNI plugin")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the plugin configuration file",
    )
    parser.add_argument(
        "-c",
        "--command",
        help="CNI command (ADD/DEL/VERSION), overrides CNI_COMMAND",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        help="Read the network configuration from a file instead of stdin",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(
    argv: Optional[list[str]] = None,
    stdin: Optional[IO[bytes]] = None,
    stdout: Optional[IO[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    args = parse_args(argv)
    out = stdout or sys.stdout
    raw = b""

    try:
        try:
            if args.file is not None:
                raw = args.file.read_bytes()
            else:
                raw = (stdin or sys.stdin.buffer).read()
        except OSError as exc:
            raise CniError(
                "failed to read network configuration",
                details=str(exc),
                code=CNI_IO_FAILURE,
            ) from exc

        try:
            config = load_config(config_path(args.config))
        except (ValueError, yaml.YAMLError) as exc:
            raise CniError("invalid plugin configuration", details=str(exc)) from exc
        _setup_logging(args.verbose, config.log)

        request = CniRequest.from_environ(raw, environ, args.command)
        LOG.debug(
            "CNI %s container=%s ifname=%s netns=%s",
            request.command,
            request.container_id,
            request.ifname,
            request.netns,
        )
        dispatcher = build_dispatcher(config.store, config.engines)
        result: Optional[Any] = dispatcher.handle(request)
    except CniError as exc:
        LOG.error("CNI command failed: %s (%s)", exc.msg, exc.details)
        json.dump(exc.to_dict(_cni_version(raw)), out)
        out.write("\n")
        return 1

    if result is not None:
        json.dump(result, out)
        out.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
