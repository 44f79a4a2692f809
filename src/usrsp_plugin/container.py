"""Container-side agent applying configuration staged by the host."""

from __future__ import annotations

import logging
import signal
import sys
from threading import Event
from typing import Optional

from oslo_config import cfg

from usrsp_cni import config_opts
from usrsp_cni.errors import CniError
from usrsp_cni.factory import build_dispatcher

from .main import LOG_FORMAT
from .watchers import PendingConfigWatcher

LOG = logging.getLogger(__name__)

cli_opts = [
    cfg.BoolOpt('once',
                default=False,
                help='Apply whatever is pending and exit instead of polling.'),
    cfg.BoolOpt('verbose',
                default=False,
                help='Enable debug logging.'),
]


def build_conf(argv: Optional[list[str]] = None) -> cfg.ConfigOpts:
    conf = cfg.ConfigOpts()
    config_opts.register_opts(conf)
    conf.register_cli_opts(cli_opts)
    conf(args=[] if argv is None else argv,
         project='userspace-cni',
         default_config_files=[],
         default_config_dirs=[])
    return conf


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def main(argv: Optional[list[str]] = None) -> int:
    conf = build_conf(sys.argv[1:] if argv is None else argv)
    _setup_logging(conf.verbose)

    dispatcher = build_dispatcher(
        config_opts.store_settings(conf), config_opts.engine_settings(conf)
    )
    stop_event = Event()
    watcher = PendingConfigWatcher(dispatcher, conf.agent.poll_interval, stop_event)

    if conf.once:
        try:
            applied = watcher.poll()
        except CniError as exc:
            LOG.error("failed to apply pending configuration: %s (%s)", exc.msg, exc.details)
            return 1
        LOG.info("applied %d pending configuration(s)", len(applied))
        return 0

    def _shutdown(signum, frame):
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    LOG.info(
        "watching %s for pending configuration every %ss",
        conf.store.base_dir,
        conf.agent.poll_interval,
    )
    watcher.start()
    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:
        stop_event.set()
    watcher.join()

    LOG.info("userspace-cni container agent stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
