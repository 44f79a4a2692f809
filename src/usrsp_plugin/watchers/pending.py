"""Poll the handoff queue and apply whatever the host staged."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import List

from usrsp_cni.dispatcher import Dispatcher
from usrsp_store.records import PendingConfig

LOG = logging.getLogger(__name__)


class PendingConfigWatcher(Thread):
    """Claim and apply staged remote configurations until stopped."""

    def __init__(self, dispatcher: Dispatcher, interval: float, stop_event: Event) -> None:
        super().__init__(daemon=True)
        self._dispatcher = dispatcher
        self._interval = interval
        self._stop_event = stop_event

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:
                LOG.exception("pending configuration watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> List[PendingConfig]:
        """Apply every configuration pending right now."""

        claimed: List[PendingConfig] = []
        while not self._stop_event.is_set():
            pending = self._dispatcher.apply_pending()
            if pending is None:
                break
            LOG.info("applied %s for container %s", pending.config.if0name, pending.container_id)
            claimed.append(pending)
        return claimed
