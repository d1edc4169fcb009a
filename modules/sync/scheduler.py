"""
Fixed-interval background loop shared by every sync job.

Each job runs in its own daemon thread inside an application context. A pass
that raises is logged and rolled back; the loop sleeps and tries again, so a
job never takes the process down.
"""

import threading
from dataclasses import dataclass

from extensions import db
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SyncJobConfig:
    """Configuration for one sync job."""

    name: str
    interval_seconds: int
    batch_size: int = 1000


class SyncJob:
    """Base class: subclasses implement ``run_once`` and optionally ``enabled``."""

    config: SyncJobConfig

    def __init__(self, app, config: SyncJobConfig | None = None):
        self.app = app
        if config is not None:
            self.config = config
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def name(self) -> str:
        return self.config.name

    def enabled(self) -> bool:
        return True

    def run_once(self) -> None:
        raise NotImplementedError

    def run_pass(self) -> bool:
        """One pass inside an app context; returns False when the pass failed."""
        with self.app.app_context():
            try:
                logger.info("sync pass starting", extra={"job": self.name})
                self.run_once()
                logger.info("sync pass finished", extra={"job": self.name})
                return True
            except Exception:  # noqa: BLE001  keep the loop alive
                db.session.rollback()
                logger.exception("sync pass failed", extra={"job": self.name})
                return False
            finally:
                db.session.remove()

    def run_forever(self) -> None:
        while not self._stop.is_set():
            self.run_pass()
            self._stop.wait(self.config.interval_seconds)

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run_forever, name=f"sync-{self.name}", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self._stop.set()
