"""
devflow-orchestrator — polling file watcher for configuration hot reload.

File: src/devflow_orchestrator/config/watcher.py

Purpose
- Detect changes to contributing config files and invoke a callback.

Functional requirements
- A change is any difference in (mtime_ns, size), including appearance or removal.
- Callback exceptions are logged and never stop the polling thread.
- ``stop()`` is idempotent and joins the thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from devflow_orchestrator.constants import DEFAULT_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

FileSignature = tuple[int, int] | None


def file_signature(path: Path) -> FileSignature:
    """Return ``(mtime_ns, size)`` for ``path``, or ``None`` when it does not exist."""

    try:
        stat = path.stat()
    except OSError:
        return None
    return (stat.st_mtime_ns, stat.st_size)


class FileWatcher:
    """Daemon thread that polls a fixed set of files."""

    def __init__(
        self,
        paths: Iterable[Path],
        on_change: Callable[[tuple[Path, ...]], None],
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        unique: dict[Path, None] = {}
        for path in paths:
            unique[Path(path)] = None
        self._paths = tuple(unique)
        self._on_change = on_change
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._signatures = {path: file_signature(path) for path in self._paths}

    @property
    def paths(self) -> tuple[Path, ...]:
        return self._paths

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._signatures = {path: file_signature(path) for path in self._paths}
        self._thread = threading.Thread(
            target=self._run, name="devflow-config-watcher", daemon=True
        )
        self._thread.start()
        logger.debug("watching %d config file(s)", len(self._paths))

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(self._interval * 5, 1.0))

    def poll(self) -> tuple[Path, ...]:
        """Check once; return the changed paths and invoke the callback if any changed."""

        changed: list[Path] = []
        for path in self._paths:
            current = file_signature(path)
            if current != self._signatures.get(path):
                self._signatures[path] = current
                changed.append(path)
        if not changed:
            return ()
        changed_paths = tuple(changed)
        logger.info("config file change detected: %s", ", ".join(str(p) for p in changed_paths))
        try:
            self._on_change(changed_paths)
        except Exception:  # noqa: BLE001 - watcher thread boundary.
            logger.exception("config change handler failed")
        return changed_paths

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.poll()


__all__ = ["FileSignature", "FileWatcher", "file_signature"]
