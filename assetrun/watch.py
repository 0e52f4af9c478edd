"""
Rebuild an asset kind whenever one of its source files changes.
"""

import os
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .console import log_event, report_error
from .exceptions import BuildFailed
from .util import ExceptionHandlingThread, debug

if TYPE_CHECKING:
    from .context import Context
    from .paths import AssetKind

#: Event types that mean a source file's contents may differ now.
CHANGES = ("created", "modified", "deleted", "moved")


class KindWatcher(FileSystemEventHandler):
    """
    Watchdog event handler driving rebuilds of one asset kind.

    Matching events wake a single worker thread, which waits until things have
    been quiet for ``delay`` seconds and then calls ``rebuild``. Events seen
    while a rebuild runs are folded into one follow-up rebuild, so rebuilds of
    a kind never overlap.
    """

    def __init__(
        self,
        context: "Context",
        kind: "AssetKind",
        rebuild: Callable[[], Any],
        delay: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.context = context
        self.kind = kind
        self.rebuild = rebuild
        if delay is None:
            delay = context.settings.watch.delay
        self.delay = delay
        #: Number of rebuilds started so far, the initial one included.
        self.rebuilds = 0
        self._wake = threading.Event()
        self._stopped = threading.Event()
        self.worker = ExceptionHandlingThread(
            target=self._loop, name="watch-{}".format(kind.name)
        )

    def relative(self, path: str) -> Optional[str]:
        """
        Return ``path`` relative to the project root if it is a source file
        of our kind, else ``None``.
        """
        root = self.context.settings.root
        if not path or not self.kind.matches(path, root):
            return None
        return os.path.relpath(path, str(root))

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in CHANGES:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        changed = [x for x in map(self.relative, paths) if x]
        if not changed:
            debug("Ignoring {!r}".format(event))
            return
        for path in changed:
            log_event(self.kind.event, "File {} was changed".format(path))
        self.trigger()

    def trigger(self) -> None:
        """
        Request a rebuild.
        """
        self._wake.set()

    def start(self) -> None:
        self.worker.start()

    def stop(self) -> None:
        self._stopped.set()
        self._wake.set()

    def join(self, timeout: Optional[float] = None) -> None:
        self.worker.join(timeout)

    def _loop(self) -> None:
        while not self._stopped.is_set():
            self._wake.wait()
            # Debounce: keep waiting while events keep coming in.
            while self._wake.is_set():
                self._wake.clear()
                if self._stopped.wait(self.delay):
                    return
            self.run_rebuild()

    def run_rebuild(self) -> None:
        """
        Run one rebuild, reporting instead of raising any failure.
        """
        self.rebuilds += 1
        debug("Rebuild #{} of {}".format(self.rebuilds, self.kind.name))
        try:
            self.rebuild()
        except BuildFailed as e:
            # Individual files were already reported as they failed.
            debug("Rebuild of {} failed: {}".format(self.kind.name, e))
        except Exception as e:
            report_error(
                "Rebuild of {} failed: {}".format(self.kind.name, e)
            )


def make_observer(context: "Context") -> Any:
    options = context.settings.watch
    if options.poll:
        return PollingObserver(timeout=options.interval)
    return Observer()


def watch(
    context: "Context",
    kind: "AssetKind",
    rebuild: Callable[[], Any],
    stop: Optional[threading.Event] = None,
) -> KindWatcher:
    """
    Watch ``kind``'s source files, calling ``rebuild`` once right away and
    again after every batch of changes.

    Blocks until ``stop`` is set (or forever, if not given) and returns the
    `KindWatcher` used.
    """
    if stop is None:
        stop = threading.Event()
    root = context.settings.root
    path = root / kind.base
    if not path.is_dir():
        debug("{} does not exist yet, watching {}".format(path, root))
        path = root
    handler = KindWatcher(context, kind, rebuild)
    observer = make_observer(context)
    observer.schedule(handler, str(path), recursive=True)
    observer.start()
    debug("Watching {} for {}".format(path, kind.source))
    try:
        handler.run_rebuild()
        handler.start()
        while not stop.wait(0.5):
            pass
    finally:
        handler.stop()
        observer.stop()
        observer.join()
        handler.join(timeout=5)
    return handler
