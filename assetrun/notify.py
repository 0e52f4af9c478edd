"""
Pluggable delivery of "file finished" and "file failed" messages.

Delivery is best-effort: a `Notifier` never lets a sink's exception escape, so
a missing desktop notification daemon can't break a build.
"""

import shlex
import shutil
from typing import IO, TYPE_CHECKING, Iterable, List, Optional

from .console import log_event
from .util import debug

if TYPE_CHECKING:
    from .context import Context
    from .exceptions import TransformError
    from .paths import AssetKind


class Sink:
    """
    Base class for notification channels.

    Subclasses must implement `notify`; `failure` defaults to calling it.
    """

    #: Name used to select this sink in config / on the command line.
    name: str = ""

    def notify(self, title: str, message: str) -> None:
        raise NotImplementedError

    def failure(self, title: str, message: str) -> None:
        self.notify(title, message)


class ConsoleSink(Sink):
    """
    Print one timestamped event line per message to stdout.

    Failures are not echoed here; they are already reported on stderr by the
    pipeline.
    """

    name = "console"

    def __init__(self, stream: Optional[IO] = None) -> None:
        self.stream = stream

    def notify(self, title: str, message: str) -> None:
        log_event(title, message, stream=self.stream)

    def failure(self, title: str, message: str) -> None:
        pass


class DesktopSink(Sink):
    """
    Pop up desktop notifications via ``notify-send`` (or a configured
    equivalent taking ``TITLE MESSAGE`` arguments).

    When the program isn't installed, messages are dropped.
    """

    name = "desktop"

    def __init__(self, context: "Context", command: Optional[str] = None):
        self.context = context
        notify = context.config.get("notify", {})
        self.command = command or notify.get("command", "notify-send")
        self.prefix = notify.get("title", "assetrun")

    @property
    def available(self) -> bool:
        return shutil.which(shlex.split(self.command)[0]) is not None

    def notify(self, title: str, message: str) -> None:
        self._send(title, message)

    def failure(self, title: str, message: str) -> None:
        self._send(title, message, flags="--urgency=critical")

    def _send(self, title: str, message: str, flags: str = "") -> None:
        if not self.available:
            debug(
                "{!r} not found, dropping {!r}".format(self.command, message)
            )
            return
        parts = [self.command]
        if flags:
            parts.append(flags)
        parts.append(shlex.quote("{} ({})".format(self.prefix, title)))
        parts.append(shlex.quote(message))
        result = self.context.run(
            " ".join(parts), warn=True, hide=True, echo=False
        )
        if result.failed:
            debug("Desktop notification failed: {}".format(result.stderr))


class NullSink(Sink):
    """
    Discard every message.
    """

    name = "none"

    def notify(self, title: str, message: str) -> None:
        pass


class Notifier:
    """
    Fan messages out to any number of `Sink` instances.
    """

    def __init__(self, sinks: Iterable[Sink] = ()) -> None:
        self.sinks: List[Sink] = list(sinks)

    @classmethod
    def from_names(
        cls, names: Iterable[str], context: "Context"
    ) -> "Notifier":
        """
        Build a notifier from sink names: ``console``, ``desktop``, ``none``.

        :raises: ``ValueError`` on an unknown sink name.
        """
        sinks: List[Sink] = []
        for name in names:
            if name == ConsoleSink.name:
                sinks.append(ConsoleSink())
            elif name == DesktopSink.name:
                sinks.append(DesktopSink(context))
            elif name == NullSink.name:
                sinks.append(NullSink())
            else:
                err = "Unknown notification sink {!r}; pick from {!r}"
                choices = ["console", "desktop", "none"]
                raise ValueError(err.format(name, choices))
        return cls(sinks)

    def notify(self, title: str, message: str) -> None:
        for sink in self.sinks:
            try:
                sink.notify(title, message)
            except Exception as e:
                debug("Sink {!r} failed to notify: {!r}".format(sink, e))

    def failure(self, title: str, message: str) -> None:
        for sink in self.sinks:
            try:
                sink.failure(title, message)
            except Exception as e:
                debug("Sink {!r} failed to report: {!r}".format(sink, e))

    def announce(self, kind: "AssetKind", path: str) -> None:
        """
        Announce that ``path`` (relative to the kind's output dir) is built.
        """
        self.notify(kind.name, kind.message.format(path=path))

    def report(self, kind: "AssetKind", error: "TransformError") -> None:
        """
        Announce that a file of ``kind`` failed to build.
        """
        self.failure("{} error".format(kind.name), str(error))
