"""
User-facing console output: timestamped event lines and error reports.

Debug chatter goes through the ``assetrun`` logger (see `.util`); what lives
here is the output a user watching a build is meant to read.
"""

import sys
import threading
import time
from typing import IO, Optional

from .termcolor import green, magenta, red
from .util import debug

# Nodes of a graph layer (and watch workers) print concurrently.
_lock = threading.Lock()


def timestamp() -> str:
    return time.strftime("%H:%M:%S")


def log_event(type_: str, text: str, stream: Optional[IO] = None) -> None:
    """
    Print ``[HH:MM:SS] TYPE: text``, coloured when ``stream`` is a TTY.
    """
    stream = stream if stream is not None else sys.stdout
    line = "[{}] {}: {}".format(
        timestamp(), magenta(type_, stream=stream), green(text, stream=stream)
    )
    debug("Event {!r}: {!r}".format(type_, text))
    with _lock:
        print(line, file=stream)
        stream.flush()


def report_error(text: str, stream: Optional[IO] = None) -> None:
    """
    Print ``text`` to stderr (or ``stream``), red when it is a TTY.
    """
    stream = stream if stream is not None else sys.stderr
    with _lock:
        print(red(text, stream=stream), file=stream)
        stream.flush()


def log(text: str, stream: Optional[IO] = None) -> None:
    """
    Print a plain ``[HH:MM:SS] text`` line, e.g. task start/finish notices.
    """
    stream = stream if stream is not None else sys.stdout
    with _lock:
        print("[{}] {}".format(timestamp(), text), file=stream)
        stream.flush()
