import logging
import os
import sys
import threading
from typing import Any, Callable, Iterable, List, Optional

from .exceptions import ExceptionWrapper

LOG_FORMAT = "%(name)s.%(module)s.%(funcName)s: %(message)s"


def enable_logging() -> None:
    logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)


# Allow from-the-start debugging (vs toggled during argv parsing) via shell env
# var.
if os.environ.get("ASSETRUN_DEBUG"):
    enable_logging()

# Add top level logger functions to global namespace. Meh.
log = logging.getLogger("assetrun")
debug = log.debug


def sort_names(names: Iterable[str]) -> List[str]:
    """
    Sort task ``names`` case-insensitively, then as regular strings.
    """
    return sorted(names, key=lambda x: (x.lower(), x))


def helpline(obj: object) -> Optional[str]:
    """
    Yield an object's first docstring line, or None if there was no docstring.
    """
    docstring = obj.__doc__
    if (
        not docstring
        or not docstring.strip()
        or docstring == type(obj).__doc__
    ):
        return None
    return docstring.lstrip().splitlines()[0]


def isatty(stream: Any) -> bool:
    """
    Cleanly determine whether ``stream`` is a TTY.

    Specifically, first try calling ``stream.isatty()``, and if that fails
    (e.g. due to lacking the method entirely) fallback to `os.isatty`.
    """
    if hasattr(stream, "isatty") and callable(stream.isatty):
        return stream.isatty()
    try:
        return os.isatty(stream.fileno())
    except (AttributeError, ValueError, OSError):
        return False


class ExceptionHandlingThread(threading.Thread):
    """
    Thread handler making it easier for parent to handle thread exceptions.

    Used by the `.Executor` to run the nodes of one graph layer side by side,
    and by the watcher for its rebuild worker. Exceptions raised by the target
    are stored rather than printed, so the parent can decide what to do with
    them after ``join()``.
    """

    def __init__(self, **kwargs: Any) -> None:
        """
        Create a new exception-handling thread instance.

        Takes all regular `threading.Thread` keyword arguments, via
        ``**kwargs`` for easier display of thread identity when raising
        captured exceptions.
        """
        super().__init__(**kwargs)
        # Program exit (e.g. Ctrl-C during a watch) must not wait on workers.
        self.daemon = True
        self.kwargs = kwargs
        # Track exceptions raised in run()
        self.exc_info: Optional[Any] = None
        #: Return value of the target, if it finished cleanly.
        self.result: Any = None

    def run(self) -> None:
        try:
            target: Optional[Callable[..., Any]] = self.kwargs.get("target")
            if target is not None:
                self.result = target(
                    *self.kwargs.get("args", ()),
                    **self.kwargs.get("kwargs", {})
                )
        except BaseException:
            # Store for actual reraising later
            self.exc_info = sys.exc_info()
            # And log now, in case we never get to later (e.g. if executing
            # program is hung waiting for us to do something)
            msg = "Encountered exception {!r} in thread for {!r}"
            debug(msg.format(self.exc_info[1], self.name))

    def exception(self) -> Optional[ExceptionWrapper]:
        """
        If an exception occurred, return an `.ExceptionWrapper` around it.

        :returns:
            An `.ExceptionWrapper` managing the result of `sys.exc_info`, if an
            exception was raised during thread execution. If no exception
            occurred, returns ``None`` instead.
        """
        if self.exc_info is None:
            return None
        return ExceptionWrapper(self.kwargs, *self.exc_info)

    @property
    def is_dead(self) -> bool:
        """
        Returns ``True`` if not alive and has a stored exception.
        """
        return (not self.is_alive()) and self.exc_info is not None

    def __repr__(self) -> str:
        return "<{}: {}>".format(self.__class__.__name__, self.name)
