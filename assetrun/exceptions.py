"""
Custom exception classes.

These vary in use case from "we needed a specific data structure layout in
exceptions used for message-passing" to simply "we needed to express an error
condition in a way easily told apart from other, truly unexpected errors".
"""

from collections import namedtuple
from pprint import pformat
from traceback import format_exception
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from .runners import Result
    from .parser import ParserContext


class Failure(Exception):
    """
    Exception subclass representing failure of a command execution.

    "Failure" means the command executed and the shell indicated an unusual
    result (usually, a non-zero exit code).

    The ``result`` attribute holds a `.Result` instance with info about the
    command being executed and how it exited.
    """

    def __init__(self, result: "Result", reason: Optional[Exception] = None):
        self.result = result
        self.reason = reason

    def __repr__(self) -> str:
        return str(self)


def _tail(stream: str) -> str:
    # NOTE: no trailing \n preservation; easier for below display if normalized
    return "\n\n" + "\n".join(stream.splitlines()[-10:])


class UnexpectedExit(Failure):
    """
    A shell command ran to completion but exited with an unexpected exit code.

    Its string representation displays the command executed, its exit code,
    and the last 10 lines of stdout and stderr if they were hidden.
    """

    def __str__(self) -> str:
        already_printed = " already printed"
        if "stdout" not in self.result.hide:
            stdout = already_printed
        else:
            stdout = _tail(self.result.stdout)
        if "stderr" not in self.result.hide:
            stderr = already_printed
        else:
            stderr = _tail(self.result.stderr)
        return """Encountered a bad command exit code!

Command: {!r}

Exit code: {}

Stdout:{}

Stderr:{}

""".format(
            self.result.command, self.result.exited, stdout, stderr
        )


class TransformError(Exception):
    """
    A pipeline stage could not transform a given source file.

    This is the only kind of build error: whatever went wrong inside a
    compiler, minifier or external program, it is reported as "stage X failed
    for file Y" and handled the same way.
    """

    def __init__(self, stage: str, path: str, message: str) -> None:
        super().__init__(stage, path, message)
        self.stage = stage
        self.path = path
        self.message = message

    def __str__(self) -> str:
        return "{} failed for {}: {}".format(
            self.stage, self.path, self.message.strip()
        )


class BuildFailed(Exception):
    """
    One or more files of an asset kind failed to build.

    Raised after every other file of the kind has been processed, so the
    ``errors`` attribute holds all the `TransformError` instances from that
    run.
    """

    def __init__(self, kind: str, errors: Iterable[TransformError]) -> None:
        self.kind = kind
        self.errors = tuple(errors)

    def __str__(self) -> str:
        noun = "file" if len(self.errors) == 1 else "files"
        lines = ["{} build failed ({} {}):".format(
            self.kind, len(self.errors), noun
        )]
        lines.extend("  {}".format(x) for x in self.errors)
        return "\n".join(lines)


class GraphError(ValueError):
    """
    A task graph is malformed: unknown requirement, duplicate node or cycle.
    """

    pass


class ParseError(Exception):
    """
    An error arising from the parsing of command-line flags/arguments.

    Ambiguous input, invalid task names, invalid flags, etc.
    """

    def __init__(
        self, msg: str, context: Optional["ParserContext"] = None
    ) -> None:
        super().__init__(msg)
        self.context = context


class Exit(Exception):
    """
    Simple stand-in for SystemExit that lets us gracefully exit.

    Removes lots of scattered sys.exit calls, improves testability.
    """

    def __init__(
        self, message: Optional[str] = None, code: Optional[int] = None
    ) -> None:
        self.message = message
        self._code = code

    @property
    def code(self) -> int:
        if self._code is not None:
            return self._code
        return 1 if self.message else 0


class AmbiguousEnvVar(Exception):
    """
    Raised when loading env var config keys has an ambiguous target.
    """

    pass


class UncastableEnvVar(Exception):
    """
    Raised on attempted env var loads whose default values are too rich.

    E.g. trying to stuff ``MY_VAR="foo"`` into ``{'my_var': ['uh', 'oh']}``
    doesn't make any sense.
    """

    pass


class UnknownFileType(Exception):
    """
    A config file of an unknown type was specified and cannot be loaded.
    """

    pass


class AmbiguousMergeError(ValueError):
    pass


#: A namedtuple wrapping a thread-borne exception & that thread's arguments.
#: Mostly used as an intermediate between `.ExceptionHandlingThread` (which
#: preserves initial exceptions) and `ThreadException` (which holds 1..N such
#: exceptions, as typically multiple threads are involved.)
ExceptionWrapper = namedtuple(
    "ExceptionWrapper", "kwargs type value traceback"
)


class ThreadException(Exception):
    """
    One or more exceptions were raised within concurrently executing tasks.

    The real underlying exceptions are stored in the `exceptions` attribute,
    as `ExceptionWrapper` instances.

    .. note::
        Threads which did not encounter an exception, do not contribute to this
        exception object and thus are not present inside `exceptions`.
    """

    #: A tuple of `ExceptionWrappers <ExceptionWrapper>` containing the initial
    #: thread constructor kwargs and the caught exception for that thread as
    #: seen by `sys.exc_info` (so: type, value, traceback).
    exceptions: tuple = tuple()

    def __init__(self, exceptions: List[ExceptionWrapper]) -> None:
        self.exceptions = tuple(exceptions)

    def __str__(self) -> str:
        details = []
        for x in self.exceptions:
            detail = "Thread args: {}\n\n{}"
            details.append(
                detail.format(
                    pformat(_printable_kwargs(x.kwargs)),
                    "\n".join(format_exception(x.type, x.value, x.traceback)),
                )
            )
        args = (
            len(self.exceptions),
            ", ".join(x.type.__name__ for x in self.exceptions),
            "\n\n".join(details),
        )
        return """
Saw {} exceptions within threads ({}):


{}
""".format(
            *args
        )


def _printable_kwargs(kwargs: Any) -> Dict[str, Any]:
    """
    Return print-friendly version of a thread-related ``kwargs`` dict.

    Extra care is taken with ``args`` members which are very long iterables -
    those need truncating to be useful.
    """
    printable = {}
    for key, value in kwargs.items():
        item = value
        if key == "args":
            item = []
            for arg in value:
                new_arg = arg
                if hasattr(arg, "__len__") and len(arg) > 10:
                    msg = "<... remainder truncated during error display ...>"
                    new_arg = arg[:10] + [msg]
                item.append(new_arg)
        printable[key] = item
    return printable
