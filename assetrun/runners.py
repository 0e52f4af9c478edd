import codecs
import locale
import os
import sys
from subprocess import PIPE, Popen
from typing import IO, TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .exceptions import ThreadException, UnexpectedExit
from .termcolor import white
from .util import ExceptionHandlingThread, debug

if TYPE_CHECKING:
    from .context import Context


class Runner:
    """
    Partially-abstract core command-running API.

    This class is not usable by itself and must be subclassed, implementing
    `run_direct`. For a subclass implementation example, see the source code
    for `.Local`.
    """

    read_chunk_size = 1000

    def __init__(self, context: "Context") -> None:
        """
        Create a new runner with a handle on some `.Context`.

        :param context:
            a `.Context` instance, whose configuration's ``run`` subtree
            supplies default values for the `run` keyword arguments.
        """
        self.context = context

    def run(self, command: str, **kwargs: Any) -> "Result":
        """
        Execute ``command``, returning an instance of `Result`.

        All kwargs default to the values found in the context configuration's
        ``run`` subtree.

        :param str command: The shell command to execute.

        :param str shell: Which shell binary to use. Default: ``/bin/sh``.

        :param bool warn:
            Whether to warn and continue, instead of raising `.UnexpectedExit`,
            when the executed command exits with a nonzero status. Default:
            ``False``.

        :param hide:
            Disable copying the subprocess' stdout and/or stderr to the
            controlling terminal. Specify ``hide='out'`` (or ``'stdout'``) to
            hide only stdout, ``hide='err'`` (or ``'stderr'``) to hide only
            stderr, or ``hide='both'`` (or ``True``) to hide both streams.

            .. note::
                Stdout and stderr are always captured and stored in the
                ``Result`` object, regardless of ``hide``'s value.

        :param bool echo:
            Print the command string to local stdout prior to executing it.
            Default: ``False``.

        :param dict env:
            Extra environment variables, layered on top of ``os.environ``.

        :param str stdin:
            Text written to the subprocess' standard input, which is then
            closed. Default: ``None`` (stdin is inherited).

        :param str encoding:
            Override auto-detection of which encoding the subprocess is using
            for its streams. Defaults to the return value of
            ``locale.getpreferredencoding(False)``.

        :returns: `Result`

        :raises: `.UnexpectedExit`, if the command exited nonzero and ``warn``
            was ``False``.
        """
        opts = self._run_opts(kwargs)
        hide = normalize_hide(opts["hide"])
        if opts["echo"] and not hide:
            print(white(command, bold=True))
        env = self.generate_env(opts["env"])
        encoding = opts["encoding"] or self.default_encoding()
        debug("Running {!r} (hide={!r})".format(command, hide))
        stdout, stderr, exited = self.run_direct(
            command,
            shell=opts["shell"],
            env=env,
            stdin=opts["stdin"],
            hide=hide,
            encoding=encoding,
        )
        result = Result(
            command=command,
            shell=opts["shell"],
            env=env,
            stdout=stdout,
            stderr=stderr,
            exited=exited,
            hide=hide,
        )
        if not (result or opts["warn"]):
            raise UnexpectedExit(result)
        return result

    def _run_opts(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        opts: Dict[str, Any] = dict(self.context.config.get("run", {}))
        opts.setdefault("stdin", None)
        for key, value in kwargs.items():
            if key not in opts:
                err = "run() got an unexpected keyword argument '{}'"
                raise TypeError(err.format(key))
            opts[key] = value
        return opts

    def generate_env(self, env: Dict[str, str]) -> Dict[str, str]:
        """
        Return a suitable environment dict based on user input & behavior.

        :param dict env: Dict supplying overrides or full env, depending.
        """
        return dict(os.environ, **env)

    def default_encoding(self) -> str:
        return locale.getpreferredencoding(False)

    def run_direct(
        self,
        command: str,
        shell: str,
        env: Dict[str, str],
        stdin: Optional[str],
        hide: Tuple[str, ...],
        encoding: str,
    ) -> Tuple[str, str, int]:
        raise NotImplementedError


class Local(Runner):
    """
    Execute a command on the local system in a subprocess.
    """

    def run_direct(
        self,
        command: str,
        shell: str,
        env: Dict[str, str],
        stdin: Optional[str],
        hide: Tuple[str, ...],
        encoding: str,
    ) -> Tuple[str, str, int]:
        process = Popen(
            command,
            shell=True,
            executable=shell,
            env=env,
            stdin=PIPE if stdin is not None else None,
            stdout=PIPE,
            stderr=PIPE,
        )

        def display(src: IO, dst: IO, cap: List[str], hidden: bool) -> None:
            def get():
                while True:
                    data = os.read(src.fileno(), self.read_chunk_size)
                    if not data:
                        break
                    yield data

            for data in codecs.iterdecode(get(), encoding, errors="replace"):
                if not hidden:
                    dst.write(data)
                    dst.flush()
                cap.append(data)

        def feed(dst: IO, text: str) -> None:
            try:
                dst.write(text.encode(encoding))
            except BrokenPipeError:
                # Subprocess quit without reading everything; its exit code
                # tells the real story.
                pass
            finally:
                dst.close()

        stdout: List[str] = []
        stderr: List[str] = []
        threads = []
        for args in (
            (process.stdout, sys.stdout, stdout, "stdout" in hide),
            (process.stderr, sys.stderr, stderr, "stderr" in hide),
        ):
            threads.append(
                ExceptionHandlingThread(target=display, args=args)
            )
        if stdin is not None:
            threads.append(
                ExceptionHandlingThread(
                    target=feed, args=(process.stdin, stdin)
                )
            )
        for t in threads:
            t.start()

        process.wait()
        for t in threads:
            t.join()
        for src in (process.stdout, process.stderr):
            src.close()
        errors = [t.exception() for t in threads if t.exception()]
        if errors:
            raise ThreadException(errors)

        return "".join(stdout), "".join(stderr), process.returncode


class Result:
    """
    A container for information about the result of a command execution.

    `Result` objects' truth evaluation is equivalent to their `.ok`
    attribute's value.
    """

    def __init__(
        self,
        command: str = "",
        shell: str = "",
        env: Optional[Dict[str, str]] = None,
        stdout: str = "",
        stderr: str = "",
        exited: int = 0,
        hide: Tuple[str, ...] = tuple(),
    ) -> None:
        #: The command which was executed.
        self.command = command
        #: The shell binary used for execution.
        self.shell = shell
        #: The shell environment used for execution.
        self.env = {} if env is None else env
        #: An integer representing the subprocess' exit/return code.
        self.exited = exited
        #: The subprocess' standard output, as a multiline string.
        self.stdout = stdout
        #: Same as `.stdout` but containing standard error.
        self.stderr = stderr
        #: A tuple of stream names (``'stdout'``/``'stderr'``) that were
        #: hidden from the user when the command ran.
        self.hide = hide

    def __bool__(self) -> bool:
        return self.ok

    def __str__(self) -> str:
        ret = ["Command exited with status {}.".format(self.exited)]
        for x in ("stdout", "stderr"):
            val = getattr(self, x)
            ret.append(
                """=== {} ===
{}
""".format(
                    x, val.rstrip()
                )
                if val
                else "(no {})".format(x)
            )
        return "\n".join(ret)

    def __repr__(self) -> str:
        template = "<Result cmd={!r} exited={}>"
        return template.format(self.command, self.exited)

    @property
    def ok(self) -> bool:
        """
        A boolean equivalent to ``exited == 0``.
        """
        return bool(self.exited == 0)

    @property
    def failed(self) -> bool:
        """
        The inverse of ``ok``.

        I.e., ``True`` if the program exited with a nonzero return code, and
        ``False`` otherwise.
        """
        return not self.ok


def normalize_hide(val: Any) -> Tuple[str, ...]:
    hide_vals = (None, False, "out", "stdout", "err", "stderr", "both", True)
    if val not in hide_vals:
        err = "'hide' got {!r} which is not in {!r}"
        raise ValueError(err.format(val, hide_vals))
    if val in (None, False):
        hide = ()
    elif val in ("both", True):
        hide = ("stdout", "stderr")
    elif val in ("out", "stdout"):
        hide = ("stdout",)
    else:
        hide = ("stderr",)
    return hide
