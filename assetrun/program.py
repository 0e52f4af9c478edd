import os
import shutil
import sys
import textwrap
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    Union,
)

import yaml

from .assets import namespace as default_namespace
from .config import Config
from .context import Context
from .exceptions import (
    AmbiguousEnvVar,
    AmbiguousMergeError,
    BuildFailed,
    Exit,
    ParseError,
    ThreadException,
    UncastableEnvVar,
    UnexpectedExit,
    UnknownFileType,
)
from .executor import Executor
from .parser import Argument, Parser, ParserContext, ParseResult
from .util import debug, enable_logging, sort_names

if TYPE_CHECKING:
    from .collection import Collection
    from .paths import Settings


#: Problems with config files or env vars; reported without a traceback.
CONFIG_ERRORS = (
    AmbiguousEnvVar,
    AmbiguousMergeError,
    UncastableEnvVar,
    UnknownFileType,
    yaml.YAMLError,
    ValueError,
    KeyError,
)


class Program:
    """
    Manages top-level CLI invocation, typically via ``setup.py`` entrypoints.

    Parses core flags, loads configuration for the chosen project root,
    builds the task namespace from the resulting `.Settings` and hands the
    requested tasks to an `.Executor`.
    """

    def core_args(self) -> List[Argument]:
        """
        Return default core `.Argument` objects, as a list.
        """
        return [
            Argument(
                names=("config", "f"),
                help="Runtime configuration file to use.",
            ),
            Argument(
                names=("debug", "d"),
                kind=bool,
                default=False,
                help="Enable debug output.",
            ),
            Argument(
                names=("echo", "e"),
                kind=bool,
                default=False,
                help="Echo executed commands before running.",
            ),
            Argument(
                names=("help", "h"),
                kind=bool,
                default=False,
                help="Show this help and exit.",
            ),
            Argument(
                names=("list", "l"),
                kind=bool,
                default=False,
                help="List available tasks and exit.",
            ),
            Argument(
                names=("notify", "n"),
                help="Comma-separated notification sinks: console, desktop, none.",  # noqa
            ),
            Argument(
                names=("root", "r"),
                help="Project root holding sources, build output & config. Default: the current directory.",  # noqa
            ),
            Argument(
                names=("version", "V"),
                kind=bool,
                default=False,
                help="Show version and exit.",
            ),
        ]

    leading_indent_width = 2
    leading_indent = " " * leading_indent_width
    col_padding = 3

    def __init__(
        self,
        version: Optional[str] = None,
        namespace: Optional[Callable[["Settings"], "Collection"]] = None,
        name: Optional[str] = None,
        binary: Optional[str] = None,
        executor_class: Optional[Type[Executor]] = None,
        config_class: Optional[Type[Config]] = None,
        context_class: Optional[Type[Context]] = None,
    ) -> None:
        """
        Create a new, parameterized `.Program` instance.

        :param str version:
            The program's version, e.g. ``"0.1.0"``. Defaults to ``"unknown"``.

        :param namespace:
            A callable turning the run's `.Settings` into the `.Collection` of
            tasks to expose. Defaults to `.assets.namespace`.

        :param str name:
            The program's name, as displayed in ``--version`` output.

            If ``None`` (default), is a capitalized version of the first word
            in the ``argv`` handed to `.run`.

        :param str binary:
            The binary name as displayed in ``--help`` output. If ``None``
            (default), uses the first word in ``argv`` verbatim.

        :param executor_class:
            The `.Executor` subclass to use when executing tasks.

        :param config_class:
            The `.Config` subclass to use for the base config object.

        :param context_class:
            The `.Context` subclass handed to tasks.
        """
        self.version = "unknown" if version is None else version
        self.namespace = namespace or default_namespace
        self._name = name
        self._binary = binary
        self.argv: List[str] = []
        self.executor_class = executor_class or Executor
        self.config_class = config_class or Config
        self.context_class = context_class or Context

    def create_config(self) -> None:
        """
        Instantiate a `.Config` (or subclass, depending) for use in task exec.

        Nothing is loaded from disk yet, since the project root and runtime
        config file both come from core flags; see `update_config`.

        :returns: ``None``; sets ``self.config`` instead.
        """
        self.config = self.config_class(lazy=True)

    def update_config(self) -> None:
        """
        Load project, env & runtime config and flag overrides, then freeze
        the result into ``self.settings``.
        """
        root = os.path.abspath(self.args.root.value or os.getcwd())
        overrides: Dict[str, Any] = {}
        if self.args.echo.value:
            overrides["run"] = {"echo": True}
        if self.args.notify.value is not None:
            sinks = [
                x.strip() for x in self.args.notify.value.split(",")
                if x.strip()
            ]
            overrides["notify"] = {"sinks": sinks}
        try:
            self.config.set_project_location(root)
            self.config.load_project(merge=False)
            self.config.set_runtime_path(self.args.config.value)
            self.config.load_runtime(merge=False)
            runtime = self.args.config.value
            if runtime and runtime not in self.config.paths:
                err = "Can't find runtime config file {!r}!"
                raise Exit(err.format(runtime))
            self.config.load_overrides(overrides, merge=False)
            self.config.load_shell_env()
            self.settings = self.config.settings(root)
        except CONFIG_ERRORS as e:
            debug("Config loading failed: {!r}".format(e))
            raise Exit("Configuration error: {}".format(e))

    def run(
        self, argv: Union[str, Sequence[str], None] = None, exit: bool = True
    ) -> None:
        """
        Execute main CLI logic, based on ``argv``.

        :param argv:
            The arguments to execute against. May be ``None``, a list of
            strings, or a string. See `.normalize_argv` for details.

        :param bool exit:
            When ``False`` (default: ``True``), will ignore `.ParseError`,
            `.Exit` and build failure exceptions, which otherwise trigger
            calls to `sys.exit`.

            .. note::
                This is mostly a concession to testing.
        """
        try:
            self.create_config()
            self.parse_core(argv)
            self.update_config()
            self.parse_collection()
            self.parse_tasks()
            self.parse_cleanup()
            self.execute()
        except (
            UnexpectedExit,
            Exit,
            ParseError,
            BuildFailed,
            ThreadException,
        ) as e:
            debug("Received a possibly-skippable exception: {!r}".format(e))
            code = self.report(e)
            if exit:
                sys.exit(code)
            else:
                debug("Invoked as run(..., exit=False), ignoring exception")
        except KeyboardInterrupt:
            sys.exit(1)  # Same behavior as Python itself outside of REPL

    def report(self, e: Exception) -> int:
        """
        Print whatever the user needs to see about ``e``; return an exit code.
        """
        if isinstance(e, Exit):
            if e.message:
                print(e.message, file=sys.stderr)
            return e.code
        if isinstance(e, ParseError):
            print(e, file=sys.stderr)
        elif isinstance(e, UnexpectedExit):
            print(e, file=sys.stderr, end="")
        elif isinstance(e, BuildFailed):
            # Individual files were reported as they failed.
            print(str(e).splitlines()[0], file=sys.stderr)
        elif isinstance(e, ThreadException):
            for wrapper in e.exceptions:
                if isinstance(wrapper.value, BuildFailed):
                    print(str(wrapper.value).splitlines()[0], file=sys.stderr)
                else:
                    print(e, file=sys.stderr)
                    break
        return 1

    def parse_core(self, argv: Union[str, Sequence[str], None]) -> None:
        debug("argv given to Program.run: {!r}".format(argv))
        self.normalize_argv(argv)
        self.parse_core_args()
        debug("Finished parsing core args")
        # Enable debugging from here on out, if debug flag was given.
        # (Prior to this point, debugging requires setting ASSETRUN_DEBUG).
        if self.args.debug.value:
            enable_logging()
        if self.args.version.value:
            debug("Saw --version, printing version & exiting")
            self.print_version()
            raise Exit

    def parse_collection(self) -> None:
        """
        Build the task collection from the frozen settings.
        """
        try:
            self.collection = self.namespace(self.settings)
        except ValueError as e:
            raise Exit("Configuration error: {}".format(e))

    def parse_tasks(self) -> None:
        """
        Parse leftover args, which are task names.

        Sets ``self.parser`` to the parser used, ``self.tasks`` to the parsed
        per-task contexts, and ``self.core_via_tasks`` to a context holding any
        core flags seen among the task names.
        """
        self.parser = Parser(
            initial=self.initial_context,
            contexts=self.collection.to_contexts(),
        )
        debug("Parsing tasks against {!r}".format(self.collection))
        result = self.parser.parse_argv(self.core.unparsed)
        self.core_via_tasks = result.pop(0)
        self.tasks = result
        debug("Resulting task contexts: {!r}".format(self.tasks))

    def parse_cleanup(self) -> None:
        """
        Post-parsing, pre-execution steps such as --help & --list.
        """
        if self.args.help.value or self.core_via_tasks.args.help.value:
            debug("Saw --help, printing help & exiting")
            self.print_help()
            raise Exit
        if self.args.list.value or self.core_via_tasks.args.list.value:
            self.list_tasks()
            raise Exit

    def execute(self) -> None:
        """
        Hand off the tasks-to-execute to an `.Executor`.
        """
        try:
            context = self.context_class(self.settings)
        except ValueError as e:
            raise Exit("Configuration error: {}".format(e))
        executor = self.executor_class(self.collection, context)
        executor.execute(*[x.name for x in self.tasks])

    def normalize_argv(self, argv: Union[str, Sequence[str], None]) -> None:
        """
        Massages ``argv`` into a useful list of strings.

        **If None** (the default), uses `sys.argv`.

        **If a non-string iterable**, uses that in place of `sys.argv`.

        **If a string**, performs a `str.split` and then executes with the
        result. (This is mostly a convenience; when in doubt, use a list.)

        Sets ``self.argv`` to the result.
        """
        if argv is None:
            argv = sys.argv
            debug("argv was None; using sys.argv: {!r}".format(argv))
        elif isinstance(argv, str):
            argv = argv.split()
            debug("argv was string-like; splitting: {!r}".format(argv))
        self.argv = list(argv)

    @property
    def name(self) -> str:
        """
        Derive program's human-readable name based on `.binary`.
        """
        return self._name or self.binary.capitalize()

    @property
    def binary(self) -> str:
        """
        Derive program's help-oriented binary name from init args & argv.
        """
        return self._binary or os.path.basename(self.argv[0])

    @property
    def args(self) -> Any:
        """
        Obtain core program args from ``self.core`` parse result.
        """
        return self.core[0].args

    @property
    def initial_context(self) -> ParserContext:
        """
        The initial parser context, aka core program flags.
        """
        return ParserContext(args=self.core_args())

    def parse_core_args(self) -> None:
        """
        Filter out core args, leaving any tasks for later.

        Sets ``self.core`` to the `.ParseResult` from this step.
        """
        debug("Parsing initial context (core args)")
        parser = Parser(initial=self.initial_context, ignore_unknown=True)
        self.core: ParseResult = parser.parse_argv(self.argv[1:])
        msg = "Core-args parse result: {!r} & unparsed: {!r}"
        debug(msg.format(self.core, self.core.unparsed))

    def print_version(self) -> None:
        print("{} {}".format(self.name, self.version or "unknown"))

    def print_help(self) -> None:
        print("Usage: {} [--core-opts] [task ...]".format(self.binary))
        print("")
        print("Core options:")
        print("")
        self.print_columns(self.initial_context.help_tuples())
        self.list_tasks()

    def list_tasks(self) -> None:
        task_names = self.collection.task_names
        pairs = []
        for primary in sort_names(task_names):
            name = primary
            aliases = sort_names(task_names[primary])
            if aliases:
                name += " ({})".format(", ".join(aliases))
            if primary == self.collection.default:
                name += "*"
            task = self.collection[primary]
            pairs.append((name, task.helpline or ""))
        print("Available tasks ('*' is the default):\n")
        self.print_columns(pairs)

    def print_columns(self, tuples: Sequence[Tuple[str, str]]) -> None:
        """
        Print tabbed columns from (name, help) ``tuples``.

        Useful for listing tasks + docstrings, flags + help strings, etc.
        """
        if not tuples:
            return
        # Calculate column sizes: don't wrap flag specs, give what's left over
        # to the descriptions.
        name_width = max(len(x[0]) for x in tuples)
        desc_width = max(
            shutil.get_terminal_size().columns
            - name_width
            - self.leading_indent_width
            - self.col_padding
            - 1,
            20,
        )
        wrapper = textwrap.TextWrapper(width=desc_width)
        for name, help_str in tuples:
            help_chunks = wrapper.wrap(help_str)
            name_padding = name_width - len(name)
            spec = "".join(
                (
                    self.leading_indent,
                    name,
                    name_padding * " ",
                    self.col_padding * " ",
                )
            )
            if help_chunks:
                print(spec + help_chunks[0])
                for chunk in help_chunks[1:]:
                    print((" " * len(spec)) + chunk)
            else:
                print(spec.rstrip())
        print("")
