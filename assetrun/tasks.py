"""
Task definition & manipulation
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    Optional,
    Tuple,
    Union,
)

from .graph import Graph
from .util import helpline

if TYPE_CHECKING:
    from .context import Context


class Task:
    """
    Core object representing an executable task.

    A task's body is either a callable taking a `.Context` as its first
    argument, or a `.Graph` of other tasks, which is handed back to the
    running `.Executor` when the task is called.
    """

    def __init__(
        self,
        body: Union[Callable, Graph],
        name: Optional[str] = None,
        aliases: Iterable[str] = (),
        default: bool = False,
        help: Optional[str] = None,
        kinds: Iterable[str] = (),
    ) -> None:
        if isinstance(body, Graph) and kinds:
            err = "Composite task kinds belong on its graph nodes"
            raise ValueError(err)
        self.body = body
        self.__doc__ = getattr(body, "__doc__", None)
        self.name = name or getattr(body, "__name__", None)
        self.aliases: Tuple[str, ...] = tuple(aliases)
        self.is_default = default
        self.help = help
        #: Asset kind names this task reads or writes; the executor holds
        #: their locks while it runs.
        self.kinds: Tuple[str, ...] = tuple(kinds)
        self.times_called = 0

    def __repr__(self) -> str:
        aliases = ""
        if self.aliases:
            aliases = " ({})".format(", ".join(self.aliases))
        return "<Task {!r}{}>".format(self.name, aliases)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task) or self.name != other.name:
            return False
        return self.body == other.body

    def __hash__(self) -> int:
        return hash(self.name) + hash(id(self.body))

    def __call__(self, context: "Context", **kwargs: Any) -> Any:
        self.times_called += 1
        if self.is_composite:
            assert context.executor is not None
            return context.executor.run_graph(self.body)
        return self.body(context, **kwargs)

    @property
    def called(self) -> bool:
        return self.times_called > 0

    @property
    def is_composite(self) -> bool:
        return isinstance(self.body, Graph)

    @property
    def helpline(self) -> Optional[str]:
        """
        One-line description for ``--list`` output.
        """
        if self.help:
            return self.help
        if self.is_composite:
            return None
        return helpline(self.body)


def task(*args: Any, **kwargs: Any) -> Callable:
    """
    Marks wrapped callable object as a valid assetrun task.

    May be called without any parentheses if no extra options need to be
    specified. Otherwise, the following keyword arguments are allowed in the
    parenthese'd form:

    * ``name``: Default name to use when binding to a `.Collection`. Useful
      for avoiding Python namespace issues (i.e. when the desired CLI level
      name can't or shouldn't be used as the Python level name.)
    * ``aliases``: Specify one or more aliases for this task, allowing it to be
      invoked as multiple different names.
    * ``default``: Boolean option specifying whether this task should be its
      collection's default task (i.e. called if no task is given.)
    * ``help``: Help string shown in ``--list`` output instead of the
      docstring's first line.
    * ``kinds``: Asset kinds this task touches (see `.Task.kinds`).
    """
    # @task -- no options
    if len(args) == 1 and callable(args[0]) and not kwargs:
        return Task(args[0])
    if args:
        raise TypeError("@task takes only keyword arguments when called!")
    options: Dict[str, Any] = {
        "name": kwargs.pop("name", None),
        "aliases": kwargs.pop("aliases", ()),
        "default": kwargs.pop("default", False),
        "help": kwargs.pop("help", None),
        "kinds": kwargs.pop("kinds", ()),
    }
    # Handle unknown kwargs
    if kwargs:
        raise TypeError(
            "@task was called with unknown kwargs {!r}".format(kwargs)
        )

    def inner(obj: Callable) -> Task:
        return Task(obj, **options)

    return inner
