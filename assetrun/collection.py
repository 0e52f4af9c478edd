from typing import Any, Dict, List, Optional

from lexicon import Lexicon

from .parser import ParserContext
from .tasks import Task
from .util import sort_names


class Collection:
    """
    A collection of executable tasks, looked up by name or alias.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """
        Create a new task collection.

        May initialize with no arguments and use `add_task` to insert tasks::

            ns = Collection()
            ns.add_task(some_task)

        All ``*args`` given are expected to be `.Task` instances, which will
        be passed to `add_task`. If any ``**kwargs`` are given, the keywords
        are used as the names for the respective tasks::

            ns = Collection(clean, buildCss=build_css)

        is exactly equivalent to::

            ns = Collection()
            ns.add_task(clean)
            ns.add_task(build_css, "buildCss")
        """
        self.tasks = Lexicon()
        self.default: Optional[str] = None
        for task in args:
            self.add_task(task)
        for name, task in kwargs.items():
            self.add_task(task, name=name)

    def __repr__(self) -> str:
        return "<Collection: {}>".format(", ".join(sort_names(self.tasks)))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Collection):
            return self.tasks == other.tasks and self.default == other.default
        return False

    def __len__(self) -> int:
        return len(self.tasks)

    def add_task(
        self,
        task: Task,
        name: Optional[str] = None,
        aliases: Optional[List[str]] = None,
        default: Optional[bool] = None,
    ) -> None:
        """
        Add `.Task` ``task`` to this collection.

        :param task: The `.Task` object to add to this collection.

        :param name:
            Optional string name to bind to (overrides the task's own
            self-defined ``name`` attribute and/or any Python identifier (i.e.
            ``.__name__``.)

        :param aliases:
            Optional iterable of additional names to bind the task as, on top
            of the names provided by the task's ``aliases`` attribute.

        :param default: Whether this task should be the collection default.
        """
        if name is None:
            if task.name:
                name = task.name
            else:
                raise ValueError("Could not obtain a name for this task!")
        if name in self.tasks:
            err = "Name conflict: this collection has a task named {!r} already"  # noqa
            raise ValueError(err.format(name))
        self.tasks[name] = task
        for alias in list(task.aliases) + list(aliases or []):
            self.tasks.alias(alias, to=name)
        if default is True or (default is None and task.is_default):
            if self.default:
                msg = "'{}' cannot be the default because '{}' already is!"
                raise ValueError(msg.format(name, self.default))
            self.default = name

    def __getitem__(self, name: Optional[str] = None) -> Task:
        """
        Returns task named ``name``. Honors aliases.

        If this collection has a default task, it is returned when ``name`` is
        empty or ``None``. If empty input is given and no task has been
        selected as the default, ValueError will be raised.
        """
        if not name:
            if self.default:
                return self.tasks[self.default]
            raise ValueError("This collection has no default task.")
        return self.tasks[name]

    def __contains__(self, name: str) -> bool:
        return name in self.tasks

    @property
    def task_names(self) -> Dict[str, List[str]]:
        """
        Return all task identifiers for this collection as a one-level dict.

        Specifically, a dict with the primary/"real" task names as the key, and
        any aliases as a list value.
        """
        return {
            name: self.tasks.aliases_of(name)
            for name in sort_names(self.tasks)
        }

    def to_contexts(self) -> List[ParserContext]:
        """
        Returns all contained tasks as a list of parser contexts.
        """
        return [
            ParserContext(name=name, aliases=aliases)
            for name, aliases in self.task_names.items()
        ]
