from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Tuple, Type

from .exceptions import UnexpectedExit
from .notify import Notifier
from .runners import Local, Result, Runner

if TYPE_CHECKING:
    from .executor import Executor
    from .paths import Settings


class Context:
    """
    Context-aware API wrapper & state-passing object.

    `.Context` objects are created by the `.Program` (or, if desired, by hand)
    and handed to every executed task. They carry the frozen `.Settings` for
    the run, the `.Notifier` used to announce finished files, and a handle on
    the `.Executor` so long-running tasks such as watchers can trigger other
    task graphs.
    """

    def __init__(
        self,
        settings: "Settings",
        notifier: Optional[Notifier] = None,
        runner_class: Optional[Type[Runner]] = None,
    ) -> None:
        """
        :param settings: The `.Settings` value for this run.

        :param notifier:
            A `.Notifier` to deliver per-file messages. Defaults to one built
            from ``settings.sinks``.

        :param runner_class:
            The `.Runner` subclass used by `run`. Default: `.Local`.
        """
        #: The immutable `.Settings` for this run.
        self.settings = settings
        self.runner_class = runner_class or Local
        #: The `.Executor` currently running tasks with this context, if any.
        self.executor: Optional["Executor"] = None
        if notifier is None:
            notifier = Notifier.from_names(settings.sinks, context=self)
        self.notifier = notifier

    @property
    def config(self) -> Mapping[str, Any]:
        """
        The read-only merged configuration tree.
        """
        return self.settings.options

    def run(self, command: str, **kwargs: Any) -> Result:
        """
        Execute a local shell command, honoring the ``run`` config subtree.

        See `.Runner.run` for details on ``command`` and the available keyword
        arguments.
        """
        return self.runner_class(context=self).run(command, **kwargs)


class MockContext(Context):
    """
    A `.Context` whose `run` return values can be predetermined.

    Primarily useful for testing stages and sinks that shell out.

    .. note::
        Calling `run` without a `.Result` left to yield raises
        ``NotImplementedError`` (since the alternative is to call the real
        underlying method - typically undesirable when mocking.)
    """

    def __init__(
        self, settings: "Settings", run: Any = None, **kwargs: Any
    ) -> None:
        """
        Create a ``Context``-like object whose `run` yields `.Result` objects.

        :param run:
            A single `.Result` object, which will be returned once; an
            iterable of `Results <.Result>`, returned on each subsequent call;
            or a map of command strings to either of the above.

        All other kwargs are handed to `.Context`.

        :raises:
            ``TypeError``, if ``run`` isn't a `.Result` or an iterable.
        """
        super().__init__(settings, **kwargs)
        if run is not None:
            if not hasattr(run, "__iter__") and not isinstance(run, Result):
                err = "Not sure how to yield results from a {!r}"
                raise TypeError(err.format(type(run)))
            if isinstance(run, (list, tuple)):
                run = list(run)
        self._run = run
        #: Every ``(command, kwargs)`` pair handed to `run`, in call order.
        self.calls: List[Tuple[str, dict]] = []

    def _yield_result(self, command: str) -> Result:
        value = self._run
        try:
            if isinstance(value, dict):
                if isinstance(value[command], Result):
                    return value.pop(command)
                return value[command].pop(0)
            if isinstance(value, list):
                return value.pop(0)
            if isinstance(value, Result):
                self._run = None
                return value
        except (IndexError, KeyError):
            pass
        raise NotImplementedError(command)

    def run(self, command: str, **kwargs: Any) -> Result:
        self.calls.append((command, kwargs))
        result = self._yield_result(command)
        if result.command == "":
            result.command = command
        if result.failed and not kwargs.get("warn", False):
            raise UnexpectedExit(result)
        return result
