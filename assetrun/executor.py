import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List

from .console import log
from .exceptions import ThreadException
from .graph import Graph, Node
from .util import ExceptionHandlingThread, debug

if TYPE_CHECKING:
    from .collection import Collection
    from .context import Context


def duration(seconds: float) -> str:
    """
    Render an elapsed time the way build tools usually do: ``12 ms``,
    ``1.25 s``, ``2.1 min``.
    """
    if seconds < 1:
        return "{} ms".format(int(round(seconds * 1000)))
    if seconds < 60:
        return "{:.3g} s".format(seconds)
    return "{:.2g} min".format(seconds / 60)


class KindLocks:
    """
    One lock per asset kind, created on first use.

    `hold` acquires several locks in sorted order so two graphs touching
    overlapping kinds can't deadlock each other.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __getitem__(self, kind: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(kind, threading.Lock())

    @contextmanager
    def hold(self, kinds: Iterable[str]) -> Iterator[None]:
        acquired: List[threading.Lock] = []
        try:
            for kind in sorted(set(kinds)):
                lock = self[kind]
                if lock.locked():
                    debug("Waiting for {!r} lock".format(kind))
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class Executor:
    """
    An execution strategy for Task objects.

    Named tasks run one after another. A composite task's `.Graph` runs layer
    by layer; nodes within one layer each get their own thread.

    Subclasses may override various extension points to change, add or remove
    behavior.
    """

    def __init__(
        self, collection: "Collection", context: "Context"
    ) -> None:
        """
        Initialize executor with handles to necessary data structures.

        :param collection:
            A `.Collection` used to look up requested tasks by name.

        :param context:
            The `.Context` handed to every task. It is given a reference back
            to this executor so composite and watch tasks can run graphs.
        """
        self.collection = collection
        self.context = context
        self.context.executor = self
        self.locks = KindLocks()

    def execute(self, *names: str) -> Dict[str, Any]:
        """
        Execute one or more tasks, by name, in sequence.

        When called without any arguments at all, the default task from
        ``self.collection`` is used instead, if defined.

        :returns: A dict mapping task names to their return values.
        """
        if not names and self.collection.default is not None:
            names = (self.collection.default,)
        debug("Executing top level tasks {!r}".format(list(names)))
        results = {}
        for name in names:
            task = self.collection[name]
            graph = Graph().add(name, task, kinds=task.kinds)
            results[name] = self.run_graph(graph)[name]
        return results

    def run_graph(self, graph: Graph) -> Dict[str, Any]:
        """
        Run every node of ``graph``, holding the locks of all kinds it names.

        Layers run in order. If any node of a layer fails, the rest of that
        layer still finishes, but later layers never start: a single failure
        is re-raised as-is, several are wrapped in a `.ThreadException`.

        :returns: A dict mapping node names to their return values.
        """
        layers = graph.layers()
        debug("Running {!r} in layers {!r}".format(graph, layers))
        results: Dict[str, Any] = {}
        with self.locks.hold(graph.kinds):
            for layer in layers:
                results.update(self.run_layer([graph[x] for x in layer]))
        return results

    def run_layer(self, nodes: List[Node]) -> Dict[str, Any]:
        if len(nodes) == 1:
            return {nodes[0].name: self.run_node(nodes[0])}
        threads = []
        for node in nodes:
            thread = ExceptionHandlingThread(
                target=self.run_node, args=(node,), name=node.name
            )
            threads.append(thread)
            thread.start()
        for thread in threads:
            thread.join()
        wrappers = [t.exception() for t in threads if t.exception()]
        if len(wrappers) == 1:
            raise wrappers[0].value.with_traceback(wrappers[0].traceback)
        if wrappers:
            raise ThreadException(wrappers)
        return {t.name: t.result for t in threads}

    def run_node(self, node: Node) -> Any:
        log("Starting '{}'...".format(node.name))
        start = time.time()
        result = node.task(self.context, **node.kwargs)
        elapsed = duration(time.time() - start)
        log("Finished '{}' after {}".format(node.name, elapsed))
        return result

