"""
Composite task wiring: named nodes with "runs after" edges.
"""

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import GraphError

if TYPE_CHECKING:
    from .tasks import Task


class Node:
    """
    One step of a `Graph`: a task plus what it waits for.
    """

    def __init__(
        self,
        name: str,
        task: "Task",
        requires: Iterable[str] = (),
        kinds: Iterable[str] = (),
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.name = name
        self.task = task
        self.requires: Tuple[str, ...] = tuple(requires)
        #: Asset kind names this step reads or writes.
        self.kinds: Tuple[str, ...] = tuple(kinds)
        #: Keyword arguments handed to the task body.
        self.kwargs = kwargs or {}

    def __repr__(self) -> str:
        return "<Node {!r} requires={!r}>".format(self.name, self.requires)


class Graph:
    """
    A small directed acyclic graph of task invocations.

    Nodes are added with the names of nodes they must run after; `layers`
    then groups them into batches which can run concurrently. For example::

        graph = Graph()
        graph.add("clean", clean_all)
        graph.add("css", build_css, requires=["clean"], kinds=["style"])
        graph.add("js", build_js, requires=["clean"], kinds=["script"])
        graph.layers()  # [["clean"], ["css", "js"]]
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, Node] = {}

    def add(
        self,
        name: str,
        task: "Task",
        requires: Iterable[str] = (),
        kinds: Iterable[str] = (),
        **kwargs: Any
    ) -> "Graph":
        """
        Add a node, returning the graph for chaining.

        :raises: `.GraphError` if ``name`` is already taken.
        """
        if name in self.nodes:
            raise GraphError("Duplicate graph node {!r}".format(name))
        self.nodes[name] = Node(name, task, requires, kinds, kwargs)
        return self

    def __getitem__(self, name: str) -> Node:
        return self.nodes[name]

    def __contains__(self, name: str) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes.values())

    @property
    def kinds(self) -> List[str]:
        """
        Sorted union of every node's kinds.
        """
        return sorted({kind for node in self for kind in node.kinds})

    def layers(self) -> List[List[str]]:
        """
        Return node names in dependency order, grouped into layers.

        Every node lands in the first layer after all of its requirements;
        names within a layer are sorted.

        :raises:
            `.GraphError` on a requirement naming an unknown node, or on a
            cycle.
        """
        pending: Dict[str, set] = {}
        for node in self:
            for req in node.requires:
                if req not in self.nodes:
                    err = "Node {!r} requires unknown node {!r}"
                    raise GraphError(err.format(node.name, req))
            pending[node.name] = set(node.requires)
        layers = []
        done: set = set()
        while pending:
            ready = sorted(x for x, reqs in pending.items() if reqs <= done)
            if not ready:
                err = "Cycle detected between graph nodes: {}"
                raise GraphError(err.format(", ".join(sorted(pending))))
            for name in ready:
                del pending[name]
            done.update(ready)
            layers.append(ready)
        return layers

    def __repr__(self) -> str:
        return "<Graph {!r}>".format(sorted(self.nodes))
