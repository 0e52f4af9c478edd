"""
The task namespace: clean, build & watch entry points for every asset kind.

For each kind (say ``style``, labelled ``Css``) this provides ``buildCss``
(clean that kind's output, then build it) and ``watchCss``; across kinds it
provides ``clean``, ``build`` (the default) and ``watch``.
"""

from typing import TYPE_CHECKING, Dict

from .collection import Collection
from .graph import Graph
from .pipeline import Pipeline, clean, clean_all
from .tasks import Task, task
from .watch import watch

if TYPE_CHECKING:
    from .context import Context
    from .paths import AssetKind, Settings


def clear_task(kind: "AssetKind") -> Task:
    @task(name="clear" + kind.label, kinds=[kind.name])
    def clear(c: "Context") -> None:
        clean(c.settings, kind)

    return clear


def compile_task(kind: "AssetKind", pipeline: Pipeline) -> Task:
    @task(name="compile" + kind.label, kinds=[kind.name])
    def compile_kind(c: "Context") -> None:
        pipeline.build(c)

    return compile_kind


def rebuild_graph(kind: "AssetKind", pipeline: Pipeline) -> Graph:
    """
    Clean ``kind``'s output, then build it.
    """
    clear = clear_task(kind)
    build = compile_task(kind, pipeline)
    graph = Graph()
    graph.add(clear.name, clear, kinds=[kind.name])
    graph.add(build.name, build, requires=[clear.name], kinds=[kind.name])
    return graph


def watch_task(kind: "AssetKind", graph: Graph) -> Task:
    # No kinds on the task itself: each rebuild takes the kind's lock for
    # its own duration, so other tasks may still touch the kind in between.
    @task(name="watch" + kind.label)
    def watcher(c: "Context") -> None:
        assert c.executor is not None
        watch(c, kind, rebuild=lambda: c.executor.run_graph(graph))

    watcher.help = "Rebuild {} whenever {} changes.".format(
        kind.output, kind.source
    )
    return watcher


def namespace(settings: "Settings") -> Collection:
    """
    Build the `.Collection` of entry points for ``settings``' asset kinds.

    Stage names are checked here, so a bad config fails before anything runs.
    """
    ns = Collection()
    pipelines: Dict[str, Pipeline] = {
        kind.name: Pipeline.for_kind(kind, settings) for kind in settings.kinds
    }
    all_kinds = [kind.name for kind in settings.kinds]

    @task(name="clean", kinds=all_kinds)
    def clean_everything(c: "Context") -> None:
        """
        Remove the whole build directory.
        """
        clean_all(c.settings)

    ns.add_task(clean_everything)

    build = Graph().add("clearAssets", clean_everything, kinds=all_kinds)
    watches = Graph()
    for kind in settings.kinds:
        pipeline = pipelines[kind.name]
        graph = rebuild_graph(kind, pipeline)
        ns.add_task(
            Task(
                graph,
                name="build" + kind.label,
                help="Clean, then build {}.".format(kind.output),
            )
        )
        watcher = watch_task(kind, graph)
        ns.add_task(watcher)
        compiler = compile_task(kind, pipeline)
        build.add(
            compiler.name,
            compiler,
            requires=["clearAssets"],
            kinds=[kind.name],
        )
        watches.add(watcher.name, watcher)
    ns.add_task(
        Task(
            build,
            name="build",
            default=True,
            help="Clean everything, then build all asset kinds in parallel.",
        )
    )
    ns.add_task(
        Task(watches, name="watch", help="Watch all asset kinds in parallel.")
    )
    return ns
