"""
Per-kind build & clean operations.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List, Sequence

from .console import report_error
from .exceptions import BuildFailed, TransformError
from .stages import Asset, Stage, build_stages
from .util import debug

if TYPE_CHECKING:
    from .context import Context
    from .paths import AssetKind, Settings


@dataclass
class BuildReport:
    """
    What a single `Pipeline.build` run did.
    """

    kind: "AssetKind"
    #: Output files written, in source order.
    written: List[Path] = field(default_factory=list)
    #: Source files that produce no output (e.g. Sass partials).
    skipped: List[Path] = field(default_factory=list)
    #: One `.TransformError` per failed source file.
    errors: List[TransformError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Pipeline:
    """
    Push every source file of one `.AssetKind` through a list of stages and
    write the results under the kind's output directory.

    Files are independent of each other: when one fails, it is reported right
    away and skipped, and the rest are still built.
    """

    def __init__(self, kind: "AssetKind", stages: Sequence[Stage]) -> None:
        self.kind = kind
        self.stages = list(stages)

    @classmethod
    def for_kind(cls, kind: "AssetKind", settings: "Settings") -> "Pipeline":
        return cls(kind, build_stages(kind, settings))

    def sources(self, root: Path) -> Iterator[Path]:
        """
        Yield the source files of this pipeline's kind, in sorted order.
        """
        yield from self.kind.files(root)

    def read(self, path: Path, root: Path) -> Asset:
        try:
            relative = path.relative_to(root / self.kind.base).as_posix()
        except ValueError as e:
            raise TransformError("read", str(path), str(e)) from e
        try:
            contents = path.read_bytes()
        except OSError as e:
            raise TransformError("read", str(path), str(e)) from e
        return Asset(source=path, relative=relative, contents=contents)

    def process(self, asset: Asset, context: "Context") -> Asset:
        for stage in self.stages:
            debug("{!r} <- {}".format(stage, asset.relative))
            asset = stage(asset, context)
        return asset

    def build(self, context: "Context") -> BuildReport:
        """
        Build every source file, returning a `BuildReport`.

        :raises:
            `.BuildFailed`, once all files have been attempted, if any of them
            failed.
        """
        settings = context.settings
        output = settings.output_dir(self.kind)
        report = BuildReport(self.kind)
        for path in self.sources(settings.root):
            try:
                asset = self.read(path, settings.root)
                if not all(stage.wants(asset) for stage in self.stages):
                    debug("Skipping {}, produces no output".format(path))
                    report.skipped.append(path)
                    continue
                asset = self.process(asset, context)
            except TransformError as e:
                report.errors.append(e)
                report_error(str(e))
                context.notifier.report(self.kind, e)
                continue
            target = output / asset.relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(asset.contents)
            report.written.append(target)
            context.notifier.announce(self.kind, asset.relative)
        debug(
            "Built {}: {} written, {} skipped, {} failed".format(
                self.kind.name,
                len(report.written),
                len(report.skipped),
                len(report.errors),
            )
        )
        if report.errors:
            raise BuildFailed(self.kind.name, report.errors)
        return report


def remove(path: Path) -> None:
    """
    Delete ``path`` (a directory tree or a single file). Absent is fine.
    """
    if path.is_dir() and not path.is_symlink():
        debug("Removing tree {}".format(path))
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        debug("Removing file {}".format(path))
        path.unlink()


def clean(settings: "Settings", kind: "AssetKind") -> None:
    """
    Remove ``kind``'s output directory.
    """
    remove(settings.output_dir(kind))


def clean_all(settings: "Settings") -> None:
    """
    Remove the build root, and with it every kind's output directory.

    Kinds whose output lies elsewhere are cleaned individually.
    """
    build_dir = settings.build_dir()
    remove(build_dir)
    for kind in settings.kinds:
        output = settings.output_dir(kind)
        if build_dir not in output.parents:
            remove(output)
