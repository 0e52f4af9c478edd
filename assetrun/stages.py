"""
Transformation stages applied, in order, to every file of an asset kind.

Each stage delegates the real work elsewhere: libsass for style compilation,
rcssmin/rjsmin for minification, and external programs (postcss, babel) fed
through the `.Runner` for prefixing and transpiling.
"""

from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Type

import rcssmin
import rjsmin
import sass

from .exceptions import TransformError
from .util import debug

if TYPE_CHECKING:
    from .context import Context
    from .paths import AssetKind, Settings


@dataclass(frozen=True)
class Asset:
    """
    One file travelling through a pipeline.
    """

    #: Absolute path of the source file this asset came from.
    source: Path
    #: Output path relative to the kind's output directory, posix style.
    relative: str
    #: Current contents.
    contents: bytes

    @property
    def text(self) -> str:
        return self.contents.decode("utf-8")

    def replace(self, **kwargs: Any) -> "Asset":
        if "text" in kwargs:
            kwargs["contents"] = kwargs.pop("text").encode("utf-8")
        return replace(self, **kwargs)


class Stage:
    """
    Base class for pipeline stages.

    Subclasses set `name` and implement `transform`; calling a stage instance
    runs `transform` and turns undecodable input into a `.TransformError`, so
    the pipeline only ever has one error type to deal with.
    """

    name = ""

    def __init__(self, **options: Any) -> None:
        self.options = options

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        kind: "AssetKind",
        settings: "Settings",
    ) -> "Stage":
        """
        Create a stage from its config subtree (e.g. ``sass``).
        """
        return cls(**dict(options))

    def wants(self, asset: Asset) -> bool:
        """
        Whether ``asset`` should produce output at all.
        """
        return True

    def transform(self, asset: Asset, context: "Context") -> Asset:
        raise NotImplementedError

    def __call__(self, asset: Asset, context: "Context") -> Asset:
        try:
            return self.transform(asset, context)
        except UnicodeDecodeError as e:
            raise self.fail(asset, str(e)) from e

    def fail(self, asset: Asset, message: str) -> TransformError:
        return TransformError(self.name, str(asset.source), message)

    def __repr__(self) -> str:
        return "<{} {!r}>".format(self.__class__.__name__, self.name)


class SassStage(Stage):
    """
    Compile SCSS/Sass to CSS with libsass.

    Files whose name starts with an underscore are partials: they are only
    ever imported by other files and never written out.
    """

    name = "sass"

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        kind: "AssetKind",
        settings: "Settings",
    ) -> "Stage":
        include_paths = [str(settings.root / kind.base)]
        for path in options.get("include_paths", ()):
            include_paths.append(str(settings.root / path))
        return cls(
            output_style=options.get("output_style", "expanded"),
            include_paths=include_paths,
        )

    def wants(self, asset: Asset) -> bool:
        return not asset.source.name.startswith("_")

    def transform(self, asset: Asset, context: "Context") -> Asset:
        include_paths = [str(asset.source.parent)]
        include_paths.extend(self.options.get("include_paths", ()))
        try:
            css = sass.compile(
                string=asset.text,
                output_style=self.options.get("output_style", "expanded"),
                include_paths=include_paths,
                indented=asset.source.suffix == ".sass",
            )
        except sass.CompileError as e:
            raise self.fail(asset, str(e)) from e
        relative = str(PurePosixPath(asset.relative).with_suffix(".css"))
        return asset.replace(relative=relative, text=css)


class CommandStage(Stage):
    """
    Pipe the asset through an external program's stdin/stdout.

    ``command`` is a format string; ``{filename}`` expands to the source file
    name.
    """

    def env(self) -> Dict[str, str]:
        """
        Extra environment variables for the subprocess.
        """
        return {}

    def transform(self, asset: Asset, context: "Context") -> Asset:
        command = self.options["command"].format(filename=asset.source.name)
        env = dict(context.config.get("run", {}).get("env", {}))
        env.update(self.env())
        result = context.run(
            command,
            stdin=asset.text,
            env=env,
            encoding="utf-8",
            hide=True,
            warn=True,
            echo=False,
        )
        if result.failed:
            message = result.stderr.strip() or "exited with status {}".format(
                result.exited
            )
            raise self.fail(asset, message)
        return asset.replace(text=result.stdout)


class AutoprefixStage(CommandStage):
    """
    Add vendor prefixes via postcss + autoprefixer.
    """

    name = "autoprefix"

    def env(self) -> Dict[str, str]:
        browsers = self.options.get("browsers") or ("> 5%",)
        return {"BROWSERSLIST": ", ".join(browsers)}


class BabelStage(CommandStage):
    name = "babel"


class CssMinifyStage(Stage):
    name = "cssmin"

    def transform(self, asset: Asset, context: "Context") -> Asset:
        try:
            return asset.replace(text=rcssmin.cssmin(asset.text))
        except (TypeError, ValueError) as e:
            raise self.fail(asset, str(e)) from e


class JsMinifyStage(Stage):
    name = "jsmin"

    def transform(self, asset: Asset, context: "Context") -> Asset:
        try:
            return asset.replace(text=rjsmin.jsmin(asset.text))
        except (TypeError, ValueError) as e:
            raise self.fail(asset, str(e)) from e


#: Stage classes by config name.
STAGES: Dict[str, Type[Stage]] = {
    cls.name: cls
    for cls in (
        SassStage,
        AutoprefixStage,
        BabelStage,
        CssMinifyStage,
        JsMinifyStage,
    )
}


def build_stages(kind: "AssetKind", settings: "Settings") -> List[Stage]:
    """
    Instantiate the stages named by ``kind.stages``.

    :raises: ``ValueError`` on an unknown stage name.
    """
    stages = []
    for name in kind.stages:
        try:
            cls = STAGES[name]
        except KeyError:
            err = "Asset kind {!r} names unknown stage {!r}; known: {}"
            raise ValueError(
                err.format(kind.name, name, ", ".join(sorted(STAGES)))
            )
        stages.append(
            cls.from_options(settings.stage_options(name), kind, settings)
        )
    debug("Stages for {}: {!r}".format(kind.name, stages))
    return stages
