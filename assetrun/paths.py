"""
Immutable path & option values derived from a fully merged `.Config`.

Everything in here is frozen: once a `Settings` has been produced it is handed
to the task namespace, the pipelines and the watchers, and none of them can
alter what the others see.
"""

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Pattern, Tuple, Union

MAGIC = re.compile(r"[*?\[]")


def freeze(value: Any) -> Any:
    """
    Return a read-only deep copy of ``value``: dicts become mapping proxies,
    lists become tuples.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(x) for x in value)
    return value


def split_glob(source: str) -> Tuple[str, str]:
    """
    Split a source glob into its literal base directory and the pattern part.

    E.g. ``"src/scss/**/*.scss"`` becomes ``("src/scss", "**/*.scss")``. A
    glob without any wildcards names a single file, so its parent directory is
    the base.
    """
    parts = PurePosixPath(source).parts
    for index, part in enumerate(parts):
        if MAGIC.search(part):
            base = PurePosixPath(*parts[:index]) if index else PurePosixPath()
            return str(base), "/".join(parts[index:])
    path = PurePosixPath(source)
    return str(path.parent), path.name


def translate(pattern: str) -> Pattern[str]:
    """
    Compile a glob ``pattern`` into a regex matched against posix paths.

    ``**/`` matches zero or more whole directories; ``*`` and ``?`` never
    cross a ``/``; ``[...]`` is a character class.
    """
    i, n = 0, len(pattern)
    res = []
    while i < n:
        if pattern.startswith("**/", i):
            res.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            res.append(".*")
            i += 2
            continue
        char = pattern[i]
        i += 1
        if char == "*":
            res.append("[^/]*")
        elif char == "?":
            res.append("[^/]")
        elif char == "[":
            end = pattern.find("]", i)
            if end == -1:
                res.append(re.escape(char))
            else:
                body = pattern[i:end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                res.append("[{}]".format(body))
                i = end + 1
        else:
            res.append(re.escape(char))
    return re.compile(r"(?s:{})\Z".format("".join(res)))


@dataclass(frozen=True)
class AssetKind:
    """
    One category of source files sharing a glob and an output directory.
    """

    #: Kind identifier, e.g. ``"style"``.
    name: str
    #: Suffix used in task names, e.g. ``"Css"`` for ``buildCss``.
    label: str
    #: Source glob, relative to the project root.
    source: str
    #: Output directory, relative to the project root.
    output: str
    #: Names of the pipeline stages applied to every file, in order.
    stages: Tuple[str, ...] = ()
    #: Notification template; ``{path}`` is the output-relative file path.
    message: str = "{path}"
    #: Event type shown when the watcher sees a change.
    event: str = "CHANGED"

    @property
    def base(self) -> str:
        return split_glob(self.source)[0]

    @property
    def pattern(self) -> str:
        return split_glob(self.source)[1]

    @property
    def regex(self) -> Pattern[str]:
        return translate(self.pattern)

    def relative(self, path: Union[str, Path], root: Path) -> Optional[str]:
        """
        Return ``path`` relative to this kind's base directory, as a posix
        string, or ``None`` if it lies outside of it.
        """
        base = (root / self.base).resolve()
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = root / candidate
        try:
            rel = candidate.resolve().relative_to(base)
        except ValueError:
            return None
        return rel.as_posix()

    def matches(self, path: Union[str, Path], root: Path) -> bool:
        """
        Whether ``path`` (absolute, or relative to ``root``) is a source file
        of this kind.
        """
        rel = self.relative(path, root)
        if rel is None or _hidden(rel):
            return False
        return bool(self.regex.match(rel))

    def files(self, root: Path) -> List[Path]:
        """
        Return all existing source files of this kind, sorted.

        Hidden files and anything inside hidden directories are skipped.
        """
        base = root / self.base
        if not base.is_dir():
            return []
        return sorted(
            path
            for path in base.glob(self.pattern)
            if path.is_file()
            and not _hidden(path.relative_to(base).as_posix())
        )

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "AssetKind":
        return cls(
            name=name,
            label=data.get("label") or name.capitalize(),
            source=data["source"],
            output=data["output"],
            stages=tuple(data.get("stages") or ()),
            message=data.get("message", "{path}"),
            event=data.get("event") or "CHANGED {}".format(name.upper()),
        )


def _hidden(rel: str) -> bool:
    return any(part.startswith(".") for part in rel.split("/"))


@dataclass(frozen=True)
class WatchOptions:
    #: Use a polling observer instead of native filesystem events.
    poll: bool = True
    #: Seconds between polls, when polling.
    interval: float = 1.0
    #: Seconds to wait for more events before starting a rebuild.
    delay: float = 0.2


@dataclass(frozen=True)
class Settings:
    """
    The frozen, fully resolved configuration for one program run.
    """

    root: Path
    build_root: str
    kinds: Tuple[AssetKind, ...]
    watch: WatchOptions
    sinks: Tuple[str, ...]
    #: The entire merged config tree, read-only. Stage, notifier & runner
    #: options are looked up here.
    options: Mapping[str, Any]

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], root: Union[str, Path]
    ) -> "Settings":
        kinds = tuple(
            AssetKind.from_dict(name, value)
            for name, value in data.get("assets", {}).items()
        )
        watch = data.get("watch", {})
        sinks = data.get("notify", {}).get("sinks", ["console"])
        if isinstance(sinks, str):
            sinks = [x.strip() for x in sinks.split(",") if x.strip()]
        return cls(
            root=Path(root).resolve(),
            build_root=data.get("build_root", "build"),
            kinds=kinds,
            watch=WatchOptions(
                poll=bool(watch.get("poll", True)),
                interval=float(watch.get("interval", 1.0)),
                delay=float(watch.get("delay", 0.2)),
            ),
            sinks=tuple(sinks),
            options=freeze(data),
        )

    def kind(self, name: str) -> AssetKind:
        """
        Look up an asset kind by name (``"style"``) or label (``"Css"``).
        """
        for kind in self.kinds:
            if name in (kind.name, kind.label):
                return kind
        raise KeyError(name)

    def stage_options(self, name: str) -> Mapping[str, Any]:
        return self.options.get(name, MappingProxyType({}))

    def resolve(self, relative: Union[str, Path]) -> Path:
        """
        Return the absolute path for ``relative``, refusing anything that
        would land outside of the project root.
        """
        path = (self.root / relative).resolve()
        if path == self.root or self.root not in path.parents:
            err = "Refusing to touch {!r}: not inside project root {!r}"
            raise ValueError(err.format(str(relative), str(self.root)))
        return path

    def output_dir(self, kind: AssetKind) -> Path:
        return self.resolve(kind.output)

    def build_dir(self) -> Path:
        return self.resolve(self.build_root)
