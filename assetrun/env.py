"""
Environment variable configuration loading.

Only settings that already exist in the default tree can be set from the
environment; their current value decides how the string gets cast.
"""

import os
from typing import Any, Dict, List, Mapping, Sequence

from .exceptions import AmbiguousEnvVar, UncastableEnvVar
from .util import debug


class Environment:
    def __init__(self, config: Mapping[str, Any], prefix: str) -> None:
        self._config = config
        self._prefix = prefix
        self.data: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Return a nested dict of values found in `os.environ`.

        ``{"watch": {"delay": 0.2}}`` maps to ``ASSETRUN_WATCH_DELAY`` (given
        a prefix of ``ASSETRUN_``). Unknown variables are ignored.
        """
        known = self._crawl(key_path=[], known={})
        debug(
            "Env var candidates (prefix {!r}): {!r}".format(
                self._prefix, sorted(known)
            )
        )
        for name, key_path in known.items():
            real = (self._prefix or "") + name
            if real in os.environ:
                self._path_set(key_path, os.environ[real])
        debug("Obtained env var config: {!r}".format(self.data))
        return self.data

    def _crawl(
        self, key_path: List[str], known: Mapping[str, Sequence[str]]
    ) -> Dict[str, List[str]]:
        """
        Map every leaf below ``key_path`` to its env var name.

        Two key paths flattening into the same name (e.g. ``a_b.c`` and
        ``a.b_c``) raise `.AmbiguousEnvVar`.
        """
        found: Dict[str, List[str]] = {}
        obj = self._path_get(key_path)
        if isinstance(obj, Mapping):
            for key in obj:
                crawled = self._crawl(key_path + [key], dict(known, **found))
                for name in crawled:
                    if name in found or name in known:
                        err = "Found >1 source for {}"
                        raise AmbiguousEnvVar(err.format(name))
                found.update(crawled)
        else:
            found[self._to_env_var(key_path)] = key_path
        return found

    def _to_env_var(self, key_path: Sequence[str]) -> str:
        return "_".join(key_path).upper()

    def _path_get(self, key_path: Sequence[str]) -> Any:
        obj = self._config
        for key in key_path:
            obj = obj[key]
        return obj

    def _path_set(self, key_path: Sequence[str], value: str) -> None:
        obj = self.data
        for key in key_path[:-1]:
            obj = obj.setdefault(key, {})
        name = self._to_env_var(key_path)
        obj[key_path[-1]] = self._cast(name, self._path_get(key_path), value)

    def _cast(self, name: str, old: Any, new: str) -> Any:
        if isinstance(old, bool):
            return new not in ("0", "", "false", "False", "no")
        if old is None or isinstance(old, str):
            return new
        # Comma separated, e.g. ASSETRUN_NOTIFY_SINKS=console,desktop
        if isinstance(old, (list, tuple)):
            return [x.strip() for x in new.split(",") if x.strip()]
        try:
            return old.__class__(new)
        except (TypeError, ValueError):
            err = "Can't adapt {}={!r} into a {}!"
            raise UncastableEnvVar(
                err.format(name, new, type(old).__name__)
            )
