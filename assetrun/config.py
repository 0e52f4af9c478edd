import copy
import json
import os
import types
from importlib.util import module_from_spec, spec_from_file_location
from os.path import abspath, join, splitext
from typing import Any, Dict, Iterator, List, Optional

import yaml

from .env import Environment
from .exceptions import AmbiguousMergeError, UnknownFileType
from .paths import Settings
from .util import debug


def load_source(name: str, path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    spec = spec_from_file_location(name, path)
    assert spec is not None and spec.loader is not None
    module = module_from_spec(spec)
    spec.loader.exec_module(module)
    return vars(module)


class Config:
    """
    Assetrun's primary configuration handling class.

    Values come from several levels which are merged, lowest to highest, on
    every change:

    - internal defaults (`global_defaults`);
    - the per-project config file, ``assetrun.(yaml|yml|json|py)`` in the
      project root;
    - environment variables named after the default tree, e.g.
      ``ASSETRUN_WATCH_DELAY`` for ``watch.delay``;
    - a runtime config file, typically handed in via ``--config``;
    - overrides, typically filled in from command-line flags.

    Configuration values may be read with dict syntax (``config['watch']``) or
    `get`. Tasks never see this object directly: `settings` freezes the merged
    data into an immutable `.Settings` value, which is what gets handed around
    once the program starts executing.

    **Special class attributes**

    - ``prefix``: Supplies the default value for ``file_prefix`` (directly) and
      ``env_prefix`` (uppercased). Its default value is ``"assetrun"``.
    - ``file_prefix``: The config file basename (sans extension) sought in the
      project root. Defaults to ``None``, meaning to use ``prefix``.
    - ``env_prefix``: A prefix used (along with a joining underscore) to
      determine which environment variables are loaded. Defaults to ``None``,
      meaning to use ``prefix``.
    """

    prefix = "assetrun"
    file_prefix: Optional[str] = None
    env_prefix: Optional[str] = None

    @staticmethod
    def global_defaults() -> Dict[str, Any]:
        """
        Return the core default settings for Assetrun.

        Subclasses may choose to override this method, calling
        ``Config.global_defaults`` and applying `merge_dicts` to the result,
        to add to or modify these values.
        """
        return {
            "build_root": "build",
            "assets": {
                "style": {
                    "label": "Css",
                    "source": "src/scss/**/*.scss",
                    "output": "build/css",
                    "stages": ["sass", "autoprefix", "cssmin"],
                    "message": "CSS compiled and minimized {path}",
                    "event": "CHANGED CSS",
                },
                "script": {
                    "label": "Js",
                    "source": "src/js/**/*.js",
                    "output": "build/js",
                    "stages": ["babel", "jsmin"],
                    "message": "JS compiled and minimized {path}",
                    "event": "CHANGED JS",
                },
                "image": {
                    "label": "Img",
                    "source": "src/images/**/*.*",
                    "output": "build/images",
                    "stages": [],
                    "message": "Images optimized - {path}",
                    "event": "CHANGED Image",
                },
            },
            "sass": {
                "output_style": "expanded",
                "include_paths": [],
            },
            "autoprefix": {
                "command": "npx --no-install postcss --no-map --use autoprefixer",  # noqa
                "browsers": ["> 5%"],
            },
            "babel": {
                "command": "npx --no-install babel --filename {filename}",
            },
            "watch": {
                "poll": True,
                "interval": 1.0,
                "delay": 0.2,
            },
            "notify": {
                "sinks": ["console"],
                "title": "assetrun",
                "command": "notify-send",
            },
            "run": {
                "echo": False,
                "encoding": None,
                "env": {},
                "hide": None,
                "shell": "/bin/sh",
                "warn": False,
            },
        }

    def __init__(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        defaults: Optional[Dict[str, Any]] = None,
        project_location: Optional[str] = None,
        runtime_path: Optional[str] = None,
        lazy: bool = False,
    ) -> None:
        """
        Creates a new config object.

        :param dict defaults:
            A dict containing default (lowest level) config data. Default:
            `global_defaults`.

        :param dict overrides:
            A dict containing override-level config data. Default: ``{}``.

        :param str project_location:
            Optional directory path of the project being built. When
            non-empty, ``assetrun.(yaml|yml|json|py)`` is sought there.

        :param str runtime_path:
            Optional file path to a runtime configuration file.

        :param bool lazy:
            Whether to skip automatic loading of the project and runtime
            config files. Default: ``False``.
        """
        # Config file suffixes to search, in preference order.
        self._file_suffixes = ("yaml", "yml", "json", "py")
        if defaults is None:
            defaults = copy_dict(self.global_defaults())
        self._defaults = defaults

        self._project_prefix: Optional[str] = None
        self._project_path: Optional[str] = None
        # Whether the project config file has been loaded or not (or ``None``
        # if no loading has been attempted yet.)
        self._project_found: Optional[bool] = None
        self._project: Dict[str, Any] = {}
        self._project_location: Optional[str] = None
        if project_location is not None:
            self.set_project_location(project_location)

        env_prefix = self.env_prefix
        if env_prefix is None:
            env_prefix = self.prefix
        self._env_prefix = "{}_".format(env_prefix.upper())
        self._env: Dict[str, Any] = {}

        self._runtime_path = runtime_path
        self._runtime_found: Optional[bool] = None
        self._runtime: Dict[str, Any] = {}

        self._overrides = {} if overrides is None else overrides

        self._config: Dict[str, Any] = {}
        if not lazy:
            self.load_project(merge=False)
            self.load_runtime(merge=False)
        self.merge()

    # Read-only dict protocol over the merged data.

    def __getitem__(self, key: str) -> Any:
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        return key in self._config

    def __iter__(self) -> Iterator[str]:
        return iter(self._config)

    def __len__(self) -> int:
        return len(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def keys(self):
        return self._config.keys()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Config):
            return self._config == other._config
        if isinstance(other, dict):
            return self._config == other
        return NotImplemented

    def __repr__(self) -> str:
        return "<{}: {}>".format(self.__class__.__name__, self._config)

    def set_project_location(self, path: str) -> None:
        """
        Set the directory path where a project-level config file may be found.

        Does not do any file loading on its own; for that, see `load_project`.
        """
        self._project_location = abspath(path)
        self._project_prefix = join(self._project_location, "")
        self._project_path = None
        self._project_found = None
        self._project = {}

    @property
    def project_location(self) -> Optional[str]:
        return self._project_location

    def load_project(self, merge: bool = True) -> None:
        """
        Load a project-level config file, if possible.

        Checks the configured ``_project_prefix`` value derived from the path
        given to `set_project_location`.
        """
        self._load_file(prefix="project", merge=merge)

    def set_runtime_path(self, path: Optional[str]) -> None:
        """
        Set the runtime config file path.
        """
        self._runtime_path = path
        self._runtime_found = None
        self._runtime = {}

    def load_runtime(self, merge: bool = True) -> None:
        """
        Load a runtime-level config file, if one was specified.
        """
        self._load_file(prefix="runtime", absolute=True, merge=merge)

    def load_overrides(
        self, data: Dict[str, Any], merge: bool = True
    ) -> None:
        """
        Load ``data`` as the override level, merging it on top of any prior
        overrides.
        """
        debug("Loading overrides: {!r}".format(data))
        merge_dicts(self._overrides, data)
        if merge:
            self.merge()

    def load_shell_env(self) -> None:
        """
        Load values from the shell environment.

        Intended for execution late in a `.Config` object's lifecycle, once all
        other sources have been loaded, since the merged tree is used as the
        guide for which env var names are meaningful and how to cast them.
        """
        debug("Running pre-merge for shell env loading...")
        self.merge()
        debug("Done with pre-merge.")
        loader = Environment(config=self._config, prefix=self._env_prefix)
        self._env = loader.load()
        debug("Loaded shell environment, triggering final merge")
        self.merge()

    def _load_file(
        self, prefix: str, absolute: bool = False, merge: bool = True
    ) -> None:
        found = "_{}_found".format(prefix)
        path = "_{}_path".format(prefix)
        data = "_{}".format(prefix)
        midfix = self.file_prefix
        if midfix is None:
            midfix = self.prefix
        # Short-circuit if loading appears to have occurred already
        if getattr(self, found) is not None:
            return
        if absolute:
            absolute_path = getattr(self, path)
            # None -> expected absolute path but none set, short circuit
            if absolute_path is None:
                return
            paths = [absolute_path]
        else:
            path_prefix = getattr(self, "_{}_prefix".format(prefix))
            # Short circuit if loading seems unnecessary (eg for project config
            # files when not running out of a project)
            if path_prefix is None:
                return
            paths = [
                ".".join((path_prefix + midfix, x))
                for x in self._file_suffixes
            ]
        for filepath in paths:
            type_ = splitext(filepath)[1].lstrip(".")
            loader = getattr(self, "_load_{}".format(type_), None)
            if loader is None:
                msg = "Config files of type {!r} (from file {!r}) are not supported! Please use one of: {!r}"  # noqa
                raise UnknownFileType(
                    msg.format(type_, filepath, self._file_suffixes)
                )
            try:
                setattr(self, data, loader(filepath))
                setattr(self, path, filepath)
                setattr(self, found, True)
                break
            except FileNotFoundError:
                debug("Didn't see any {}, skipping.".format(filepath))
        # Still None -> no suffixed paths were found, record this fact
        if getattr(self, found) is None:
            setattr(self, path, None)
            setattr(self, found, False)
        if merge:
            self.merge()

    def _load_yaml(self, path: str) -> Dict[str, Any]:
        with open(path) as fd:
            return yaml.safe_load(fd) or {}

    _load_yml = _load_yaml

    def _load_json(self, path: str) -> Dict[str, Any]:
        with open(path) as fd:
            return json.load(fd)

    def _load_py(self, path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        data = {}
        for key, value in load_source("mod", path).items():
            # Strip special members, as these are always going to be builtins
            # and other special things a user will not want in their config.
            if key.startswith("__"):
                continue
            # Raise exceptions on module values; they are unpicklable.
            if isinstance(value, types.ModuleType):
                continue
            data[key] = value
        return data

    @property
    def paths(self) -> List[str]:
        """
        All successfully loaded config file paths, project first.
        """
        paths = []
        for prefix in ("project", "runtime"):
            value = getattr(self, "_{}_path".format(prefix))
            if value is not None and getattr(
                self, "_{}_found".format(prefix)
            ):
                paths.append(value)
        return paths

    def merge(self) -> None:
        """
        Merge all config sources, in order.
        """
        debug("Merging config sources in order onto new empty _config...")
        self._config = {}
        debug("Defaults: {!r}".format(self._defaults))
        merge_dicts(self._config, self._defaults)
        self._merge_file("project", "Per-project")
        debug("Environment variable config: {!r}".format(self._env))
        merge_dicts(self._config, self._env)
        self._merge_file("runtime", "Runtime")
        debug("Overrides: {!r}".format(self._overrides))
        merge_dicts(self._config, self._overrides)

    def _merge_file(self, name: str, desc: str) -> None:
        desc += " config file"
        found = getattr(self, "_{}_found".format(name))
        path = getattr(self, "_{}_path".format(name))
        data = getattr(self, "_{}".format(name))
        # None -> no loading occurred yet
        if found is None:
            debug("{} has not been loaded yet, skipping".format(desc))
        # True -> hooray
        elif found:
            debug("{} ({}): {!r}".format(desc, path, data))
            merge_dicts(self._config, data)
        # False -> did try, did not succeed
        else:
            debug("{} not found, skipping".format(desc))

    def clone(self) -> "Config":
        """
        Return a copy of this configuration object.

        The new object will be identical in terms of configured sources and any
        loaded data, but will be a distinct object with as little shared
        mutable state as possible.
        """
        new = self.__class__(
            overrides=copy_dict(self._overrides),
            defaults=copy_dict(self._defaults),
            lazy=True,
        )
        for name in (
            "_project_location",
            "_project_prefix",
            "_project_path",
            "_project_found",
            "_runtime_path",
            "_runtime_found",
        ):
            setattr(new, name, getattr(self, name))
        for name in ("_project", "_runtime", "_env"):
            setattr(new, name, copy_dict(getattr(self, name)))
        new.merge()
        return new

    def settings(self, root: Optional[str] = None) -> Settings:
        """
        Freeze the merged configuration into an immutable `.Settings`.

        :param str root:
            The project root all relative paths are resolved against. Defaults
            to the project location, or the current working directory if none
            was set.
        """
        if root is None:
            root = self._project_location or os.getcwd()
        return Settings.from_dict(self._config, root=root)


def merge_dicts(
    base: Dict[str, Any], updates: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Recursively merge dict ``updates`` into dict ``base`` (mutating ``base``.)

    * Values which are themselves dicts will be recursed into.
    * Values which are a dict in one input and *not* a dict in the other input
      (e.g. if our inputs were ``{'foo': 5}`` and ``{'foo': {'bar': 5}}``) are
      irreconciliable and will generate an exception.
    * Non-dict leaf values are run through `copy.copy` to avoid state bleed.

    :returns:
        The value of ``base``, which is mostly useful for wrapper functions
        like `copy_dict`.
    """
    for key, value in updates.items():
        # Dict values whose keys also exist in 'base' -> recurse
        # (But only if both types are dicts.)
        if key in base:
            if isinstance(value, dict):
                if isinstance(base[key], dict):
                    merge_dicts(base[key], value)
                else:
                    raise _merge_error(base[key], value)
            else:
                if isinstance(base[key], dict):
                    raise _merge_error(base[key], value)
                else:
                    base[key] = copy.copy(value)
        # New values get set anew
        else:
            # Dict values get reconstructed to avoid being references to the
            # updates dict, which can lead to nasty state-bleed bugs otherwise
            if isinstance(value, dict):
                base[key] = copy_dict(value)
            # Non-dict values just get set straight
            else:
                base[key] = copy.copy(value)
    return base


def _merge_error(orig: object, new: object) -> AmbiguousMergeError:
    return AmbiguousMergeError(
        "Can't cleanly merge {} with {}".format(
            _format_mismatch(orig), _format_mismatch(new)
        )
    )


def _format_mismatch(x: object) -> str:
    return "{} ({!r})".format(type(x), x)


def copy_dict(source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a fresh copy of ``source`` with as little shared state as possible.

    Uses `merge_dicts` under the hood, with an empty ``base`` dict; see its
    documentation for details on behavior.
    """
    return merge_dicts({}, source)
