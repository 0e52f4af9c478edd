__all__ = (
    "AmbiguousEnvVar",
    "Argument",
    "Asset",
    "AssetKind",
    "BuildFailed",
    "Collection",
    "Config",
    "Context",
    "Executor",
    "Exit",
    "Failure",
    "Graph",
    "GraphError",
    "Local",
    "MockContext",
    "Notifier",
    "ParseError",
    "ParseResult",
    "Parser",
    "ParserContext",
    "Pipeline",
    "Program",
    "Result",
    "Runner",
    "Settings",
    "Task",
    "ThreadException",
    "TransformError",
    "UncastableEnvVar",
    "UnexpectedExit",
    "UnknownFileType",
    "__version__",
    "__version_info__",
    "task",
)

from ._version import __version__, __version_info__
from .collection import Collection
from .config import Config
from .context import Context, MockContext
from .exceptions import (
    AmbiguousEnvVar,
    BuildFailed,
    Exit,
    Failure,
    GraphError,
    ParseError,
    ThreadException,
    TransformError,
    UncastableEnvVar,
    UnexpectedExit,
    UnknownFileType,
)
from .executor import Executor
from .graph import Graph
from .notify import Notifier
from .parser import Argument, Parser, ParserContext, ParseResult
from .paths import AssetKind, Settings
from .pipeline import Pipeline
from .program import Program
from .runners import Local, Result, Runner
from .stages import Asset
from .tasks import Task, task
