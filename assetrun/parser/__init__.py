# flake8: noqa
from .parser import *
from .context import ParserContext
from .context import ParserContext as Context, to_flag
from .argument import Argument
