"""
This module contains simple functions to colorise terminal output.

The support is limited and only supports 16-color ANSI on *nix platforms.

Output can also be be completely disabled by setting the environment variable
``ASSETRUN_DISABLE_COLORS``.

Example usage::

    >>> from assetrun.termcolor import green
    >>> print(green('Hello World!'))
    >>> print(green('Hello World!', bold=True))
"""
from os import getenv
from sys import platform, stdout
from typing import IO, Callable

from .util import isatty

#: If this is set to "True", no color output will be enabled
DISABLE_COLORS = bool(getenv("ASSETRUN_DISABLE_COLORS", False))


def color_wrapper(color_code: int) -> Callable[..., str]:
    """
    Creates a wrapper function for colorised text.

    :param color_code: The ANSI color code

    The returned function takes one mandatory and two optional arguments. The
    signature is::

        def coloriser(
            text: str,
            bold: bool = False,
            stream: IO = stdout
        ) -> str: ...
    """

    def coloriser(text: str, bold: bool = False, stream: IO = stdout) -> str:
        """
        Returns *text* wrapped with color information (including a "reset" to
        defaults at the end of the string). If *stream* is not a valid TTY, the
        text is returned unmodified.
        """
        if DISABLE_COLORS or not isatty(stream) or platform == "win32":
            # We only want color output on a TTY and on a platform which
            # supports ANSI color codes. For all other cases we just return the
            # text unmodified.
            return text

        modifier = 1 if bold else 0
        return "\033[%d;%dm%s\033[0m" % (modifier, color_code, text)

    return coloriser


red = color_wrapper(31)
green = color_wrapper(32)
yellow = color_wrapper(33)
magenta = color_wrapper(35)
white = color_wrapper(37)
