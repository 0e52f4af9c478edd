"""
Assetrun's own 'binary' entrypoint.
"""

from . import Program, __version__

program = Program(name="Assetrun", binary="assetrun", version=__version__)
