"""cmdgrab - lift the command being typed at a shell prompt out of the terminal."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cmdgrab")
except PackageNotFoundError:
    __version__ = "0.0.0"
