from notegraph.filesystem.base import FileSystem
from notegraph.filesystem.local import LocalFileSystem

__all__ = ["FileSystem", "LocalFileSystem"]
