from typing import Protocol


class FileSystem(Protocol):
    """Protocol for the file operations used by the analyzer, cache and link merger.

    Failures are reported with `OSError` subclasses (e.g. `FileNotFoundError`),
    which callers treat as "file changed or missing".
    """

    def exists(self, path: str) -> bool:
        """Check whether a file or directory exists."""
        ...

    def list_dir(self, path: str) -> list[tuple[str, bool]]:
        """List a directory as (entry name, is_directory) pairs."""
        ...

    def mtime(self, path: str) -> int:
        """Get the modification time of a file in nanoseconds."""
        ...

    def read_bytes(self, path: str) -> bytes:
        """Read the raw content of a file."""
        ...

    def read_text(self, path: str) -> str:
        """Read a UTF-8 text file."""
        ...

    def write_text(self, path: str, content: str) -> None:
        """Write a UTF-8 text file."""
        ...
