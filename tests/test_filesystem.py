from pathlib import Path

from notegraph.filesystem.local import LocalFileSystem
from notegraph.graph.analyzer import collect_markdown_files
from tests.fakes import FakeFileSystem


def test_collect_markdown_files_skips_hidden_and_unreadable_dirs() -> None:
    filesystem = FakeFileSystem(
        {
            "/vault/A.md": "",
            "/vault/readme.txt": "",
            "/vault/sub/B.md": "",
            "/vault/sub/deeper/C.md": "",
            "/vault/.obsidian/workspace.md": "",
            "/vault/locked/D.md": "",
        }
    )
    filesystem.make_unreadable("/vault/locked")

    assert collect_markdown_files(filesystem, "/vault") == [
        "/vault/A.md",
        "/vault/sub/B.md",
        "/vault/sub/deeper/C.md",
    ]


def test_collect_markdown_files_missing_root() -> None:
    assert collect_markdown_files(FakeFileSystem(), "/nowhere") == []


def test_collect_markdown_files_on_disk(notes_directory: Path) -> None:
    (notes_directory / "b.md").write_text("b", encoding="utf-8")
    (notes_directory / "Projects").mkdir()
    (notes_directory / "Projects" / "a.md").write_text("a", encoding="utf-8")
    (notes_directory / ".trash").mkdir()
    (notes_directory / ".trash" / "old.md").write_text("old", encoding="utf-8")
    (notes_directory / "image.png").write_bytes(b"\x89PNG")

    files = collect_markdown_files(LocalFileSystem(), str(notes_directory))

    assert files == sorted(
        [str(notes_directory / "b.md"), str(notes_directory / "Projects" / "a.md")]
    )


def test_local_filesystem_round_trip(notes_directory: Path) -> None:
    filesystem = LocalFileSystem()
    path = str(notes_directory / "note.md")

    filesystem.write_text(path, "첫 줄\r\n[[Link]]")

    assert filesystem.exists(path)
    assert filesystem.read_text(path) == "첫 줄\r\n[[Link]]"
    assert filesystem.read_bytes(path) == "첫 줄\r\n[[Link]]".encode("utf-8")
    assert filesystem.mtime(path) > 0
    assert filesystem.list_dir(str(notes_directory)) == [("note.md", False)]
