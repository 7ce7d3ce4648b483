import pytest

from notegraph.domain.clusters import MergeLinkRequest
from notegraph.graph.analyzer import NoteGraphAnalyzer
from notegraph.graph.link_merger import LinkMerger, build_replacement_regex
from tests.fakes import FakeFileSystem

NOTE_A = "/vault/A.md"
NOTE_B = "/vault/B.md"
NOTE_C = "/vault/C.md"


@pytest.fixture
def vault() -> FakeFileSystem:
    return FakeFileSystem(
        {
            NOTE_A: "[[ML]] and [[ml|custom]]\nthen [[ML#Intro]] and [[MLX]]",
            NOTE_B: "[[Machine Learning]]",
            NOTE_C: "no links",
        }
    )


@pytest.fixture
def merger(vault: FakeFileSystem) -> LinkMerger:
    return LinkMerger(filesystem=vault, analyzer=NoteGraphAnalyzer(filesystem=vault))


def test_merge_preserves_original_target_as_alias(
    merger: LinkMerger, vault: FakeFileSystem
) -> None:
    result = merger.merge_similar_links(
        "/vault", MergeLinkRequest(old_targets=["ML", "ml"], new_target="Machine Learning")
    )

    assert vault.read_text(NOTE_A) == (
        "[[Machine Learning|ML]] and [[Machine Learning|custom]]\n"
        "then [[Machine Learning#Intro|ML]] and [[MLX]]"
    )
    assert result.files_modified == 1
    assert result.links_replaced == 3
    assert result.modified_files == [NOTE_A]
    assert result.errors == {}


def test_merge_without_alias(merger: LinkMerger, vault: FakeFileSystem) -> None:
    merger.merge_similar_links(
        "/vault",
        MergeLinkRequest(
            old_targets=["ML", "ml"], new_target="Machine Learning", preserve_as_alias=False
        ),
    )

    assert vault.read_text(NOTE_A) == (
        "[[Machine Learning]] and [[Machine Learning|custom]]\n"
        "then [[Machine Learning#Intro]] and [[MLX]]"
    )


def test_merge_reports_failing_files(merger: LinkMerger, vault: FakeFileSystem) -> None:
    vault.make_unreadable(NOTE_C)

    result = merger.merge_similar_links(
        "/vault", MergeLinkRequest(old_targets=["ML"], new_target="Machine Learning")
    )

    assert list(result.errors) == [NOTE_C]
    assert result.modified_files == [NOTE_A]


def test_merge_invalidates_graph_cache(merger: LinkMerger) -> None:
    before = merger.analyzer.analyze_note_graph("/vault")
    assert {link.target for link in before.dangling_links} == {"ML", "ml", "MLX", "Machine Learning"}

    merger.merge_similar_links(
        "/vault", MergeLinkRequest(old_targets=["ML", "ml"], new_target="MLX")
    )

    assert merger.analyzer.cache.get_stats().cache_size == 0
    after = merger.analyzer.analyze_note_graph("/vault")
    assert {link.target for link in after.dangling_links} == {"MLX", "Machine Learning"}
    mlx = next(link for link in after.dangling_links if link.target == "MLX")
    assert mlx.total_occurrences == 4


def test_merge_with_no_targets_does_nothing(merger: LinkMerger, vault: FakeFileSystem) -> None:
    result = merger.merge_similar_links(
        "/vault", MergeLinkRequest(old_targets=[], new_target="Machine Learning")
    )

    assert result.files_modified == 0
    assert vault.read_text(NOTE_A).startswith("[[ML]]")


def test_replace_links_in_file_without_matches_does_not_write(
    merger: LinkMerger, vault: FakeFileSystem
) -> None:
    mtime = vault.mtime(NOTE_C)

    assert merger.replace_links_in_file(NOTE_C, ["ML"], "Machine Learning", True) == (False, 0)
    assert vault.mtime(NOTE_C) == mtime


def test_preview_merge_does_not_write(merger: LinkMerger, vault: FakeFileSystem) -> None:
    previews = merger.preview_merge(
        "/vault", MergeLinkRequest(old_targets=["ML", "ml"], new_target="Machine Learning")
    )

    assert [preview.file_path for preview in previews] == [NOTE_A]
    assert [(m.original, m.replaced, m.line) for m in previews[0].matches] == [
        ("[[ML]]", "[[Machine Learning|ML]]", 1),
        ("[[ml|custom]]", "[[Machine Learning|custom]]", 1),
        ("[[ML#Intro]]", "[[Machine Learning#Intro|ML]]", 2),
    ]
    assert vault.read_text(NOTE_A).startswith("[[ML]]")


def test_build_replacement_regex_escapes_targets() -> None:
    regex = build_replacement_regex(["C++ (lang)", "C"])

    assert regex.fullmatch("[[C++ (lang)|alias]]").groups() == ("C++ (lang)", None, "alias")
    assert regex.fullmatch("[[C#Syntax]]").groups() == ("C", "Syntax", None)
    assert regex.fullmatch("[[Cx]]") is None


def test_build_replacement_regex_requires_targets() -> None:
    with pytest.raises(ValueError):
        build_replacement_regex([])


def test_merge_leaves_unterminated_links_alone(merger: LinkMerger, vault: FakeFileSystem) -> None:
    vault.write_text(NOTE_C, "[[ML#draft [[ML]]")

    merger.merge_similar_links(
        "/vault", MergeLinkRequest(old_targets=["ML"], new_target="Machine Learning")
    )

    assert vault.read_text(NOTE_C) == "[[ML#draft [[Machine Learning|ML]]"
