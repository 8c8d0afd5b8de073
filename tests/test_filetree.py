import pytest

from plancktui.filetree import (
    FileStatus,
    MarkdownFile,
    build_tree,
    flatten,
    pad_to_width,
    truncate,
)


def _test_files():
    return [
        MarkdownFile("alpha.md", FileStatus.PENDING),
        MarkdownFile("beta.md", FileStatus.IN_PROGRESS),
        MarkdownFile("subdir/child1.md", FileStatus.PENDING),
        MarkdownFile("subdir/child2.md", FileStatus.COMPLETED),
        MarkdownFile("gamma.md", FileStatus.PENDING),
    ]


def test_tree_layout_matches_sidebar_order():
    visible = flatten(build_tree(_test_files()))
    assert [node.path for node in visible] == [
        "subdir",
        "subdir/child1.md",
        "subdir/child2.md",
        "alpha.md",
        "beta.md",
        "gamma.md",
    ]
    assert visible[0].is_dir
    assert visible[0].expanded
    assert visible[3].file.name == "alpha.md"


def test_depths_and_names():
    visible = flatten(build_tree(_test_files()))
    by_path = {node.path: node for node in visible}
    assert by_path["subdir"].depth == 0
    assert by_path["subdir/child1.md"].depth == 1
    assert by_path["subdir/child1.md"].name == "child1.md"
    assert by_path["subdir/child2.md"].file.status is FileStatus.COMPLETED


def test_collapsed_dir_state_hides_children():
    roots = build_tree(_test_files(), {"subdir": False})
    visible = flatten(roots)
    assert [node.path for node in visible] == [
        "subdir",
        "alpha.md",
        "beta.md",
        "gamma.md",
    ]
    assert len(roots[0].children) == 2


def test_toggling_expanded_changes_visible_count():
    roots = build_tree(_test_files())
    expanded_count = len(flatten(roots))
    roots[0].expanded = False
    assert len(flatten(roots)) == expanded_count - 2
    roots[0].expanded = True
    assert len(flatten(roots)) == expanded_count


def test_nested_directories_shared():
    files = [
        MarkdownFile("a/b/one.md"),
        MarkdownFile("a/b/two.md"),
        MarkdownFile("a/top.md"),
    ]
    roots = build_tree(files)
    assert len(roots) == 1
    assert [node.path for node in flatten(roots)] == [
        "a",
        "a/b",
        "a/b/one.md",
        "a/b/two.md",
        "a/top.md",
    ]
    assert flatten(roots)[1].depth == 1
    assert flatten(roots)[2].depth == 2


def test_sort_is_case_insensitive_with_dirs_first():
    files = [
        MarkdownFile("Zeta.md"),
        MarkdownFile("apple.md"),
        MarkdownFile("zdir/x.md"),
        MarkdownFile("Adir/y.md"),
    ]
    names = [node.name for node in build_tree(files)]
    assert names == ["Adir", "zdir", "apple.md", "Zeta.md"]


def test_empty_tree():
    assert build_tree([]) == []
    assert flatten([]) == []


def test_pad_to_width():
    assert pad_to_width("ab", 5) == "ab   "
    assert pad_to_width("abcdef", 3) == "abcdef"
    assert len(pad_to_width("▸ dir", 10)) == 10


@pytest.mark.parametrize("max_len", [1, 3, 5, 8, 20])
def test_truncate_respects_limit(max_len):
    text = "a-rather-long-file-name.md"
    result = truncate(text, max_len)
    assert len(result) <= max_len
    assert text.startswith(result[:-1])


def test_truncate_short_text_unchanged():
    assert truncate("short.md", 20) == "short.md"
    assert truncate("anything", 0) == ""