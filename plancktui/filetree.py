"""The collapsible tree of markdown files shown in the sidebar."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping


class FileStatus(Enum):
    """Progress state of a markdown file."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class MarkdownFile:
    """A markdown file, named by its slash-separated path relative to the workspace."""

    name: str
    status: FileStatus = FileStatus.PENDING


@dataclass(eq=False)
class TreeNode:
    """A directory or file in the tree."""

    name: str
    path: str
    depth: int
    is_dir: bool
    expanded: bool = False
    file: MarkdownFile | None = None
    children: list[TreeNode] = field(default_factory=list)


def _sort_nodes(nodes: list[TreeNode]) -> None:
    nodes.sort(key=lambda node: (not node.is_dir, node.name.lower()))
    for node in nodes:
        if node.is_dir and node.children:
            _sort_nodes(node.children)


def build_tree(
    files: Iterable[MarkdownFile], dir_state: Mapping[str, bool] | None = None
) -> list[TreeNode]:
    """Build the tree from a flat list of files.

    Directories are expanded unless ``dir_state`` says otherwise. At every level
    directories come first, then files, each ordered case-insensitively.
    """
    state = dir_state or {}
    dir_nodes: dict[str, TreeNode] = {}
    roots: list[TreeNode] = []

    for file in files:
        parts = file.name.split("/")
        parent = roots
        for depth, segment in enumerate(parts[:-1]):
            dir_path = "/".join(parts[: depth + 1])
            node = dir_nodes.get(dir_path)
            if node is None:
                node = TreeNode(
                    name=segment,
                    path=dir_path,
                    depth=depth,
                    is_dir=True,
                    expanded=state.get(dir_path, True),
                )
                dir_nodes[dir_path] = node
                parent.append(node)
            parent = node.children
        parent.append(
            TreeNode(
                name=parts[-1],
                path=file.name,
                depth=len(parts) - 1,
                is_dir=False,
                file=file,
            )
        )

    _sort_nodes(roots)
    return roots


def flatten(nodes: Iterable[TreeNode]) -> list[TreeNode]:
    """Return the visible nodes in display order, skipping collapsed directories."""
    visible: list[TreeNode] = []
    for node in nodes:
        visible.append(node)
        if node.is_dir and node.expanded:
            visible.extend(flatten(node.children))
    return visible


def pad_to_width(text: str, width: int) -> str:
    """Pad ``text`` with spaces until it is ``width`` characters long."""
    if len(text) >= width:
        return text
    return text + " " * (width - len(text))


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to at most ``max_len`` characters, marking the cut with an ellipsis."""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"