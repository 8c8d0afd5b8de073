"""Sidebar listing markdown files as a collapsible tree, with a move-target picker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from plancktui.events import MouseAction, MouseButton, MouseEvent
from plancktui.filetree import (
    FileStatus,
    MarkdownFile,
    TreeNode,
    build_tree,
    flatten,
    pad_to_width,
    truncate,
)

INDICATOR_SELECTED = "▌"
INDICATOR_FOLDER_OPEN = "▾"
INDICATOR_FOLDER_CLOSED = "▸"
INDICATOR_ROOT = "◇"
INDICATOR_DONE = "✓"
INDICATOR_IN_PROGRESS = "◐"
INDICATOR_PENDING = "○"

_WHEEL_STEP = 3
_HEADER_LINES = 2

_STATUS_INDICATORS = {
    FileStatus.COMPLETED: INDICATOR_DONE,
    FileStatus.IN_PROGRESS: INDICATOR_IN_PROGRESS,
}


class ClickAction(Enum):
    """What a mouse click hit in the file list."""

    NONE = "none"
    FILE = "file"
    DIR_TOGGLE = "dir_toggle"


@dataclass(frozen=True)
class MoveConfirmed:
    """The user picked a destination directory for a move."""

    source_path: str
    dest_dir: str
    is_dir: bool


@dataclass(frozen=True)
class MoveCanceled:
    """The user left move mode without moving anything."""


class FileList:
    """A scrollable, collapsible tree of markdown files."""

    def __init__(self) -> None:
        self.files: list[MarkdownFile] = []
        self.root: list[TreeNode] = []
        self.visible: list[TreeNode] = []
        self.dir_state: dict[str, bool] = {}
        self.cursor = 0
        self.focused = False
        self.height = 0
        self.width = 24
        self.offset = 0
        self.screen_y = 0

        self.move_mode = False
        self.move_source = ""
        self.move_source_dir = False
        self.move_cursor = 0
        self.move_offset = 0

    # -- geometry ---------------------------------------------------------

    def visible_lines(self) -> int:
        """Return the number of content rows visible in normal mode."""
        return max(1, self.height - _HEADER_LINES)

    def _move_visible_lines(self) -> int:
        return max(1, self.height - 4)

    def _ensure_visible(self) -> None:
        visible = self.visible_lines()
        if self.cursor < self.offset:
            self.offset = self.cursor
        if self.cursor >= self.offset + visible:
            self.offset = self.cursor - visible + 1

    def _ensure_move_visible(self) -> None:
        visible = self._move_visible_lines()
        if self.move_cursor < self.move_offset:
            self.move_offset = self.move_cursor
        if self.move_cursor >= self.move_offset + visible:
            self.move_offset = self.move_cursor - visible + 1

    def set_size(self, width: int, height: int) -> None:
        """Set the list dimensions and keep the cursor in view."""
        self.width = width
        self.height = height
        self._ensure_visible()

    def set_position(self, screen_y: int) -> None:
        """Set the vertical screen offset used to translate mouse coordinates."""
        self.screen_y = screen_y

    def set_focused(self, focused: bool) -> None:
        """Set whether key events are handled."""
        self.focused = focused

    # -- tree -------------------------------------------------------------

    def _rebuild_visible(self) -> None:
        self.visible = flatten(self.root)

    def set_files(self, files: Iterable[MarkdownFile] | None) -> None:
        """Replace the files, keeping the selection on the same path if it survives."""
        selected_path = self.selected_path()
        self.files = list(files or [])
        self.root = build_tree(self.files, self.dir_state)
        self._rebuild_visible()

        if selected_path:
            for index, node in enumerate(self.visible):
                if node.path == selected_path:
                    self.cursor = index
                    self._ensure_visible()
                    return

        if self.cursor >= len(self.visible):
            self.cursor = max(0, len(self.visible) - 1)
        self._ensure_visible()

    def _set_expanded(self, node: TreeNode, expanded: bool) -> None:
        node.expanded = expanded
        self.dir_state[node.path] = expanded
        self._rebuild_visible()

    def _current(self) -> TreeNode | None:
        if 0 <= self.cursor < len(self.visible):
            return self.visible[self.cursor]
        return None

    # -- keys -------------------------------------------------------------

    def update(self, key: str) -> MoveConfirmed | MoveCanceled | None:
        """Handle a key press; in move mode, return the outcome when one is reached."""
        if not self.focused:
            return None
        if self.move_mode:
            return self._update_move_mode(key)

        last = len(self.visible) - 1
        if key in ("down", "j"):
            self.cursor = max(0, min(self.cursor + 1, last))
            self._ensure_visible()
        elif key in ("up", "k"):
            self.cursor = max(0, self.cursor - 1)
            self._ensure_visible()
        elif key in ("home", "g"):
            self.cursor = 0
            self.offset = 0
        elif key in ("end", "G"):
            self.cursor = max(0, last)
            self._ensure_visible()
        elif key in ("pgdown", "ctrl+d"):
            self.cursor = max(0, min(self.cursor + self.visible_lines(), last))
            self._ensure_visible()
        elif key in ("pgup", "ctrl+u"):
            self.cursor = max(0, self.cursor - self.visible_lines())
            self._ensure_visible()
        return None

    def _move_visible_nodes(self) -> list[TreeNode]:
        root = TreeNode(name="(root)", path="", depth=0, is_dir=True)
        return [root, *self.visible]

    def _update_move_mode(self, key: str) -> MoveConfirmed | MoveCanceled | None:
        nodes = self._move_visible_nodes()
        if key in ("down", "j"):
            for index in range(self.move_cursor + 1, len(nodes)):
                if nodes[index].is_dir:
                    self.move_cursor = index
                    break
            self._ensure_move_visible()
        elif key in ("up", "k"):
            for index in range(self.move_cursor - 1, -1, -1):
                if nodes[index].is_dir:
                    self.move_cursor = index
                    break
            self._ensure_move_visible()
        elif key in ("l", "right"):
            node = nodes[self.move_cursor]
            if node.is_dir and not node.expanded:
                self._set_expanded(node, True)
        elif key in ("h", "left"):
            node = nodes[self.move_cursor]
            if node.is_dir and node.expanded:
                self._set_expanded(node, False)
        elif key == "enter":
            node = nodes[self.move_cursor]
            if node.is_dir:
                result = MoveConfirmed(self.move_source, node.path, self.move_source_dir)
                self._leave_move_mode()
                return result
        elif key == "esc":
            self._leave_move_mode()
            return MoveCanceled()
        return None

    # -- mouse ------------------------------------------------------------

    def scroll_by(self, delta: int) -> None:
        """Scroll by ``delta`` rows, dragging the cursor along to stay in view."""
        if not self.visible:
            return
        visible = self.visible_lines()
        max_offset = max(0, len(self.visible) - visible)
        self.offset = max(0, min(self.offset + delta, max_offset))
        if self.cursor < self.offset:
            self.cursor = self.offset
        if self.cursor >= self.offset + visible:
            self.cursor = self.offset + visible - 1

    def handle_mouse(self, event: MouseEvent) -> ClickAction:
        """Scroll on wheel events; select or toggle the clicked node on left clicks."""
        if self.move_mode:
            return ClickAction.NONE

        if event.is_wheel():
            if event.button is MouseButton.WHEEL_UP:
                self.scroll_by(-_WHEEL_STEP)
            elif event.button is MouseButton.WHEEL_DOWN:
                self.scroll_by(_WHEEL_STEP)
            return ClickAction.NONE

        if event.button is not MouseButton.LEFT or event.action is not MouseAction.PRESS:
            return ClickAction.NONE

        rel_y = event.y - self.screen_y - _HEADER_LINES
        if rel_y < 0:
            return ClickAction.NONE
        index = self.offset + rel_y
        if not 0 <= index < len(self.visible):
            return ClickAction.NONE

        node = self.visible[index]
        self.cursor = index
        self._ensure_visible()

        if node.is_dir:
            self._set_expanded(node, not node.expanded)
            if self.cursor >= len(self.visible):
                self.cursor = len(self.visible) - 1
            return ClickAction.DIR_TOGGLE
        return ClickAction.FILE

    # -- selection --------------------------------------------------------

    def selected_file(self) -> MarkdownFile | None:
        """Return the selected file, or None when a directory or nothing is selected."""
        node = self._current()
        return None if node is None else node.file

    def is_selected_dir(self) -> bool:
        """Return True if the cursor is on a directory."""
        node = self._current()
        return node is not None and node.is_dir

    def selected_dir_path(self) -> str:
        """Return the selected directory's path, or an empty string."""
        node = self._current()
        return node.path if node is not None and node.is_dir else ""

    def selected_path(self) -> str:
        """Return the selected node's path, or an empty string."""
        node = self._current()
        return "" if node is None else node.path

    def expand_selected(self) -> None:
        """Expand the selected directory."""
        node = self._current()
        if node is not None and node.is_dir and not node.expanded:
            self._set_expanded(node, True)

    def collapse_selected(self) -> None:
        """Collapse the selected directory."""
        node = self._current()
        if node is not None and node.is_dir and node.expanded:
            self._set_expanded(node, False)

    def set_cursor(self, cursor: int) -> None:
        """Move the cursor to ``cursor``, clamped to the visible nodes."""
        self.cursor = max(0, cursor)
        if self.cursor >= len(self.visible):
            self.cursor = len(self.visible) - 1
        self._ensure_visible()

    def select_file(self, name: str) -> None:
        """Select the file with the given name if it is visible."""
        for index, node in enumerate(self.visible):
            if not node.is_dir and node.file is not None and node.file.name == name:
                self.cursor = index
                self._ensure_visible()
                return

    def select_path(self, path: str) -> None:
        """Select the visible node with the given path."""
        for index, node in enumerate(self.visible):
            if node.path == path:
                self.cursor = index
                self._ensure_visible()
                return

    # -- move mode --------------------------------------------------------

    def enter_move_mode(self) -> None:
        """Start picking a destination for the selected node."""
        node = self._current()
        if node is None:
            return
        self.move_mode = True
        self.move_source = node.path
        self.move_source_dir = node.is_dir
        self.move_cursor = 0
        self.move_offset = 0

    def _leave_move_mode(self) -> None:
        self.move_mode = False
        self.move_cursor = 0
        self.move_offset = 0

    def exit_move_mode(self) -> None:
        """Leave move mode and forget the move source."""
        self._leave_move_mode()
        self.move_source = ""
        self.move_source_dir = False

    def in_move_mode(self) -> bool:
        """Return True while picking a move destination."""
        return self.move_mode

    def file_count(self) -> int:
        """Return the number of files, not counting directories."""
        return len(self.files)

    # -- rendering --------------------------------------------------------

    def _fit(self, lines: list[str]) -> str:
        if self.height > 0:
            lines = lines[: self.height]
            lines.extend([""] * (self.height - len(lines)))
        return "\n".join(lines)

    def view(self) -> str:
        """Render the list as text."""
        if self.move_mode:
            return self._view_move_mode()

        lines = ["FILES", "─" * max(0, self.width - 2)]
        visible = self.visible_lines()
        content_width = self.width - 2

        if not self.visible:
            lines.append("  No markdown files")
            visible -= 1
        else:
            for index in range(self.offset, min(self.offset + visible, len(self.visible))):
                node = self.visible[index]
                selected = self.focused and index == self.cursor
                indent = "  " * node.depth
                name = truncate(node.name, self.width - 6 - node.depth * 2)
                if node.is_dir:
                    marker = INDICATOR_FOLDER_OPEN if node.expanded else INDICATOR_FOLDER_CLOSED
                else:
                    status = node.file.status if node.file else FileStatus.PENDING
                    marker = _STATUS_INDICATORS.get(status, INDICATOR_PENDING)
                if selected:
                    raw = f"{INDICATOR_SELECTED}{indent}{marker} {name}"
                    lines.append(pad_to_width(raw, content_width))
                elif not node.is_dir and node.file and node.file.status is FileStatus.COMPLETED:
                    lines.append(f"  {indent}{marker} {name}")
                else:
                    lines.append(f" {indent}{marker} {name}")

        shown = 1 if not self.visible else min(len(self.visible), visible)
        lines.extend([""] * max(0, visible - shown))
        return self._fit(lines)

    def _view_move_mode(self) -> str:
        lines = ["MOVE: pick destination", "─" * max(0, self.width - 2)]
        nodes = self._move_visible_nodes()
        visible = self._move_visible_lines()
        content_width = self.width - 2

        for index in range(self.move_offset, min(self.move_offset + visible, len(nodes))):
            node = nodes[index]
            selected = index == self.move_cursor
            is_source = node.path == self.move_source and node.path != ""
            indent = "  " * node.depth
            name = truncate(node.name, self.width - 6 - node.depth * 2)
            if node.is_dir:
                if node.path == "":
                    arrow = INDICATOR_ROOT
                elif node.expanded:
                    arrow = INDICATOR_FOLDER_OPEN
                else:
                    arrow = INDICATOR_FOLDER_CLOSED
                if is_source:
                    lines.append(f"  {indent}{arrow} {name}")
                elif selected:
                    raw = f"{INDICATOR_SELECTED}{indent}{arrow} {name}"
                    lines.append(pad_to_width(raw, content_width))
                else:
                    lines.append(f" {indent}{arrow} {name}")
            elif is_source:
                lines.append(f"  {indent}~ {name}")
            else:
                lines.append(f"  {indent}  {name}")

        lines.extend([""] * max(0, visible - min(len(nodes), visible)))
        lines.append("─" * max(0, self.width - 2))
        lines.append(" Enter=move  Esc=cancel")
        return self._fit(lines)