"""A markdown panel with a read-only view mode and a wrapping text editor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from plancktui.events import MouseAction, MouseButton, MouseEvent
from plancktui.textbuffer import (
    TextBuffer,
    VisualLine,
    build_visual_lines,
    cursor_visual_row,
    wrap_line,
)

REVERSE = "\x1b[7m"
SELECTION = "\x1b[48;5;62;38;5;255m"
RESET = "\x1b[0m"

_DEFAULT_RENDER_WIDTH = 80
_WHEEL_STEP = 3
_TAB = "    "

_RUN_NORMAL = 0
_RUN_SELECTION = 1
_RUN_CURSOR = 2


def _styled(kind: int, text: str) -> str:
    if kind == _RUN_CURSOR:
        return f"{REVERSE}{text}{RESET}"
    if kind == _RUN_SELECTION:
        return f"{SELECTION}{text}{RESET}"
    return text


class EditorMode(Enum):
    """Whether the editor shows rendered content or raw editable text."""

    VIEW = "view"
    EDIT = "edit"


@dataclass(frozen=True)
class FileSaved:
    """Emitted when the editor content should be written to disk."""

    file_name: str
    content: str


class Editor:
    """Shows a markdown file and lets the user edit it."""

    VIEW_BINDINGS: dict[str, tuple[str, ...]] = {
        "edit": ("e", "i"),
        "down": ("j", "down"),
        "up": ("k", "up"),
        "page_down": ("ctrl+d", "pgdown"),
        "page_up": ("ctrl+u", "pgup"),
        "top": ("g", "home"),
        "bottom": ("G", "end"),
    }

    def __init__(self) -> None:
        self.file_name = ""
        self.content = ""
        self.buffer = TextBuffer("")
        self.rendered = ""
        self.line_count = 0
        self.mode = EditorMode.VIEW
        self.view_offset = 0
        self.modified = False
        self.width = 0
        self.height = 0
        self.focused = False
        self.screen_x = 0
        self.screen_y = 0
        self._render_width = _DEFAULT_RENDER_WIDTH

    # -- content ----------------------------------------------------------

    def set_content(self, file_name: str, content: str) -> None:
        """Load new content and return to view mode."""
        self.file_name = file_name
        self.content = content
        self.mode = EditorMode.VIEW
        self.view_offset = 0
        self.modified = False
        self.buffer = TextBuffer(content)
        self._render_content()

    def get_content(self) -> str:
        """Return the current text, including unsaved edits in edit mode."""
        if self.mode is EditorMode.EDIT:
            return self.buffer.text()
        return self.content

    def _parse_lines(self) -> None:
        row, col = self.buffer.cursor_row, self.buffer.cursor_col
        self.buffer = TextBuffer(self.content)
        self.buffer.cursor_row, self.buffer.cursor_col = row, col

    def _rebuild_content(self) -> None:
        self.content = self.buffer.text()
        self._render_content()

    def _render_content(self) -> None:
        if not self.content:
            self.rendered = ""
            self.line_count = 0
            return
        wrapped = (
            segment
            for line in self.content.split("\n")
            for segment in wrap_line(line, self._render_width)
        )
        self.rendered = "\n".join(wrapped).strip()
        self.line_count = self.rendered.count("\n") + 1

    # -- geometry ---------------------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        """Set the panel size and re-wrap the rendered view."""
        self.width = width
        self.height = height
        self._render_width = width - 8
        if self.mode is EditorMode.VIEW:
            self._render_content()

    def set_position(self, x: int, y: int) -> None:
        """Set the panel's screen position, used to translate mouse coordinates."""
        self.screen_x = x
        self.screen_y = y

    def set_focused(self, focused: bool) -> None:
        """Set whether key events are handled."""
        self.focused = focused

    def visible_lines(self) -> int:
        """Return the number of content rows that fit in the panel."""
        chrome = 4 if self.mode is EditorMode.EDIT else 3
        return max(1, self.height - chrome)

    def _gutter_width(self) -> int:
        return max(2, len(str(len(self.buffer.lines))))

    def edit_max_line_width(self) -> int:
        """Return the wrap width of text in edit mode."""
        return max(10, self.width - self._gutter_width() - 8)

    def _visual_lines(self) -> list[VisualLine]:
        return build_visual_lines(self.buffer.lines, self.edit_max_line_width())

    # -- modes ------------------------------------------------------------

    def enter_edit_mode(self) -> None:
        """Switch to edit mode with the cursor at the top."""
        self.mode = EditorMode.EDIT
        self.buffer = TextBuffer(self.content)

    def exit_edit_mode(self) -> None:
        """Leave edit mode, keeping the edits as the content."""
        self.mode = EditorMode.VIEW
        self.buffer.clear_selection()
        self._rebuild_content()

    def clear_modified(self) -> None:
        """Forget that the content was modified."""
        self.modified = False

    # -- scrolling and vertical movement -----------------------------------

    def scroll_by(self, delta: int) -> None:
        """Scroll by ``delta`` rows, clamped to the content."""
        self.view_offset += delta
        if self.mode is EditorMode.EDIT:
            total = len(self._visual_lines())
        else:
            total = self.line_count
        max_offset = max(0, total - self.visible_lines())
        self.view_offset = max(0, min(self.view_offset, max_offset))

    def _ensure_cursor_visible(self) -> None:
        visible = self.visible_lines()
        vrow = cursor_visual_row(
            self._visual_lines(), self.buffer.cursor_row, self.buffer.cursor_col
        )
        if vrow < self.view_offset:
            self.view_offset = vrow
        if vrow >= self.view_offset + visible:
            self.view_offset = vrow - visible + 1

    def _move_visual(self, step: int) -> None:
        buf = self.buffer
        vlines = self._visual_lines()
        current = cursor_visual_row(vlines, buf.cursor_row, buf.cursor_col)
        target = current + step
        if target < 0 or target >= len(vlines):
            return
        dest = vlines[target]
        local = buf.cursor_col - vlines[current].col_offset
        buf.cursor_row = dest.logical_row
        buf.cursor_col = min(dest.col_offset + local, dest.col_offset + len(dest.text))

    def move_cursor_up_visual(self) -> None:
        """Move the cursor up one display row, keeping its column where possible."""
        self._move_visual(-1)

    def move_cursor_down_visual(self) -> None:
        """Move the cursor down one display row, keeping its column where possible."""
        self._move_visual(1)

    # -- keys -------------------------------------------------------------

    def handle_key(self, key: str, alt: bool = False) -> FileSaved | None:
        """Handle a key press; return a save request when the file should be written."""
        if not self.focused:
            return None
        if self.mode is EditorMode.VIEW:
            self._handle_view_key(key)
            return None
        return self._handle_edit_key(key, alt)

    def _matches(self, action: str, key: str) -> bool:
        return key in self.VIEW_BINDINGS.get(action, ())

    def _handle_view_key(self, key: str) -> None:
        visible = self.visible_lines()
        max_offset = self.line_count - visible
        if self._matches("edit", key):
            self.mode = EditorMode.EDIT
            self.buffer = TextBuffer(self.content)
        elif self._matches("down", key):
            self.view_offset = max(0, min(self.view_offset + 1, max_offset))
        elif self._matches("up", key):
            self.view_offset = max(0, self.view_offset - 1)
        elif self._matches("page_down", key):
            self.view_offset = max(0, min(self.view_offset + visible // 2, max_offset))
        elif self._matches("page_up", key):
            self.view_offset = max(0, self.view_offset - visible // 2)
        elif self._matches("top", key):
            self.view_offset = 0
        elif self._matches("bottom", key):
            self.view_offset = max(0, max_offset)

    def _select_with(self, move) -> None:
        buf = self.buffer
        origin = (buf.cursor_row, buf.cursor_col)
        move()
        buf.extend_selection(*origin)

    def _word_left(self) -> None:
        buf = self.buffer
        buf.cursor_row, buf.cursor_col = buf.word_boundary_left(buf.cursor_row, buf.cursor_col)

    def _word_right(self) -> None:
        buf = self.buffer
        buf.cursor_row, buf.cursor_col = buf.word_boundary_right(buf.cursor_row, buf.cursor_col)

    def _replace_selection_with(self, text: str) -> None:
        self.buffer.delete_selection()
        self.buffer.insert_text(text)
        self.modified = True

    def _handle_edit_key(self, key: str, alt: bool) -> FileSaved | None:
        buf = self.buffer
        if key == "esc":
            buf.clear_selection()
            self._rebuild_content()
            self.mode = EditorMode.VIEW
            if self.modified:
                return FileSaved(self.file_name, self.content)
            return None
        if key == "ctrl+s":
            self._rebuild_content()
            return FileSaved(self.file_name, self.content)

        plain_moves = {
            "left": self._word_left if alt else buf.move_left,
            "right": self._word_right if alt else buf.move_right,
            "home": buf.move_line_start,
            "ctrl+a": buf.move_line_start,
            "end": buf.move_line_end,
            "ctrl+e": buf.move_line_end,
            "ctrl+left": self._word_left,
            "ctrl+right": self._word_right,
        }
        selecting_moves = {
            "shift+left": self._word_left if alt else buf.move_left,
            "shift+right": self._word_right if alt else buf.move_right,
            "shift+home": buf.move_line_start,
            "shift+end": buf.move_line_end,
        }

        if key in plain_moves:
            buf.clear_selection()
            plain_moves[key]()
        elif key in selecting_moves:
            self._select_with(selecting_moves[key])
        elif key in ("up", "down"):
            buf.clear_selection()
            self._move_visual(-1 if key == "up" else 1)
            self._ensure_cursor_visible()
        elif key in ("shift+up", "shift+down"):
            step = -1 if key == "shift+up" else 1
            self._select_with(lambda: self._move_visual(step))
            self._ensure_cursor_visible()
        elif key == "enter":
            buf.delete_selection()
            buf.insert_newline()
            self._ensure_cursor_visible()
            self.modified = True
        elif key == "backspace":
            if not buf.delete_selection():
                buf.delete_backward()
            self.modified = True
        elif key == "delete":
            if not buf.delete_selection():
                buf.delete_forward()
            self.modified = True
        elif key == "tab":
            self._replace_selection_with(_TAB)
        elif key == "space":
            self._replace_selection_with(" ")
        elif len(key) == 1 and key.isprintable():
            self._replace_selection_with(key)
        return None

    # -- mouse ------------------------------------------------------------

    def _mouse_to_logical(self, x: int, y: int) -> tuple[int, int]:
        rel_y = y - self.screen_y - 2
        rel_x = x - self.screen_x - 2
        if rel_y < 0 or rel_x < 0:
            return -1, -1
        vlines = self._visual_lines()
        vrow = max(0, min(rel_y + self.view_offset, len(vlines) - 1))
        vline = vlines[vrow]
        col = max(0, min(rel_x - self._gutter_width() - 3, len(vline.text)))
        return vline.logical_row, vline.col_offset + col

    def handle_mouse(self, event: MouseEvent) -> None:
        """Scroll on wheel events and place the cursor on left clicks."""
        if event.is_wheel():
            if event.button is MouseButton.WHEEL_UP:
                self.scroll_by(-_WHEEL_STEP)
            elif event.button is MouseButton.WHEEL_DOWN:
                self.scroll_by(_WHEEL_STEP)
            return
        if event.action is MouseAction.PRESS and event.button is MouseButton.LEFT:
            self._handle_press(event)

    def _handle_press(self, event: MouseEvent) -> None:
        buf = self.buffer
        if self.mode is EditorMode.EDIT:
            row, col = self._mouse_to_logical(event.x, event.y)
            if row < 0:
                return
            origin = (buf.cursor_row, buf.cursor_col)
            buf.cursor_row, buf.cursor_col = row, col
            if event.shift:
                buf.extend_selection(*origin)
            else:
                buf.clear_selection()
            return

        rel_y = max(0, event.y - self.screen_y - 2)
        rendered_line = rel_y + self.view_offset
        self.mode = EditorMode.EDIT
        self._parse_lines()
        buf = self.buffer
        line_count = max(1, self.line_count)
        raw_line = rendered_line * len(buf.lines) // line_count
        buf.cursor_row = max(0, min(raw_line, len(buf.lines) - 1))
        buf.cursor_col = 0
        buf.clear_selection()
        self._ensure_cursor_visible()

    # -- rendering --------------------------------------------------------

    def view(self) -> str:
        """Render the panel as text."""
        if self.mode is EditorMode.EDIT:
            indicator = "[EDIT]" + (" *" if self.modified else "")
        else:
            indicator = "[VIEW]"
        lines = [f"{self.file_name}  {indicator}", "─" * max(0, self.width - 4)]

        visible = self.visible_lines()
        if self.mode is EditorMode.EDIT:
            lines.extend(self._render_edit_mode(visible))
            lines.append("")
            lines.append(f"Ln {self.buffer.cursor_row + 1}, Col {self.buffer.cursor_col + 1}")
        else:
            lines.extend(self._render_view_mode(visible))

        if self.height > 0:
            lines = lines[: self.height]
            lines.extend([""] * (self.height - len(lines)))
        return "\n".join(lines)

    def _render_view_mode(self, visible: int) -> list[str]:
        if not self.content:
            return ["No content"] + [""] * (visible - 1)
        rendered = self.rendered.split("\n")
        self.line_count = len(rendered)
        start = max(0, min(self.view_offset, len(rendered) - 1))
        end = min(self.view_offset + visible, len(rendered))
        shown = rendered[start:end]
        return shown + [""] * (visible - len(shown))

    def _render_edit_mode(self, visible: int) -> list[str]:
        buf = self.buffer
        if not buf.lines:
            buf.lines = [""]
        num_width = self._gutter_width()
        vlines = self._visual_lines()
        cursor_vrow = cursor_visual_row(vlines, buf.cursor_row, buf.cursor_col)

        start = max(0, min(self.view_offset, len(vlines) - 1))
        end = min(self.view_offset + visible, len(vlines))

        out: list[str] = []
        for index in range(start, end):
            vline = vlines[index]
            if vline.wrap_index == 0:
                gutter = f"{vline.logical_row + 1:>{num_width}} │ "
            else:
                gutter = f"{'':>{num_width}} · "
            local = -1
            if index == cursor_vrow:
                local = max(0, min(buf.cursor_col - vline.col_offset, len(vline.text)))
            out.append(gutter + self._render_segment(vline, local))

        filler = f"{'~':>{num_width}} │ "
        out.extend([filler] * (visible - len(out)))
        return out

    def _render_segment(self, vline: VisualLine, local: int) -> str:
        text = vline.text
        buf = self.buffer
        if buf.has_selection:
            runs: list[tuple[int, list[str]]] = []
            for j in range(len(text) + 1):
                if j == local:
                    ch = text[j] if j < len(text) else " "
                    kind = _RUN_CURSOR
                elif j < len(text):
                    ch = text[j]
                    in_selection = buf.is_in_selection(vline.logical_row, vline.col_offset + j)
                    kind = _RUN_SELECTION if in_selection else _RUN_NORMAL
                else:
                    continue
                if runs and runs[-1][0] == kind:
                    runs[-1][1].append(ch)
                else:
                    runs.append((kind, [ch]))
            return "".join(_styled(kind, "".join(chars)) for kind, chars in runs)
        if local >= 0:
            if local >= len(text):
                return text + _styled(_RUN_CURSOR, " ")
            return text[:local] + _styled(_RUN_CURSOR, text[local]) + text[local + 1:]
        return text