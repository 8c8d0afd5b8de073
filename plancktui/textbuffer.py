"""Editable lines of text with a cursor, a selection and soft wrapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

_DEFAULT_WRAP_WIDTH = 10


def is_word_char(ch: str) -> bool:
    """Return True for ASCII letters, digits and underscore."""
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9")


def wrap_line(line: str, max_width: int) -> list[str]:
    """Split a line into display segments, preferring to break at spaces.

    The space a segment is broken at is dropped. A word longer than
    ``max_width`` is cut hard. A non-positive width counts as 10.
    """
    if max_width <= 0:
        max_width = _DEFAULT_WRAP_WIDTH
    if len(line) <= max_width:
        return [line]

    result: list[str] = []
    remaining = line
    while len(remaining) > max_width:
        split_at = remaining.rfind(" ", 0, max_width + 1)
        if split_at <= 0:
            result.append(remaining[:max_width])
            remaining = remaining[max_width:]
        else:
            result.append(remaining[:split_at])
            remaining = remaining[split_at + 1:]
    result.append(remaining)
    return result


@dataclass(frozen=True)
class VisualLine:
    """One display row of a possibly wrapped logical line."""

    logical_row: int
    wrap_index: int
    text: str
    col_offset: int


def build_visual_lines(lines: Sequence[str], max_width: int) -> list[VisualLine]:
    """Return the display rows for ``lines`` wrapped at ``max_width``."""
    vlines: list[VisualLine] = []
    for row, line in enumerate(lines):
        segments = wrap_line(line, max_width)
        offset = 0
        for index, segment in enumerate(segments):
            vlines.append(VisualLine(row, index, segment, offset))
            offset += len(segment)
            if index < len(segments) - 1:
                offset += 1  # the space consumed by the wrap
    if not vlines:
        vlines.append(VisualLine(0, 0, "", 0))
    return vlines


def cursor_visual_row(vlines: Sequence[VisualLine], row: int, col: int) -> int:
    """Return the index of the display row holding the cursor at (row, col)."""
    last = 0
    for index, vline in enumerate(vlines):
        if vline.logical_row != row:
            continue
        if vline.col_offset <= col <= vline.col_offset + len(vline.text):
            return index
    for index, vline in enumerate(vlines):
        if vline.logical_row == row:
            last = index
    return last


class TextBuffer:
    """Lines of text with a cursor and an optional anchored selection."""

    def __init__(self, text: str = "") -> None:
        self.lines: list[str] = text.split("\n")
        self.cursor_row = 0
        self.cursor_col = 0
        self.has_selection = False
        self.sel_anchor_row = 0
        self.sel_anchor_col = 0
        self.sel_end_row = 0
        self.sel_end_col = 0

    def text(self) -> str:
        """Return the whole content joined with newlines."""
        return "\n".join(self.lines)

    # -- editing ----------------------------------------------------------

    def insert_text(self, text: str) -> None:
        """Insert ``text`` at the cursor and move the cursor past it."""
        if self.cursor_row >= len(self.lines):
            self.lines.append("")
        line = self.lines[self.cursor_row]
        self.cursor_col = min(self.cursor_col, len(line))
        col = self.cursor_col
        self.lines[self.cursor_row] = line[:col] + text + line[col:]
        self.cursor_col += len(text)

    def insert_newline(self) -> None:
        """Split the current line at the cursor and move to the new line."""
        if self.cursor_row >= len(self.lines):
            self.lines.append("")
            self.cursor_row = len(self.lines) - 1
            self.cursor_col = 0
            return
        line = self.lines[self.cursor_row]
        col = min(self.cursor_col, len(line))
        self.lines[self.cursor_row : self.cursor_row + 1] = [line[:col], line[col:]]
        self.cursor_row += 1
        self.cursor_col = 0

    def delete_backward(self) -> None:
        """Delete the character before the cursor, joining lines at column 0."""
        if self.cursor_col > 0:
            line = self.lines[self.cursor_row]
            if self.cursor_col <= len(line):
                col = self.cursor_col
                self.lines[self.cursor_row] = line[: col - 1] + line[col:]
                self.cursor_col -= 1
        elif self.cursor_row > 0:
            previous = self.lines[self.cursor_row - 1]
            self.lines[self.cursor_row - 1] = previous + self.lines[self.cursor_row]
            del self.lines[self.cursor_row]
            self.cursor_row -= 1
            self.cursor_col = len(previous)

    def delete_forward(self) -> None:
        """Delete the character at the cursor, joining lines at line end."""
        if self.cursor_row >= len(self.lines):
            return
        line = self.lines[self.cursor_row]
        col = self.cursor_col
        if col < len(line):
            self.lines[self.cursor_row] = line[:col] + line[col + 1:]
        elif self.cursor_row < len(self.lines) - 1:
            self.lines[self.cursor_row] = line + self.lines[self.cursor_row + 1]
            del self.lines[self.cursor_row + 1]

    # -- cursor movement --------------------------------------------------

    def move_left(self) -> None:
        """Move one character left, wrapping to the end of the previous line."""
        if self.cursor_col > 0:
            self.cursor_col -= 1
        elif self.cursor_row > 0:
            self.cursor_row -= 1
            self.cursor_col = len(self.lines[self.cursor_row])

    def move_right(self) -> None:
        """Move one character right, wrapping to the start of the next line."""
        if self.cursor_row >= len(self.lines):
            return
        if self.cursor_col < len(self.lines[self.cursor_row]):
            self.cursor_col += 1
        elif self.cursor_row < len(self.lines) - 1:
            self.cursor_row += 1
            self.cursor_col = 0

    def move_line_start(self) -> None:
        """Move to column 0."""
        self.cursor_col = 0

    def move_line_end(self) -> None:
        """Move to the end of the current line."""
        if self.cursor_row < len(self.lines):
            self.cursor_col = len(self.lines[self.cursor_row])

    def word_boundary_left(self, row: int, col: int) -> tuple[int, int]:
        """Return the start of the word before (row, col), crossing lines."""
        if not self.lines:
            return 0, 0
        if col <= 0:
            if row <= 0:
                return 0, 0
            row -= 1
            col = len(self.lines[row])

        line = self.lines[row]
        while col > 0 and not is_word_char(line[col - 1]):
            col -= 1

        if col == 0:
            if row <= 0:
                return 0, 0
            row -= 1
            line = self.lines[row]
            col = len(line)
            while col > 0 and not is_word_char(line[col - 1]):
                col -= 1

        while col > 0 and is_word_char(line[col - 1]):
            col -= 1
        return row, col

    def word_boundary_right(self, row: int, col: int) -> tuple[int, int]:
        """Return the start of the next word after (row, col), crossing lines."""
        if not self.lines:
            return 0, 0
        line = self.lines[row]
        if col >= len(line):
            if row >= len(self.lines) - 1:
                return row, col
            row += 1
            col = 0
            line = self.lines[row]

        while col < len(line) and is_word_char(line[col]):
            col += 1
        while col < len(line) and not is_word_char(line[col]):
            col += 1
        return row, col

    # -- selection --------------------------------------------------------

    def extend_selection(self, from_row: int, from_col: int) -> None:
        """Extend the selection to the cursor, anchoring at (from_row, from_col) if new."""
        if not self.has_selection:
            self.sel_anchor_row = from_row
            self.sel_anchor_col = from_col
        self.sel_end_row = self.cursor_row
        self.sel_end_col = self.cursor_col
        self.has_selection = (self.sel_end_row, self.sel_end_col) != (
            self.sel_anchor_row,
            self.sel_anchor_col,
        )

    def clear_selection(self) -> None:
        """Drop any active selection."""
        self.has_selection = False

    def selection_range(self) -> tuple[int, int, int, int]:
        """Return (start_row, start_col, end_row, end_col) in document order."""
        anchor = (self.sel_anchor_row, self.sel_anchor_col)
        end = (self.sel_end_row, self.sel_end_col)
        start, stop = (end, anchor) if anchor > end else (anchor, end)
        return start[0], start[1], stop[0], stop[1]

    def is_in_selection(self, row: int, col: int) -> bool:
        """Return True if (row, col) lies in the half-open selection range."""
        if not self.has_selection:
            return False
        sr, sc, er, ec = self.selection_range()
        if row < sr or row > er:
            return False
        if row == sr and col < sc:
            return False
        if row == er and col >= ec:
            return False
        return True

    def delete_selection(self) -> bool:
        """Remove the selected text; return False if nothing was selected."""
        if not self.has_selection:
            return False
        sr, sc, er, ec = self.selection_range()
        start_line = self.lines[sr]
        end_line = self.lines[er]
        sc = min(sc, len(start_line))
        ec = min(ec, len(end_line))
        self.lines[sr : er + 1] = [start_line[:sc] + end_line[ec:]]
        self.cursor_row = sr
        self.cursor_col = sc
        self.clear_selection()
        return True

    def selected_text(self) -> str:
        """Return the selected text, or an empty string when there is none."""
        if not self.has_selection:
            return ""
        sr, sc, er, ec = self.selection_range()
        if sr == er:
            line = self.lines[sr]
            return line[min(sc, len(line)) : min(ec, len(line))]
        first = self.lines[sr]
        last = self.lines[er]
        parts = [first[min(sc, len(first)):], *self.lines[sr + 1 : er], last[: min(ec, len(last))]]
        return "\n".join(parts)