"""Modal dialogs: confirmation, text input, option selection and permission approval."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

_DIALOG_WIDTH = 40
_SEPARATOR = "─"


class DialogType(Enum):
    """The kind of dialog being shown."""

    CONFIRM = "confirm"
    INPUT = "input"
    SELECT = "select"
    SCOPE_PICKER = "scope_picker"
    PERMISSION = "permission"


@dataclass(frozen=True)
class DialogResult:
    """The outcome passed to a dialog's close callback."""

    confirmed: bool = False
    input: str = ""
    selected: int = 0


@dataclass(frozen=True)
class DialogOption:
    """A selectable option with an optional description."""

    label: str
    description: str = ""


CloseCallback = Callable[[DialogResult], None]

_PERMISSION_TEXT = (
    "This will run autonomously.",
    "Claude Code will be allowed to:",
    "",
    "  ✓ Read/write files in project",
    "  ✓ Run shell commands",
    "  ✓ Make git commits",
    "",
    "You can hijack the session anytime",
    "with [Enter] to take control.",
    "",
    "[Y] Approve & Start  [N] Cancel",
)


def _boxed(lines: list[str]) -> list[str]:
    """Surround ``lines`` with a rounded border and one column of padding."""
    inner = max((len(line) for line in lines), default=0)
    top = "╭" + "─" * (inner + 2) + "╮"
    bottom = "╰" + "─" * (inner + 2) + "╯"
    body = [f"│ {line.ljust(inner)} │" for line in lines]
    return [top, *body, bottom]


class Dialog:
    """A modal dialog that reports its outcome through a callback."""

    def __init__(self) -> None:
        self.visible = False
        self.dtype = DialogType.CONFIRM
        self.title = ""
        self.message = ""
        self.options: list[DialogOption] = []
        self.cursor = 0
        self.input = ""
        self.width = 0
        self.height = 0
        self._on_close: CloseCallback | None = None

    # -- showing ----------------------------------------------------------

    def _show(self, dtype: DialogType, title: str, on_close: CloseCallback | None) -> None:
        self.dtype = dtype
        self.title = title
        self.visible = True
        self._on_close = on_close

    def show_confirm(self, title: str, message: str, on_close: CloseCallback | None) -> None:
        """Show a yes/no confirmation."""
        self._show(DialogType.CONFIRM, title, on_close)
        self.message = message

    def show_input(self, title: str, message: str, on_close: CloseCallback | None) -> None:
        """Show a single-line text prompt."""
        self._show(DialogType.INPUT, title, on_close)
        self.message = message
        self.input = ""

    def show_select(
        self, title: str, options: Sequence[DialogOption], on_close: CloseCallback | None
    ) -> None:
        """Show a list of options to choose from."""
        self._show(DialogType.SELECT, title, on_close)
        self.options = list(options)
        self.cursor = 0

    def show_scope_picker(
        self,
        task_count: int,
        phase_count: int,
        total_tasks: int,
        on_close: CloseCallback | None,
    ) -> None:
        """Show the choice of how much of a plan to execute."""
        self._show(DialogType.SCOPE_PICKER, "Execute Plan", on_close)
        self.options = [
            DialogOption("This task only", "Run just the selected task"),
            DialogOption(
                f"Current phase ({task_count} tasks)", "Complete all tasks in this phase"
            ),
            DialogOption(
                f"Entire plan ({phase_count} phases, {total_tasks} tasks)",
                "Execute the complete plan",
            ),
        ]
        self.cursor = 0

    def show_permission_dialog(self, on_close: CloseCallback | None) -> None:
        """Show the permission pre-approval dialog."""
        self._show(DialogType.PERMISSION, "Pre-approve Permissions", on_close)

    def is_visible(self) -> bool:
        """Return True while the dialog is shown."""
        return self.visible

    def hide(self) -> None:
        """Hide the dialog without calling its callback."""
        self.visible = False

    def set_size(self, width: int, height: int) -> None:
        """Set the size of the area the dialog is centred in."""
        self.width = width
        self.height = height

    # -- keys -------------------------------------------------------------

    def _close(self, result: DialogResult) -> None:
        self.visible = False
        if self._on_close is not None:
            self._on_close(result)

    def handle_key(self, key: str) -> None:
        """Handle a key press; closing the dialog calls the callback."""
        if not self.visible:
            return None
        if self.dtype is DialogType.CONFIRM:
            if key in ("y", "Y", "enter"):
                self._close(DialogResult(confirmed=True))
            elif key in ("n", "N", "esc"):
                self._close(DialogResult(confirmed=False))
        elif self.dtype is DialogType.INPUT:
            if key == "enter":
                self._close(DialogResult(confirmed=True, input=self.input))
            elif key == "esc":
                self._close(DialogResult(confirmed=False))
            elif key == "backspace":
                self.input = self.input[:-1]
            elif len(key) == 1:
                self.input += key
        elif self.dtype in (DialogType.SELECT, DialogType.SCOPE_PICKER):
            if key in ("j", "down"):
                self.cursor = min(self.cursor + 1, len(self.options) - 1)
            elif key in ("k", "up"):
                self.cursor = max(self.cursor - 1, 0)
            elif key == "enter":
                self._close(DialogResult(confirmed=True, selected=self.cursor))
            elif key == "esc":
                self._close(DialogResult(confirmed=False))
        elif self.dtype is DialogType.PERMISSION:
            if key in ("y", "Y"):
                self._close(DialogResult(confirmed=True))
            elif key in ("n", "N", "esc"):
                self._close(DialogResult(confirmed=False))
        return None

    # -- rendering --------------------------------------------------------

    def _content_lines(self) -> list[str]:
        lines = [self.title, _SEPARATOR * (_DIALOG_WIDTH - 4), ""]
        if self.message:
            lines.extend(self.message.split("\n"))
            lines.append("")

        if self.dtype is DialogType.CONFIRM:
            lines.append("[Y] Yes  [N] No")
        elif self.dtype is DialogType.INPUT:
            lines.append(self.input + "▍")
            lines.append("")
            lines.append("[Enter] Confirm  [Esc] Cancel")
        elif self.dtype in (DialogType.SELECT, DialogType.SCOPE_PICKER):
            for index, option in enumerate(self.options):
                marker = "● " if index == self.cursor else "○ "
                lines.append(marker + option.label)
                if option.description:
                    lines.append("  " + option.description)
            lines.append("")
            lines.append("[Enter] Select  [Esc] Cancel")
        elif self.dtype is DialogType.PERMISSION:
            lines.extend(_PERMISSION_TEXT)
        return lines

    def view(self) -> str:
        """Render the dialog centred in its area, or an empty string when hidden."""
        if not self.visible:
            return ""
        box = _boxed(self._content_lines())
        box_width = max(len(line) for line in box)
        x = max(0, (self.width - box_width) // 2)
        y = max(0, (self.height - len(box)) // 2)
        pad = " " * x
        return "\n" * y + "".join(f"{pad}{line}\n" for line in box)