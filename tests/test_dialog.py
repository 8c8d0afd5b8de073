import pytest

from plancktui.dialog import Dialog, DialogOption, DialogResult, DialogType


def make_dialog():
    dialog = Dialog()
    dialog.set_size(80, 24)
    return dialog


class Recorder:
    def __init__(self):
        self.results = []

    def __call__(self, result):
        self.results.append(result)

    @property
    def last(self):
        return self.results[-1]


def test_new_dialog_not_visible():
    dialog = Dialog()
    assert dialog.is_visible() is False


def test_show_confirm_and_yes():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_confirm("Test Title", "Are you sure?", rec)
    assert dialog.is_visible() is True
    view = dialog.view()
    assert "Test Title" in view
    assert "Are you sure?" in view
    assert "[Y] Yes  [N] No" in view

    dialog.handle_key("y")
    assert len(rec.results) == 1
    assert rec.last.confirmed is True
    assert dialog.is_visible() is False


def test_show_confirm_cancel():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_confirm("Test", "Message", rec)
    dialog.handle_key("n")
    assert len(rec.results) == 1
    assert rec.last.confirmed is False


@pytest.mark.parametrize("key", ["Y", "enter"])
def test_confirm_other_accept_keys(key):
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_confirm("T", "M", rec)
    dialog.handle_key(key)
    assert rec.last.confirmed is True


def test_show_input():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_input("Enter Name", "Name:", rec)
    assert dialog.is_visible() is True
    dialog.handle_key("h")
    dialog.handle_key("i")
    assert "hi▍" in dialog.view()
    dialog.handle_key("enter")
    assert rec.last.confirmed is True
    assert rec.last.input == "hi"


def test_show_input_backspace():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_input("Test", "Prompt:", rec)
    dialog.handle_key("a")
    dialog.handle_key("b")
    dialog.handle_key("backspace")
    dialog.handle_key("enter")
    assert rec.last.input == "a"


def test_input_ignores_multi_char_keys_and_empty_backspace():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_input("Test", "Prompt:", rec)
    dialog.handle_key("backspace")
    dialog.handle_key("ctrl+x")
    dialog.handle_key("z")
    dialog.handle_key("enter")
    assert rec.last.input == "z"


def test_show_select():
    dialog = make_dialog()
    rec = Recorder()
    options = [
        DialogOption("Option A", "First option"),
        DialogOption("Option B", "Second option"),
        DialogOption("Option C", "Third option"),
    ]
    dialog.show_select("Choose", options, rec)
    assert dialog.is_visible() is True
    dialog.handle_key("j")
    assert "● Option B" in dialog.view()
    dialog.handle_key("enter")
    assert rec.last == DialogResult(confirmed=True, selected=1)


def test_select_navigation_clamps():
    dialog = make_dialog()
    rec = Recorder()
    options = [DialogOption("A"), DialogOption("B"), DialogOption("C")]
    dialog.show_select("Test", options, rec)
    for _ in range(4):
        dialog.handle_key("j")
    dialog.handle_key("enter")
    assert rec.last.selected == 2

    dialog.show_select("Test", options, rec)
    dialog.handle_key("k")
    dialog.handle_key("enter")
    assert rec.last.selected == 0


def test_show_scope_picker():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_scope_picker(3, 2, 7, rec)
    assert dialog.is_visible() is True
    assert dialog.dtype is DialogType.SCOPE_PICKER
    view = dialog.view()
    assert "Execute Plan" in view
    assert "Current phase (3 tasks)" in view
    assert "Entire plan (2 phases, 7 tasks)" in view
    dialog.handle_key("j")
    dialog.handle_key("enter")
    assert rec.last.selected == 1


def test_show_permission():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_permission_dialog(rec)
    assert dialog.is_visible() is True
    view = dialog.view()
    assert "Pre-approve Permissions" in view
    assert "[Y] Approve & Start  [N] Cancel" in view
    dialog.handle_key("Y")
    assert rec.last.confirmed is True


def test_permission_ignores_enter():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_permission_dialog(rec)
    dialog.handle_key("enter")
    assert rec.results == []
    assert dialog.is_visible() is True


def test_hide():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_confirm("Test", "Message", rec)
    assert dialog.is_visible() is True
    dialog.hide()
    assert dialog.is_visible() is False
    assert rec.results == []


def test_view_when_hidden():
    dialog = make_dialog()
    assert dialog.view() == ""


def test_update_when_hidden():
    dialog = Dialog()
    rec = Recorder()
    dialog.show_confirm("Test", "Message", rec)
    dialog.hide()
    assert dialog.handle_key("y") is None
    assert rec.results == []


def test_esc_cancels_select():
    dialog = make_dialog()
    rec = Recorder()
    dialog.show_select("Test", [DialogOption("A")], rec)
    dialog.handle_key("esc")
    assert len(rec.results) == 1
    assert rec.last.confirmed is False


def test_view_is_centered():
    dialog = make_dialog()
    dialog.show_confirm("Title", "Msg", None)
    lines = dialog.view().split("\n")
    box_lines = [line for line in lines if line.strip()]
    first = box_lines[0]
    indent = len(first) - len(first.lstrip(" "))
    assert indent == (80 - len(first.strip())) // 2
    leading_blank = 0
    for line in lines:
        if line:
            break
        leading_blank += 1
    assert leading_blank == (24 - len(box_lines)) // 2


def test_close_without_callback():
    dialog = make_dialog()
    dialog.show_confirm("Title", "Msg", None)
    dialog.handle_key("y")
    assert dialog.is_visible() is False