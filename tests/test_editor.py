import pytest

from plancktui.editor import REVERSE, SELECTION, Editor, EditorMode, FileSaved
from plancktui.events import MouseAction, MouseButton, MouseEvent


def make_editor(content, width=80, height=40, edit=True):
    editor = Editor()
    editor.set_content("test.md", content)
    if edit:
        editor.enter_edit_mode()
    editor.set_size(width, height)
    editor.set_focused(True)
    return editor


@pytest.mark.parametrize("width", [0, 1, 2, 3, 4, 5, 6, 7, 10, 20])
def test_view_mode_small_width(width):
    editor = make_editor("This is a test line that is fairly long", edit=False)
    editor.set_size(width, 10)
    result = editor.view()
    assert result.startswith("test.md  [VIEW]")


@pytest.mark.parametrize("width", [0, 1, 2, 3, 4, 5, 6, 7, 10, 20])
def test_edit_mode_small_width(width):
    editor = make_editor("This is a test line that is fairly long")
    editor.set_size(width, 10)
    result = editor.view()
    assert result.startswith("test.md  [EDIT]")


@pytest.mark.parametrize("width,cursor_col", [(0, 0), (1, 0), (5, 3), (10, 5), (10, 15)])
def test_edit_mode_cursor_positions(width, cursor_col):
    editor = make_editor("This is a test line")
    editor.buffer.cursor_col = cursor_col
    editor.set_size(width, 10)
    assert f"Ln 1, Col {cursor_col + 1}" in editor.view()


def test_zero_size_renders():
    editor = Editor()
    editor.set_content("test.md", "# Test\n\nSome content here")
    assert "# Test" in editor.view()
    editor.enter_edit_mode()
    assert "Ln 1, Col 1" in editor.view()


def test_long_lines_wrap_instead_of_truncating():
    long_line = (
        "This is a very long line that should be wrapped when the width is small. "
        "It contains a lot of text to ensure wrapping happens properly."
    )
    editor = make_editor(long_line, width=40, height=10, edit=False)
    assert editor.view() != ""
    editor.enter_edit_mode()
    result = editor.view()
    assert result != ""
    assert "..." not in result
    assert " · " in result


def test_wrapped_cursor_navigation():
    editor = Editor()
    editor.set_content("test.md", "one two three four five six seven eight nine ten")
    editor.enter_edit_mode()
    editor.set_size(30, 20)
    assert (editor.buffer.cursor_row, editor.buffer.cursor_col) == (0, 0)

    editor.move_cursor_down_visual()
    assert editor.buffer.cursor_row == 0
    assert editor.buffer.cursor_col > 0

    editor.move_cursor_up_visual()
    assert editor.buffer.cursor_col == 0


@pytest.mark.parametrize("width,height", [(0, 0), (-1, -1), (100, 50), (1, 1)])
def test_set_size_renders(width, height):
    editor = Editor()
    editor.set_size(width, height)
    assert "[VIEW]" in editor.view()


def test_visible_lines_and_wrap_width():
    editor = make_editor("hello", width=30, height=20)
    assert editor.visible_lines() == 16
    assert editor.edit_max_line_width() == 20
    editor.exit_edit_mode()
    assert editor.visible_lines() == 17


def test_set_content_clears_selection():
    editor = make_editor("hello")
    editor.buffer.has_selection = True
    editor.set_content("new.md", "new content")
    assert editor.buffer.has_selection is False
    assert editor.mode is EditorMode.VIEW
    assert editor.get_content() == "new content"


def test_render_with_selection_uses_selection_style():
    editor = make_editor("hello\nworld\nfoo bar baz", height=20)
    buf = editor.buffer
    buf.sel_anchor_row, buf.sel_anchor_col = 0, 2
    buf.sel_end_row, buf.sel_end_col = 1, 3
    buf.has_selection = True
    result = editor.view()
    assert SELECTION + "llo" in result


def test_render_with_selection_wrapped_lines():
    editor = make_editor("one two three four five six seven eight nine ten", width=30, height=20)
    buf = editor.buffer
    buf.sel_anchor_row, buf.sel_anchor_col = 0, 4
    buf.sel_end_row, buf.sel_end_col = 0, 20
    buf.has_selection = True
    assert SELECTION in editor.view()


def test_cursor_rendered_reversed():
    editor = make_editor("abc")
    editor.buffer.cursor_col = 1
    assert "a" + REVERSE + "b" in editor.view()


def test_typing_replaces_selection_via_keys():
    editor = make_editor("hello world")
    editor.buffer.cursor_col = 2
    for _ in range(3):
        editor.handle_key("shift+right")
    assert editor.buffer.selected_text() == "llo"
    editor.handle_key("X")
    assert editor.get_content() == "heX world"
    assert editor.modified is True


def test_shift_home_selects_to_start():
    editor = make_editor("hello world")
    editor.buffer.cursor_col = 5
    editor.handle_key("shift+home")
    assert editor.buffer.selected_text() == "hello"


def test_shift_end_selects_to_end():
    editor = make_editor("hello world")
    editor.buffer.cursor_col = 6
    editor.handle_key("shift+end")
    assert editor.buffer.selected_text() == "world"


def test_alt_right_jumps_words():
    editor = make_editor("hello world foo")
    cols = []
    for _ in range(3):
        editor.handle_key("right", alt=True)
        cols.append(editor.buffer.cursor_col)
    assert cols == [6, 12, 15]


def test_alt_left_jumps_words():
    editor = make_editor("hello world foo")
    editor.buffer.cursor_col = 15
    cols = []
    for _ in range(3):
        editor.handle_key("left", alt=True)
        cols.append(editor.buffer.cursor_col)
    assert cols == [12, 6, 0]


def test_alt_shift_right_selects_word():
    editor = make_editor("hello world")
    editor.handle_key("shift+right", alt=True)
    assert editor.buffer.selected_text() == "hello "


def test_plain_arrow_clears_selection():
    editor = make_editor("hello")
    editor.handle_key("shift+right")
    assert editor.buffer.has_selection is True
    editor.handle_key("right")
    assert editor.buffer.has_selection is False
    assert editor.buffer.cursor_col == 2


def test_enter_backspace_delete_tab():
    editor = make_editor("abcd")
    editor.buffer.cursor_col = 2
    editor.handle_key("enter")
    assert editor.get_content() == "ab\ncd"
    assert (editor.buffer.cursor_row, editor.buffer.cursor_col) == (1, 0)
    editor.handle_key("backspace")
    assert editor.get_content() == "abcd"
    editor.handle_key("delete")
    assert editor.get_content() == "abd"
    editor.handle_key("tab")
    assert editor.get_content() == "ab    d"
    editor.handle_key("space")
    assert editor.get_content() == "ab     d"


def test_escape_saves_when_modified():
    editor = make_editor("hello")
    editor.handle_key("end")
    editor.handle_key("!")
    result = editor.handle_key("esc")
    assert result == FileSaved("test.md", "hello!")
    assert editor.mode is EditorMode.VIEW
    assert editor.content == "hello!"


def test_escape_without_changes_returns_nothing():
    editor = make_editor("hello")
    assert editor.handle_key("esc") is None
    assert editor.mode is EditorMode.VIEW


def test_ctrl_s_saves_and_stays_in_edit_mode():
    editor = make_editor("hello")
    editor.handle_key("x")
    assert editor.handle_key("ctrl+s") == FileSaved("test.md", "xhello")
    assert editor.mode is EditorMode.EDIT


def test_unfocused_keys_ignored():
    editor = make_editor("hello")
    editor.set_focused(False)
    assert editor.handle_key("x") is None
    assert editor.get_content() == "hello"


def test_view_mode_key_scrolling():
    content = "\n".join(f"line {n}" for n in range(30))
    editor = make_editor(content, height=10, edit=False)
    editor.handle_key("j")
    assert editor.view_offset == 1
    editor.handle_key("G")
    assert editor.view_offset == 23
    editor.handle_key("j")
    assert editor.view_offset == 23
    editor.handle_key("g")
    assert editor.view_offset == 0
    editor.handle_key("k")
    assert editor.view_offset == 0


def test_view_mode_edit_key_enters_edit_mode():
    editor = make_editor("hello", edit=False)
    editor.handle_key("e")
    assert editor.mode is EditorMode.EDIT
    assert editor.buffer.lines == ["hello"]


def test_scroll_by_clamps():
    content = "\n".join(f"line {n}" for n in range(30))
    editor = make_editor(content, height=10, edit=False)
    editor.scroll_by(5)
    assert editor.view_offset == 5
    editor.scroll_by(-100)
    assert editor.view_offset == 0
    editor.scroll_by(1000)
    assert editor.view_offset == 23


def test_wheel_scrolls():
    content = "\n".join(f"line {n}" for n in range(30))
    editor = make_editor(content, height=10, edit=False)
    editor.handle_mouse(MouseEvent(x=5, y=5, button=MouseButton.WHEEL_DOWN))
    assert editor.view_offset == 3
    editor.handle_mouse(MouseEvent(x=5, y=5, button=MouseButton.WHEEL_UP))
    assert editor.view_offset == 0


def test_click_places_cursor_and_clears_selection():
    editor = make_editor("hello\nworld")
    editor.handle_key("shift+right")
    editor.handle_mouse(MouseEvent(x=10, y=3, button=MouseButton.LEFT, action=MouseAction.PRESS))
    assert (editor.buffer.cursor_row, editor.buffer.cursor_col) == (1, 3)
    assert editor.buffer.has_selection is False


def test_shift_click_selects_range():
    editor = make_editor("hello world\nsecond line")
    editor.buffer.cursor_col = 3
    editor.handle_mouse(MouseEvent(x=12, y=3, button=MouseButton.LEFT, shift=True))
    assert editor.buffer.selected_text() == "lo world\nsecon"


def test_click_in_view_mode_enters_edit_mode():
    editor = make_editor("a\nb\nc", height=20, edit=False)
    editor.handle_mouse(MouseEvent(x=5, y=3, button=MouseButton.LEFT))
    assert editor.mode is EditorMode.EDIT
    assert (editor.buffer.cursor_row, editor.buffer.cursor_col) == (1, 0)


def test_click_in_header_ignored_in_edit_mode():
    editor = make_editor("hello\nworld")
    editor.buffer.cursor_col = 4
    editor.handle_mouse(MouseEvent(x=10, y=1, button=MouseButton.LEFT))
    assert (editor.buffer.cursor_row, editor.buffer.cursor_col) == (0, 4)


def test_exit_edit_mode_keeps_edits_and_clear_modified():
    editor = make_editor("hello")
    editor.handle_key("x")
    editor.exit_edit_mode()
    assert editor.get_content() == "xhello"
    assert editor.modified is True
    editor.clear_modified()
    assert editor.modified is False


def test_empty_content_view():
    editor = make_editor("", height=10, edit=False)
    assert "No content" in editor.view()
    assert editor.line_count == 0