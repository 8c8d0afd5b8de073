# plancktui

Building blocks for a terminal workspace that edits markdown files and runs
coding agents in tmux sessions. The package uses only the Python standard
library and needs Python 3.10 or newer. The tmux backend needs the `tmux`
program on the `PATH`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `plancktui.store`: `Store` keeps `Session` records in SQLite. Opening a
  store creates the directory and database, turns on WAL mode, drops tables
  from an older schema and adds any missing columns. It works as a context
  manager. Failures raise `StoreError`. Besides `save_session`,
  `get_session`, `list_sessions`, `list_active_sessions`,
  `update_session_status`, `update_session_title` and `delete_session`,
  `cleanup_old_sessions(older_than)` removes finished sessions that started
  before now minus a `timedelta`. `encode_args` and `decode_args` convert
  argument lists to and from JSON; an empty list decodes to `None`.
- `plancktui.tmux`: `TmuxBackend` runs each command in its own detached tmux
  session, named from a prefix, a hash of the working directory and a short
  session id. A background thread polls each session to notice when its
  command exits and to pick up the pane title. `launch_command`, `capture`,
  `render`, `write`, `resize`, `kill`, `status`, `title`, `exit_code` and
  `wait` work on a session handle; `list_tmux_sessions` and
  `reattach_session` find and take over sessions left from an earlier run.
  `attach_command` returns the command line to attach a terminal.
  Errors raise `TmuxError`. `shell_quote` and `quote_arg` build shell-safe
  command lines.
- `plancktui.textbuffer`: `TextBuffer` holds lines of text with a cursor and
  a selection: insertion, deletion, word jumps (`word_boundary_left`,
  `word_boundary_right`), `extend_selection`, `delete_selection` and
  `selected_text`. `wrap_line`, `build_visual_lines` and
  `cursor_visual_row` handle soft wrapping.
- `plancktui.editor`: `Editor` has a view mode and an edit mode
  (`EditorMode`). `handle_key` takes key names such as `"j"`, `"shift+left"`
  or `"ctrl+s"` and returns a `FileSaved` when the content should be
  written; `handle_mouse` scrolls and places the cursor. `view()` returns
  the panel as text, with the cursor and selection marked by ANSI escapes.
- `plancktui.filetree`: `build_tree` turns a flat list of `MarkdownFile`
  entries into `TreeNode`s, directories first; `flatten` lists the visible
  nodes.
- `plancktui.filelist`: `FileList` navigates the tree, scrolls, handles
  clicks (returning a `ClickAction`), and has a move mode in which `update`
  returns `MoveConfirmed` or `MoveCanceled`.
- `plancktui.dialog`: `Dialog` shows confirm, input, select, scope-picker
  and permission dialogs and passes a `DialogResult` to a callback.
- `plancktui.events`: `MouseEvent`, `MouseButton` and `MouseAction`.

## Example

```python
from datetime import datetime

from plancktui.store import Session, Store, encode_args

with Store("state/planck.db") as store:
    store.save_session(Session(
        id="session-1",
        file_path="/path/to/plan.md",
        status="running",
        started_at=datetime.now(),
        command="claude",
        args=encode_args(["--verbose"]),
    ))
    for session in store.list_active_sessions():
        print(session.id, session.status)
```

```python
from plancktui.dialog import Dialog

dialog = Dialog()
dialog.set_size(80, 24)
dialog.show_confirm("Delete", "Are you sure?", lambda result: print(result.confirmed))
dialog.handle_key("y")
```

## What it does not do

There is no command to run and no full-screen application: the components
take key names and `MouseEvent`s and return plain strings, and reading the
terminal and drawing the screen is left to the caller. The editor's view
mode shows the markdown as wrapped plain text, not styled output. Key
bindings are fixed in the code and are not read from any configuration.