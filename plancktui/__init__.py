"""Terminal workspace components: session store, tmux backend, text editor, file tree and dialogs."""

__version__ = "0.1.0"

__all__ = [
    "dialog",
    "editor",
    "events",
    "filelist",
    "filetree",
    "store",
    "textbuffer",
    "tmux",
]