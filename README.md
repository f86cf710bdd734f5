# frontpanel

The non-graphical core of a desktop front panel: the records that describe
its controls, subpanels and desk switch, the `panelrc` configuration format
that stores them, and the pipe protocol a window-manager module uses to talk
to its window manager.

## What is inside

- `frontpanel.records` – the panel's data model. `ControlRecord`,
  `SubpanelRecord`, `DeskRecord` and `PanelSettings` hold one item each.
  `ControlTable` keeps controls in registration order, `SubpanelTable` keeps
  the most recently registered subpanel first, and both look records up by
  id with `lookup`. `DeskTable` holds at most ten desks by default; one more
  raises `TableFullError`.
- `frontpanel.scanner` – the tokenizer behind the configuration format.
  `Scanner` splits text into words, braces and commas, honours quoted
  strings with backslash escapes, drops everything from a `!` to the end of
  its line, and expands `$(NAME)` from the environment mapping it is given
  (or `os.environ` when none is). `match` records mismatches in
  `Scanner.errors` instead of raising.
- `frontpanel.panelrc` – reads and writes `panelrc` files.
  `parse_panelrc` and `read_panelrc` build a `PanelConfig` (settings,
  controls, subpanels, desks and collected `errors`) from text or a file;
  a token other than `PANEL`, `CONTROL`, `SWITCH` or `SUBPANEL` at the top
  level raises `ValueError`. `format_panelrc` and `write_panelrc` turn a
  configuration back into text.
- `frontpanel.protocol` – the module side of the window-manager pipe
  protocol: `read_packet` decodes a `Packet` from a binary stream (returning
  `None` at end of stream and raising `ValueError` for an oversized packet),
  `encode_text` frames a command, `parse_module_args` reads the module's
  command line into `ModuleArgs`, and `ModuleConnection` wraps the two pipe
  ends with `send_text`, `send_pipe`, `set_message_mask`, `send_quit`,
  `config_lines` and friends. `MessageType` and `ExtendedMessageType` name
  the packet types.
- `frontpanel.wmclient` – `WindowManagerLink` ties a `ModuleConnection` to
  the panel: `start` subscribes to messages, learns the page grid with
  `desktop_size_from_config` (3×3 unless a `DesktopSize` line says
  otherwise) and registers the panel's window style; `poll` and
  `handle_packet` turn a page-change packet into a desk index with
  `desk_index_for_viewport` and pass it to the `on_new_page` callback.

## The panelrc format

```
! comments start with an exclamation mark
PANEL {
	LOCK xlock -nolock
	SUBPANEL_OFFSET 0, 0
	PIXMAP_PATH $(HOME)/.panel/icons
	ANIMATED_SUBPANELS True
}

SWITCH {One,Two,Three,Four}

SUBPANEL Tools {
	LABEL Personal Tools
	CONTAINER_NAME Editor
}

CONTROL Editor {
	TYPE clock
	LABEL Text Editor
	CONTAINER_NAME Left
	CONTAINER_TYPE BOX
	ICON editor.xpm
	PUSH_ACTION xedit
}
```

`TYPE` may be `clock`, `biff` or `blank`; any other value leaves the
control an icon. `CONTAINER_TYPE` is `BOX` or `SUBPANEL`. Multi-word values
of `LOCK`, `LABEL` and `PUSH_ACTION` run until the next reserved word,
brace or comma, so quote a value that contains one.

When a desk grid is passed to `parse_panelrc` or `read_panelrc`, the
`SWITCH` block yields one desk per page of that grid: names in the file
label the first desks and the rest are numbered from their position.
Without a grid, the block yields one desk per name.

## Using it

```python
from frontpanel.panelrc import read_panelrc, format_panelrc

config = read_panelrc("panelrc", None, {"HOME": "/home/example"})
print(format_panelrc(config))
```

```python
from frontpanel.wmclient import desk_index_for_viewport

# Viewport at the second page of the top row on a 3-column desk grid.
desk = desk_index_for_viewport(1024, 0, 1024, 768, 3)  # 1
```

## What it does not do

There is no graphical panel here and no command to start one: nothing draws
controls, subpanels or the desk switch, runs push actions, or moves the
window manager to another page. The package holds the data, reads and
writes the configuration, and speaks the module pipe protocol; a program
that shows a panel is left to build on it.

## Tests

The test suite uses pytest and is installed with the `test` extra.