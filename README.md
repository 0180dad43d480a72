# albertcore

The core of a keyboard-driven launcher. It covers the plugin management,
the remote control and the helper services of the launcher. It has no user
interface of its own.

## What is in it

- `albertcore.topologicalsort`: `topological_sort(graph)` orders a mapping of
  node to dependencies so that every node comes after the nodes it depends on.
  Nodes that are in a cycle, or that depend on a missing node, go into
  `error_set` with their unresolved dependencies.
- `albertcore.extensionregistry`: `Extension` (abstract `id`, `name`,
  `description`) and `ExtensionRegistry`. The registry's `register` and
  `deregister` raise `ValueError` or `KeyError` on an empty, duplicate or
  unknown id. `subscribe(on_added, on_removed)` returns an unsubscribe
  function.
- `albertcore.rankitem`: `Action`, the abstract `Item`, and `RankItem`.
  `RankItem` orders by score, then by shorter text, then by text.
- `albertcore.metadata`: `PluginMetaData` and `LoadType`.
  `check_iid(iid, major, minor)` raises `InterfaceError` for a missing,
  malformed or incompatible interface identifier of the form
  `org.albert.PluginInterface/<major>.<minor>`. `parse_metadata(iid, raw,
  locale)` builds the metadata, and `localized_value` prefers `key[<locale>]`,
  then `key[<language>]`, then `key`.
- `albertcore.plugin`: `PluginLoader` (abstract), `PluginProvider`, `Plugin`
  with `PluginState`, and `PluginError`. `Plugin.load(registry)` and
  `Plugin.unload(registry)` raise `PluginError` on failure. They register and
  deregister a plugin instance that is itself an `Extension`.
- `albertcore.pluginregistry`: `PluginRegistry`. It picks up every
  `PluginProvider` registered in an `ExtensionRegistry`. It drops plugins with
  cyclic or missing dependencies and assigns a load order. It loads enabled
  plugins, and it enables, disables, loads and unloads whole dependency chains.
  `confirm` and `notify` callables stand in for user dialogs.
- `albertcore.inputhistory`: `InputHistory`, a one-per-line history file.
  `next` and `prev` step through entries that contain a substring, ignoring
  case. Used as a context manager, it saves the file on exit.
- `albertcore.themefileparser` and `albertcore.iconlookup`:
  `ThemeFileParser` reads `index.theme` files. `IconLookup.theme_icon_path`
  resolves icon names through a theme and its `Inherits` chain, falls back to
  `hicolor` and then to the unsorted icon directories, and caches the results.
- `albertcore.rpcserver`: `RPCServer` listens on a Unix socket and answers
  `<command> <params>` messages. A `commands` command is always present.
  Creating a server raises `InstanceRunningError` if another server already
  answers on the socket. `send_message(message, socket_path)` is the client
  side.
- `albertcore.report`: `report(version, arguments)` returns diagnostic lines
  about Python, the OS, the locale, the working directory and the
  environment. `print_report` prints them.
- `albertcore.telemetry`: `Telemetry` builds an anonymous report with the
  version, the OS name and a hashed machine id. It sends one at most every
  three hours, through a `send` callable or an HTTP PUT to a given `url`.
- `albertcore.messagehandler`: `ColorHandler`, a `logging.Handler` that writes
  coloured lines.
- `albertcore.signalhandler`: `SignalHandler` turns SIGTERM, SIGINT, SIGHUP
  and SIGPIPE into one call of a quit callback.
- `albertcore.app`: `App`, the single application instance. It loads a
  frontend plugin, registers the plugin provider, serves the RPC commands
  `show`, `hide`, `toggle`, `settings`, `restart`, `quit` and `report`, and
  keeps the tray and telemetry settings. `run()` returns 0 on quit and -1 on
  restart.

## Installation

```
pip install .
pip install ".[test]"   # with test dependencies
```

## Command line

```
albertcore [-p DIRS] [-n] [-r] [command [params...]]
```

- `-p, --plugin-dirs DIRS`: extra plugin directories, separated by commas.
- `-n, --no-load`: do not load the enabled plugins.
- `-r, --report`: print the diagnostic report and quit.
- `-v, --version`, `-h, --help`.

If positional arguments are given, they are sent as one RPC command to the
instance that listens on `$XDG_CACHE_HOME/albert/ipc_socket`, and the reply is
printed:

```
albertcore commands
albertcore show some text
```

The exit status is 1 if no instance answers.

The command creates the cache, config and data directories under the XDG base
directories, moves a legacy `albert.conf` into `albert/config`, and merges the
legacy `applications_macos` and `applications_xdg` settings groups into
`applications`.

## Library use

```python
from albertcore.topologicalsort import topological_sort

result = topological_sort({1: {2}, 2: {3}, 3: set()})
print(result.sorted)      # [3, 2, 1]
print(result.error_set)   # {}
```

```python
from albertcore.inputhistory import InputHistory

with InputHistory("history.txt") as history:
    history.add("firefox")
    history.add("files")
    print(history.next("fi"))   # "files"
```

To run the app, pass `App` a `PluginProvider` whose loaders include a frontend
plugin. The frontend instance must have `is_visible()`, `set_visible(visible)`
and `set_input(text)`. Then call `run()`. Give a `socket_path` to make it
controllable through `albertcore <command>`.

## What it does not do

- It has no frontend, window, tray icon or global hotkey. The tray setting is
  only a stored flag.
- It ships no plugin loaders. When started from the command line, the plugin
  provider offers no plugins. With no frontend to load, `albertcore` without a
  command logs "Could not load any frontend." and exits with status 1.
  Launching the app needs a provider supplied through the library.
- Telemetry started by `App` has neither a URL nor a sender, so it sends
  nothing.

## Tests

```
pytest
```