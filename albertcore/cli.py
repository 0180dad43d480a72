"""Command line entry point: launch the app or control a running instance."""

from __future__ import annotations

import argparse
import configparser
import logging
import os
import sys
from collections.abc import Iterator, MutableMapping, Sequence
from pathlib import Path
from typing import Any

from .app import App
from .messagehandler import ColorHandler
from .plugin import PluginProvider
from .report import print_report
from .rpcserver import InstanceRunningError, send_message

log = logging.getLogger("albert")

VERSION = "0.1.0"
APP_NAME = "albert"
SOCKET_NAME = "ipc_socket"
LEGACY_CONFIG_NAME = "albert.conf"
CONFIG_NAME = "config"
STATE_NAME = "state"
_GENERAL = "General"
_LEGACY_SETTINGS_GROUPS = ("applications_macos", "applications_xdg")
_NEW_SETTINGS_GROUP = "applications"

EXIT_INSTANCE_RUNNING = 2


class _IniSettings(MutableMapping[str, Any]):
    """Settings kept in an INI file, addressed by ``group/key`` paths.

    Keys without a group live in the ``General`` section. Booleans are
    stored as ``true``/``false``. Every change is written to disk.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._parser = configparser.ConfigParser(interpolation=None, strict=False)
        self._parser.optionxform = str  # type: ignore[assignment]
        if path.exists():
            self._parser.read(path, encoding="utf-8")

    @staticmethod
    def _split(key: str) -> tuple[str, str]:
        group, _, name = key.rpartition("/")
        return group or _GENERAL, name

    @staticmethod
    def _decode(value: str) -> Any:
        if value == "true":
            return True
        if value == "false":
            return False
        return value

    @staticmethod
    def _encode(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            self._parser.write(f)
        tmp.replace(self.path)

    def __getitem__(self, key: str) -> Any:
        section, name = self._split(key)
        try:
            return self._decode(self._parser.get(section, name, raw=True))
        except (configparser.NoSectionError, configparser.NoOptionError):
            raise KeyError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        section, name = self._split(key)
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, name, self._encode(value))
        self._save()

    def __delitem__(self, key: str) -> None:
        section, name = self._split(key)
        if not self._parser.has_section(section) or not self._parser.remove_option(section, name):
            raise KeyError(key)
        if not self._parser.options(section):
            self._parser.remove_section(section)
        self._save()

    def __iter__(self) -> Iterator[str]:
        keys = []
        for section in self._parser.sections():
            for name in self._parser.options(section):
                keys.append(name if section == _GENERAL else f"{section}/{name}")
        return iter(keys)

    def __len__(self) -> int:
        return sum(len(self._parser.options(s)) for s in self._parser.sections())


def _split_dirs(value: str) -> list[str]:
    return [part for part in value.split(",") if part]


def build_parser() -> argparse.ArgumentParser:
    """The parser of the command line options."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Launch Albert or control a running instance.",
    )
    parser.add_argument(
        "-p", "--plugin-dirs",
        type=_split_dirs,
        default=[],
        metavar="directories",
        help="Set the plugin dirs to use. Comma separated.",
    )
    parser.add_argument(
        "-r", "--report", action="store_true", help="Print report and quit."
    )
    parser.add_argument(
        "-n", "--no-load", action="store_true", help="Do not load enabled plugins."
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"{APP_NAME} {VERSION}"
    )
    parser.add_argument(
        "command",
        nargs="*",
        metavar="command",
        help="RPC command to send to the running instance. [command [params...]]",
    )
    return parser


def migrate_legacy_settings(settings: MutableMapping[str, Any]) -> list[str]:
    """Merge the old per-platform application settings into one group.

    Direct keys of the legacy groups move to ``applications/<key>``.
    Returns the keys that were written.
    """
    moved = []
    for old_group in _LEGACY_SETTINGS_GROUPS:
        prefix = f"{old_group}/"
        child_keys = [
            key[len(prefix):]
            for key in list(settings)
            if key.startswith(prefix) and "/" not in key[len(prefix):]
        ]
        for child_key in child_keys:
            old_key = prefix + child_key
            new_key = f"{_NEW_SETTINGS_GROUP}/{child_key}"
            settings[new_key] = settings[old_key]
            del settings[old_key]
            moved.append(new_key)
    return moved


def _xdg_home(variable: str, fallback: str) -> Path:
    value = os.environ.get(variable)
    return Path(value) if value else Path.home() / fallback


def _locations() -> tuple[Path, Path, Path]:
    return (
        _xdg_home("XDG_CACHE_HOME", ".cache") / APP_NAME,
        _xdg_home("XDG_CONFIG_HOME", ".config") / APP_NAME,
        _xdg_home("XDG_DATA_HOME", ".local/share") / APP_NAME,
    )


def _create_app_dirs(paths: Sequence[Path]) -> None:
    for path in paths:
        try:
            path.mkdir(parents=True, exist_ok=True)
            os.chmod(path, 0o700)
        except OSError as e:
            raise RuntimeError(f"Failed creating config dir at: {path}") from e


def _move_legacy_config_file(config_dir: Path) -> None:
    old = _xdg_home("XDG_CONFIG_HOME", ".config") / LEGACY_CONFIG_NAME
    if not old.exists():
        return
    new = config_dir / CONFIG_NAME
    try:
        old.rename(new)
    except OSError as e:
        raise RuntimeError(
            "Failed to move config file to new location. "
            f"Please move the file at {old} to {new} manually."
        ) from e
    log.info("Config file successfully moved to new location.")


def _plugin_search_paths(additional: Sequence[str]) -> list[Path]:
    candidates = [Path(p) for p in additional]
    candidates.append(Path("../lib"))
    home = Path.home()
    install = []
    if os.environ.get("container") == "flatpak":
        install.append(Path("/app/lib"))
    install += [
        home / ".local/lib",
        home / ".local/lib64",
        Path("/usr/local/lib"),
        Path("/usr/local/lib64"),
        Path("/usr/lib"),
        Path("/usr/lib64"),
    ]
    candidates += [p / APP_NAME for p in install]

    unique: list[Path] = []
    for candidate in candidates:
        if candidate.is_dir():
            resolved = candidate.resolve()
            if resolved not in unique:
                unique.append(resolved)
    return unique


def _default_provider(plugin_dirs: Sequence[str]) -> PluginProvider:
    paths = _plugin_search_paths(plugin_dirs)
    log.info("Searching plugins in %s", ", ".join(str(p) for p in paths))
    return PluginProvider("pluginprovider", "Plugins", "Loads plugins")


def _install_log_handler() -> None:
    if not any(isinstance(h, ColorHandler) for h in log.handlers):
        log.addHandler(ColorHandler())
    log.setLevel(logging.INFO)


def main(argv: Sequence[str] | None = None) -> int:
    """Launch the app, or send a command to the running instance."""
    args = build_parser().parse_args(argv)
    _install_log_handler()

    cache_dir, config_dir, data_dir = _locations()
    try:
        _create_app_dirs((cache_dir, config_dir, data_dir))
        _move_legacy_config_file(config_dir)
    except RuntimeError as e:
        log.critical("%s", e)
        return 1

    settings = _IniSettings(config_dir / CONFIG_NAME)
    migrate_legacy_settings(settings)
    socket_path = cache_dir / SOCKET_NAME

    if args.command:
        try:
            reply = send_message(" ".join(args.command), socket_path)
        except ConnectionError:
            print("Failed to connect to albert.")
            return 1
        except TimeoutError:
            print("Read timed out. Albert busy?")
            return 0
        print(reply)
        return 0

    if args.report:
        print_report(VERSION, sys.argv)
        return 0

    state = _IniSettings(cache_dir / STATE_NAME)
    app = App(
        _default_provider(args.plugin_dirs),
        version=VERSION,
        settings=settings,
        state=state,
        load_enabled=not args.no_load,
        socket_path=str(socket_path),
    )
    try:
        return_value = app.run()
    except InstanceRunningError as e:
        log.info("%s", e)
        return EXIT_INSTANCE_RUNNING
    except RuntimeError as e:
        log.critical("%s", e)
        return 1
    finally:
        app.finalize()

    log.info("Bye.")
    return return_value


if __name__ == "__main__":
    sys.exit(main())