"""The application: frontend, plugins, remote control and settings."""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from collections.abc import Callable, MutableMapping
from typing import Any, ClassVar, Protocol, runtime_checkable

from .extensionregistry import ExtensionRegistry
from .plugin import PluginError, PluginLoader, PluginProvider
from .pluginregistry import PluginRegistry
from .report import report
from .rpcserver import RPCServer
from .signalhandler import SignalHandler
from .telemetry import Telemetry

log = logging.getLogger("albert")

STATE_LAST_USED_VERSION = "last_used_version"
CFG_FRONTEND_ID = "frontend"
DEF_FRONTEND_ID = "widgetsboxmodel"
CFG_SHOWTRAY = "showTray"
DEF_SHOWTRAY = True
CFG_TELEMETRY = "telemetry"

EXIT_RESTART = -1


@runtime_checkable
class Frontend(Protocol):
    """What the app needs from a frontend plugin instance."""

    def is_visible(self) -> bool: ...

    def set_visible(self, visible: bool) -> None: ...

    def set_input(self, text: str) -> None: ...


def _decline(text: str) -> bool:
    return False


def _log_notice(text: str) -> None:
    log.info("%s", text)


def _minor_section(version: str) -> list[str]:
    return version.split(".")[1:2]


class App:
    """The single application instance.

    ``notify`` shows a message to the user, ``confirm`` asks a yes/no
    question and ``on_show_settings`` opens the settings for a plugin id.
    """

    _instance: ClassVar[App | None] = None

    def __init__(
        self,
        provider: PluginProvider,
        *,
        version: str = "",
        settings: MutableMapping[str, Any] | None = None,
        state: MutableMapping[str, Any] | None = None,
        load_enabled: bool = True,
        socket_path: str | None = None,
        notify: Callable[[str], None] | None = None,
        confirm: Callable[[str], bool] | None = None,
        on_show_settings: Callable[[str], None] | None = None,
        handle_signals: bool = True,
    ) -> None:
        if App._instance is not None:
            raise RuntimeError("No multiple app instances allowed")
        App._instance = self

        self.provider = provider
        self.version = version
        self.settings: MutableMapping[str, Any] = settings if settings is not None else {}
        self.state: MutableMapping[str, Any] = state if state is not None else {}
        self.socket_path = socket_path
        self.handle_signals = handle_signals
        self._notify = notify or _log_notice
        self._confirm = confirm or _decline
        self._on_show_settings = on_show_settings

        self.extension_registry = ExtensionRegistry()
        self.plugin_registry = PluginRegistry(
            self.extension_registry,
            load_enabled,
            settings=self.settings,
            confirm=self._confirm,
            notify=self._notify,
        )

        self._frontend: Frontend | None = None
        self._frontend_loader: PluginLoader | None = None
        self._tray_enabled = False
        self._telemetry: Telemetry | None = None
        self._provider_registered = False
        self._finalized = False
        self._exit_requested = threading.Event()
        self._exit_code = 0

    @classmethod
    def instance(cls) -> App | None:
        return cls._instance

    # Lifecycle

    def initialize(self) -> None:
        """Load the frontend, apply the settings and register the plugins."""
        self._load_any_frontend()
        if self.settings.get(CFG_SHOWTRAY, DEF_SHOWTRAY):
            self._tray_enabled = True
        self.notify_version_change(self.state.get(STATE_LAST_USED_VERSION), self.version)
        self._init_telemetry()
        self.extension_registry.register(self.provider)
        self._provider_registered = True

    def finalize(self) -> None:
        """Unload plugins and the frontend. Safe to call more than once."""
        if self._finalized:
            return
        self._finalized = True
        if self._telemetry is not None:
            self._telemetry.stop()
        if self._provider_registered:
            self.extension_registry.deregister(self.provider)
            self._provider_registered = False
        if self._frontend_loader is not None:
            try:
                self._frontend_loader.unload()
            except Exception as e:
                log.warning("%s", e)
        if App._instance is self:
            App._instance = None

    def run(self) -> int:
        """Run until quit or restart is requested. Returns the exit code.

        The exit code is -1 if a restart was requested.
        """
        with contextlib.ExitStack() as stack:
            server = None
            if self.socket_path is not None:
                server = stack.enter_context(RPCServer(self.socket_path))
            try:
                self.initialize()
                if server is not None:
                    server.set_commands(self.rpc_commands())
                    threading.Thread(
                        target=server.serve_forever, name="rpc", daemon=True
                    ).start()
                if self.handle_signals:
                    stack.enter_context(SignalHandler(lambda signum: self.quit()))
                while not self._exit_requested.wait(0.05):
                    pass
            finally:
                stack.close()
                self.finalize()
        log.info("Bye.")
        return self._exit_code

    # Frontend

    def _load_frontend(self, loader: PluginLoader) -> None:
        loader.load()
        instance = loader.create_instance()
        if instance is None:
            raise PluginError("Plugin loader returned null instance")
        if not isinstance(instance, Frontend):
            raise PluginError(
                f"Failed casting Plugin instance to Frontend: {loader.metadata.id}"
            )
        self._frontend = instance
        self._frontend_loader = loader

    def _load_any_frontend(self) -> None:
        candidates = self.provider.frontend_plugins()
        configured = self.settings.get(CFG_FRONTEND_ID, DEF_FRONTEND_ID)
        log.debug("Try loading the configured frontend '%s'.", configured)

        match = next((c for c in candidates if c.metadata.id == configured), None)
        if match is None:
            log.warning("Configured frontend plugin '%s' does not exist.", configured)
        else:
            try:
                self._load_frontend(match)
                return
            except Exception as e:
                log.warning("Loading configured frontend plugin '%s' failed: %s.", configured, e)
                candidates.remove(match)

        for loader in candidates:
            log.debug("Try loading frontend plugin '%s'.", loader.metadata.id)
            try:
                self._load_frontend(loader)
            except Exception:
                log.warning("Failed loading frontend plugin '%s'.", loader.metadata.id)
                continue
            log.info("Using '%s' as fallback.", loader.metadata.id)
            return

        raise RuntimeError("Could not load any frontend.")

    @property
    def frontend(self) -> Frontend | None:
        return self._frontend

    @property
    def current_frontend(self) -> str:
        return self._frontend_loader.metadata.name if self._frontend_loader else ""

    def available_frontends(self) -> list[str]:
        return [loader.metadata.name for loader in self.provider.frontend_plugins()]

    def set_frontend(self, index: int) -> None:
        """Configure the frontend to use after the next restart."""
        loader = self.provider.frontend_plugins()[index]
        self.settings[CFG_FRONTEND_ID] = loader.metadata.id
        if self._confirm(
            "Changing the frontend requires a restart. Do you want to restart Albert?"
        ):
            self.restart()

    def _require_frontend(self) -> Frontend:
        if self._frontend is None:
            raise RuntimeError("No frontend loaded")
        return self._frontend

    def show(self, text: str | None = None) -> None:
        frontend = self._require_frontend()
        if text is not None:
            frontend.set_input(text)
        frontend.set_visible(True)

    def hide(self) -> None:
        self._require_frontend().set_visible(False)

    def toggle(self) -> None:
        frontend = self._require_frontend()
        frontend.set_visible(not frontend.is_visible())

    def show_settings(self, plugin_id: str = "") -> None:
        self.hide()
        if self._on_show_settings is not None:
            self._on_show_settings(plugin_id)

    # Exit

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested.is_set()

    @property
    def exit_code(self) -> int:
        return self._exit_code

    def restart(self) -> None:
        self._exit_code = EXIT_RESTART
        self._exit_requested.set()

    def quit(self) -> None:
        self._exit_code = 0
        self._exit_requested.set()

    # Remote control

    def rpc_commands(self) -> dict[str, Callable[[str], str]]:
        """Commands offered to other processes through the RPC server."""

        def show(text: str) -> str:
            self.show(text)
            return "Albert set visible."

        def hide(_: str) -> str:
            self.hide()
            return "Albert set hidden."

        def toggle(_: str) -> str:
            self.toggle()
            return "Albert visibility toggled."

        def settings(text: str) -> str:
            self.show_settings(text)
            return "Settings opened,"

        def restart(_: str) -> str:
            self.restart()
            return "Triggered restart."

        def quit_(_: str) -> str:
            self.quit()
            return "Triggered quit."

        def report_(_: str) -> str:
            return "\n".join(report(self.version, sys.argv))

        return {
            "show": show,
            "hide": hide,
            "toggle": toggle,
            "settings": settings,
            "restart": restart,
            "quit": quit_,
            "report": report_,
        }

    # Settings

    @property
    def tray_enabled(self) -> bool:
        return self._tray_enabled

    def set_tray_enabled(self, enable: bool) -> None:
        if bool(enable) == self._tray_enabled:
            return
        self._tray_enabled = bool(enable)
        self.settings[CFG_SHOWTRAY] = bool(enable)

    def _init_telemetry(self) -> None:
        if CFG_TELEMETRY not in self.settings:
            text = (
                "Albert collects anonymous data to enhance user experience. "
                "You can review the data to be sent in the details. Opt in?"
            )
            self.settings[CFG_TELEMETRY] = bool(self._confirm(text))
        elif self.settings[CFG_TELEMETRY]:
            self._start_telemetry()

    def _start_telemetry(self) -> None:
        self._telemetry = Telemetry(self.state, self.version)
        self._telemetry.start()

    @property
    def telemetry_enabled(self) -> bool:
        return self._telemetry is not None

    def set_telemetry_enabled(self, enable: bool) -> None:
        if enable and self._telemetry is None:
            self._start_telemetry()
        elif not enable and self._telemetry is not None:
            self._telemetry.stop()
            self._telemetry = None
        else:
            return
        self.settings[CFG_TELEMETRY] = bool(enable)

    @property
    def displayable_telemetry_report(self) -> str:
        return self._telemetry.build_report_string() if self._telemetry else ""

    def notify_version_change(
        self, last_used_version: str | None, current_version: str
    ) -> str | None:
        """Tell the user about a first run or a version change.

        Returns the notice shown, if any, and records ``current_version``.
        """
        notice = None
        if last_used_version is None:
            notice = (
                "This is the first time you've launched Albert. Albert is plugin "
                "based. You have to enable some plugins you want to use."
            )
            self._notify(notice)
            if self._frontend is not None:
                self.show_settings()
        elif _minor_section(current_version) != _minor_section(last_used_version):
            notice = (
                f"You are now using Albert {current_version}. The major version "
                "changed. Some parts of the API might have changed. Check the news."
            )
            self._notify(notice)

        if last_used_version != current_version:
            self.state[STATE_LAST_USED_VERSION] = current_version
        return notice