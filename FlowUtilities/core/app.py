"""The app service object.

:class:`App` is constructed once per host and owns all plugin state: the settings
store, the token registry and the engine. Flow action handlers receive it explicitly.
"""
import logging
from typing import Any, Dict, Iterable

from . import flows
from .engine import Engine
from .tokens import TokenRegistry
from ..settings.lib import SettingsAPI


class App:
    """Wires the settings store, token registry and engine to a host.

    Args:
        host: A :class:`FlowUtilities.host.host.HostAPI` implementation.
        engine_kwargs: Passed to :class:`FlowUtilities.core.engine.Engine`, e.g. ``clock``.
    """

    def __init__(self, host, **engine_kwargs) -> None:
        self.host = host
        self.tokens = TokenRegistry(host)
        self.settings = SettingsAPI(host, self.tokens)
        self.engine = Engine(self.settings, self.tokens, **engine_kwargs)

    def on_init(self) -> None:
        """Load settings, create the tracked tokens and register the flow actions."""
        manifest = self.host.manifest
        logging.info(f'{manifest.get("id")} - {manifest.get("version")} started...')

        self.settings.init_settings()
        self.tokens.set_tokens(self.settings['VARIABLES'])
        self.engine.restore_tokens()

        logging.info(f'Loaded settings: {self.settings.get_settings()}')

        flows.init(self)

    def on_uninit(self) -> None:
        """Unregister every token."""
        self.tokens.clear()
        logging.info(f'{self.host.manifest.get("id")} stopped')

    def get_settings(self) -> Dict[str, Any]:
        return self.settings.get_settings()

    def set_variables(self, names: Iterable[str]) -> None:
        """Replace the tracked variable names, creating and removing their tokens."""
        self.settings.set_variables(names)
