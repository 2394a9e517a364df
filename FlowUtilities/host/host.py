"""Host capability interface and a local implementation.

The plugin never talks to its runtime directly. Everything it needs (settings storage,
dynamic tokens, localized strings and flow action wiring) goes through a :class:`HostAPI`
instance handed to :class:`FlowUtilities.core.app.App`.

:class:`LocalHost` keeps settings in a JSON file, loads translations from the bundled
locale catalogs and represents tokens as Qt objects that emit on every value change.
"""
import json
import logging
import os
import pathlib
import tempfile
from typing import Any, Callable, Dict, List, Optional

from PySide6 import QtCore

from .. import __app_id__, __version__

app_name: str = 'FlowUtilities'

TOKEN_TYPES: Dict[str, tuple] = {
    'string': (str,),
    'number': (int, float),
}

locales_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config' / 'locales'

RunListener = Callable[[Dict[str, Any]], Any]
AutocompleteListener = Callable[[str, Dict[str, Any]], List[Dict[str, Any]]]


class TokenHandle:
    """A live token registered with the host."""

    id: str
    title: str
    type: str

    def set_value(self, value: Any) -> None:
        raise NotImplementedError

    def unregister(self) -> None:
        raise NotImplementedError


class HostAPI:
    """The fixed set of capabilities the plugin consumes from its host runtime.

    Attributes:
        manifest (dict): Host-provided identity, at least ``id`` and ``version``.
    """
    manifest: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def create_token(self, token_id: str, type: str, title: str) -> TokenHandle:
        raise NotImplementedError

    def translate(self, key: str) -> str:
        raise NotImplementedError

    def register_action(
            self,
            card_id: str,
            run: RunListener,
            autocomplete: Optional[AutocompleteListener] = None
    ) -> None:
        raise NotImplementedError


class Token(QtCore.QObject, TokenHandle):
    """Token handle owned by a :class:`LocalHost`.

    Values are type-checked against the token type; ``None`` is accepted for every type.
    """
    valueChanged = QtCore.Signal(object)
    unregistered = QtCore.Signal()

    def __init__(self, host: 'LocalHost', token_id: str, type: str, title: str) -> None:
        super().__init__()
        self._host = host
        self.id: str = token_id
        self.type: str = type
        self.title: str = title
        self.value: Any = None

    def __repr__(self) -> str:
        return f'<Token id={self.id!r} type={self.type!r} value={self.value!r}>'

    def set_value(self, value: Any) -> None:
        """Set the token value.

        Raises:
            RuntimeError: If the token was unregistered.
            TypeError: If value does not match the token type.
        """
        if self.id not in self._host.tokens:
            raise RuntimeError(f'Token "{self.id}" is not registered.')

        allowed = TOKEN_TYPES[self.type]
        if value is not None and (isinstance(value, bool) or not isinstance(value, allowed)):
            raise TypeError(f'Token "{self.id}" expects a {self.type} value, got {type(value).__name__}.')

        self.value = value
        self.valueChanged.emit(value)

    def unregister(self) -> None:
        """Remove the token from the host.

        Raises:
            RuntimeError: If the token was already unregistered.
        """
        if self._host.tokens.get(self.id) is not self:
            raise RuntimeError(f'Token "{self.id}" is not registered.')
        del self._host.tokens[self.id]
        self.unregistered.emit()


class LocalHost(HostAPI):
    """File-backed host used when running standalone and in tests.

    Args:
        settings_path: JSON file holding the settings store. Defaults to
            ``<AppDataLocation>/settings.json``.
        language: Locale catalog to translate with, e.g. ``'en'`` or ``'nl'``.
        manifest: Identity metadata. Defaults to the package id and version.
    """

    def __init__(
            self,
            settings_path: Optional[str] = None,
            language: str = 'en',
            manifest: Optional[Dict[str, Any]] = None
    ) -> None:
        self.manifest: Dict[str, Any] = manifest or {'id': __app_id__, 'version': __version__}
        self.settings_path: pathlib.Path = (
            pathlib.Path(settings_path)
            if settings_path
            else self.default_settings_path()
        )
        self.language: str = language

        self.tokens: Dict[str, Token] = {}
        self.actions: Dict[str, Dict[str, Any]] = {}

        self._store: Dict[str, Any] = self._load_store()
        self._catalog: Dict[str, Any] = self._load_catalog(language)
        self._fallback_catalog: Dict[str, Any] = (
            self._catalog if language == 'en' else self._load_catalog('en')
        )

    @staticmethod
    def default_settings_path() -> pathlib.Path:
        """Return the settings file inside the writable app data directory."""
        QtCore.QCoreApplication.setApplicationName(app_name)
        QtCore.QCoreApplication.setOrganizationName('')

        p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
        logging.debug(f'Using app data directory: {p}')
        return pathlib.Path(p) / 'settings.json'

    # -------------------- SETTINGS ----------------------

    def _load_store(self) -> Dict[str, Any]:
        if not self.settings_path.exists():
            logging.debug(f'No settings store at "{self.settings_path}", starting empty')
            return {}

        logging.debug(f'Loading settings store from "{self.settings_path}"')
        with self.settings_path.open('r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'Settings store "{self.settings_path}" must contain a JSON object.')
        return data

    def _write_store(self, data: Dict[str, Any]) -> None:
        # Write to a sibling temp file and swap it in so a failed write never truncates the store
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.settings_path.parent, prefix='.settings', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
            os.replace(tmp, self.settings_path)
        except Exception:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key: str) -> Any:
        """Return a deep copy of the stored value, or None."""
        if key not in self._store:
            return None
        return json.loads(json.dumps(self._store[key]))

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key and write the store to disk.

        Raises:
            TypeError: If value is not JSON serializable.
            OSError: If the store cannot be written.
        """
        new_store = dict(self._store)
        new_store[key] = json.loads(json.dumps(value))
        self._write_store(new_store)
        self._store = new_store

    def unset(self, key: str) -> None:
        if key not in self._store:
            return
        new_store = dict(self._store)
        del new_store[key]
        self._write_store(new_store)
        self._store = new_store

    def keys(self) -> List[str]:
        return list(self._store.keys())

    # -------------------- TOKENS ----------------------

    def create_token(self, token_id: str, type: str, title: str) -> Token:
        """Register a new token.

        Raises:
            ValueError: If type is unknown or token_id is already registered.
        """
        if type not in TOKEN_TYPES:
            raise ValueError(f'Invalid token type "{type}", must be one of {list(TOKEN_TYPES)}.')
        if token_id in self.tokens:
            raise ValueError(f'Token "{token_id}" is already registered.')

        token = Token(self, token_id, type, title)
        self.tokens[token_id] = token
        return token

    # -------------------- LOCALIZATION ----------------------

    @staticmethod
    def _load_catalog(language: str) -> Dict[str, Any]:
        path = locales_dir / f'{language}.json'
        if not path.exists():
            logging.warning(f'No locale catalog for "{language}" at {path}')
            return {}
        with path.open('r', encoding='utf-8') as f:
            return json.load(f)

    @staticmethod
    def _lookup(catalog: Dict[str, Any], key: str) -> Optional[str]:
        node: Any = catalog
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def translate(self, key: str) -> str:
        """Look up a dotted key, falling back to English and then to the key itself."""
        v = self._lookup(self._catalog, key)
        if v is None:
            v = self._lookup(self._fallback_catalog, key)
        if v is None:
            logging.warning(f'Missing translation for "{key}" ({self.language})')
            return key
        return v

    # -------------------- FLOW ACTIONS ----------------------

    def register_action(
            self,
            card_id: str,
            run: RunListener,
            autocomplete: Optional[AutocompleteListener] = None
    ) -> None:
        self.actions[card_id] = {'run': run, 'autocomplete': autocomplete}

    def trigger_action(self, card_id: str, args: Dict[str, Any]) -> Any:
        """Invoke a registered action as the flow engine would.

        Raises:
            KeyError: If no action is registered under card_id.
        """
        if card_id not in self.actions:
            raise KeyError(f'No action registered for "{card_id}"')
        return self.actions[card_id]['run'](args)

    def autocomplete(self, card_id: str, query: str, args: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Ask a registered action for autocomplete suggestions."""
        if card_id not in self.actions:
            raise KeyError(f'No action registered for "{card_id}"')
        listener = self.actions[card_id]['autocomplete']
        if listener is None:
            return []
        return listener(query, args or {})
