"""Registry of the live tokens the plugin has registered with its host.

Every tracked variable name owns one token per kind in :data:`TOKEN_KINDS`. The
registry is the only holder of the host handles: removing a token unregisters it
host-side and drops the handle.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from .helpers import format_token
from .signals import signals

# Token kind -> host token type
TOKEN_KINDS: Dict[str, str] = {
    'duration': 'string',
    'currency': 'string',
    'comparison': 'number',
    'calculation': 'number',
}


class TokenRegistry:
    """Creates, updates and removes tokens, at most one per identifier.

    Args:
        host: The host capability object providing ``create_token`` and ``translate``.
    """

    def __init__(self, host) -> None:
        self.host = host
        self.tokens: Dict[str, Any] = {}

    def __contains__(self, token_id: str) -> bool:
        return token_id in self.tokens

    def __len__(self) -> int:
        return len(self.tokens)

    def title(self, name: str, kind: str) -> str:
        """Return the display title for a name's token of the given kind.

        Raises:
            KeyError: If kind is not in :data:`TOKEN_KINDS`.
        """
        if kind not in TOKEN_KINDS:
            raise KeyError(f'Invalid token kind: {kind}, must be one of {list(TOKEN_KINDS)}')
        return f'{name} {self.host.translate(f"helpers.{kind}")}'

    def token_id(self, name: str, kind: str) -> str:
        return format_token(self.title(name, kind))

    def token_ids(self) -> List[str]:
        return list(self.tokens.keys())

    def has_token(self, name: str, kind: str) -> bool:
        return self.token_id(name, kind) in self.tokens

    def get_token(self, name: str, kind: str) -> Optional[Any]:
        return self.tokens.get(self.token_id(name, kind))

    def _register(self, name: str, kind: str) -> Any:
        title = self.title(name, kind)
        token_id = format_token(title)
        _type = TOKEN_KINDS[kind]

        self.tokens[token_id] = self.host.create_token(token_id, _type, title)
        logging.debug(f'Created token => ID: {token_id} - Title: {title} - Type: {_type}')
        signals.tokenCreated.emit(token_id)
        return self.tokens[token_id]

    def create_token(self, name: str, kind: str, value: Any = None) -> None:
        """Register the token if needed, then set its value.

        The value is written even when the token already existed.

        Args:
            name: Tracked variable name.
            kind: One of :data:`TOKEN_KINDS`.
            value: The value to publish.
        """
        token = self.get_token(name, kind)
        if token is None:
            token = self._register(name, kind)
        token.set_value(value)
        logging.debug(f'Set token {token.id} => {value!r}')
        signals.tokenValueChanged.emit(token.id, value)

    def ensure_token(self, name: str, kind: str) -> bool:
        """Register the token with a null value unless it already exists.

        Returns:
            bool: True if the token was created.
        """
        if self.has_token(name, kind):
            return False
        self.create_token(name, kind, None)
        return True

    def remove_token(self, name: str, kind: str) -> None:
        """Unregister the token and drop the handle. Does nothing for unknown tokens."""
        token_id = self.token_id(name, kind)
        if token_id not in self.tokens:
            return

        self.tokens[token_id].unregister()
        del self.tokens[token_id]
        logging.debug(f'Removed token => ID: {token_id}')
        signals.tokenRemoved.emit(token_id)

    def set_tokens(self, new_names: Iterable[str], old_names: Iterable[str] = ()) -> None:
        """Reconcile the registered tokens with the tracked variable names.

        Every name in new_names gets all of its kind tokens; names only in old_names
        lose theirs, unless a name in new_names maps to the same identifier. Tokens
        that already exist keep their value.

        Args:
            new_names: The tracked names after the change.
            old_names: The tracked names before the change.
        """
        new_names = list(new_names)
        keep = set()
        for name in new_names:
            for kind in TOKEN_KINDS:
                self.ensure_token(name, kind)
                keep.add(self.token_id(name, kind))

        for name in [n for n in old_names if n not in new_names]:
            for kind in TOKEN_KINDS:
                if self.token_id(name, kind) not in keep:
                    self.remove_token(name, kind)

    def clear(self) -> None:
        """Unregister every token."""
        for token_id in list(self.tokens):
            self.tokens.pop(token_id).unregister()
            signals.tokenRemoved.emit(token_id)
        logging.debug('Removed all tokens')
