"""Settings library for the persisted settings document.

Provides:
    - Schema validation for the VARIABLES, COMPARISONS and TOTALS sections.
    - Loading, replacing and persisting the document through the host store.
    - Token reconciliation when the tracked variable names change.
"""

import datetime
import json
import logging
import pathlib
from typing import Any, Dict, Iterable, List, Optional

from ..core.helpers import format_token
from ..status import status

SECTIONS: List[str] = ['VARIABLES', 'COMPARISONS', 'TOTALS']

NUMBER_TYPES: tuple = (int, float)

SETTINGS_SCHEMA: Dict[str, Any] = {
    'VARIABLES': {
        'type': list,
        'required': True,
        'value_type': str,
    },
    'COMPARISONS': {
        'type': list,
        'required': True,
        'item_schema': {
            'token': {'type': (str,), 'required': True},
            'date': {'type': (str, type(None)), 'required': True, 'format': 'isodate'},
            'comparison': {'type': NUMBER_TYPES + (str, type(None)), 'required': True},
        }
    },
    'TOTALS': {
        'type': list,
        'required': True,
        'item_schema': {
            'token': {'type': (str,), 'required': True},
            'duration': {'type': NUMBER_TYPES + (type(None),), 'required': True},
            'comparison': {'type': NUMBER_TYPES + (type(None),), 'required': True},
        }
    },
}

template_path: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config' / 'settings.json.template'


def is_valid_isodate(value: str) -> bool:
    """Check if a string is an ISO-8601 timestamp.

    Args:
        value (str): Timestamp string to validate.

    Returns:
        bool: True if value parses with :meth:`datetime.datetime.fromisoformat`.
    """
    try:
        datetime.datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


def unique_names(names: Iterable[str]) -> List[str]:
    """Drop names without letters or digits and names sharing a token identifier with
    an earlier one.

    'Pump' and 'pump', or 'a b' and 'a-b', would own the same tokens, so only the
    first occurrence is kept, in its original position.
    """
    seen = set()
    result = []
    for name in names:
        name = name.strip()
        key = format_token(name)
        if not key:
            continue
        if key in seen:
            logging.warning(f'"{name}" shares its tokens with an earlier variable, skipping')
            continue
        seen.add(key)
        result.append(name)
    return result


def _validate_variables(variables: Any, specs: Dict[str, Any]) -> None:
    """Validate the 'VARIABLES' section.

    Raises:
        TypeError: If variables is not a list of strings.
    """
    logging.debug('Validating "VARIABLES" section.')
    if not isinstance(variables, specs['type']):
        msg: str = 'VARIABLES must be a list.'
        logging.error(msg)
        raise TypeError(msg)
    for v in variables:
        if not isinstance(v, specs['value_type']):
            msg = f'Variable "{v}" is not a string.'
            logging.error(msg)
            raise TypeError(msg)


def _validate_entries(section: str, entries: Any, item_schema: Dict[str, Any]) -> None:
    """Validate a COMPARISONS or TOTALS section.

    Each entry must be a dict with exactly the schema's fields, of the schema's types,
    and no two entries may share a ``token``.

    Args:
        section: Section name, used in error messages.
        entries: The section's list of entries.
        item_schema: Field specs for a single entry.

    Raises:
        TypeError: If the section or an entry has the wrong type.
        ValueError: If a field is missing, unknown, badly formatted or a token repeats.
    """
    logging.debug(f'Validating "{section}" section.')
    if not isinstance(entries, list):
        msg: str = f'{section} must be a list.'
        logging.error(msg)
        raise TypeError(msg)

    seen = set()
    for entry in entries:
        if not isinstance(entry, dict):
            msg = f'{section} entry "{entry}" must be a dict.'
            logging.error(msg)
            raise TypeError(msg)

        unknown = set(entry) - set(item_schema)
        if unknown:
            msg = f'{section} entry has unknown fields: {sorted(unknown)}'
            logging.error(msg)
            raise ValueError(msg)

        for field, field_specs in item_schema.items():
            if field_specs['required'] and field not in entry:
                msg = f'{section} entry {entry} missing "{field}".'
                logging.error(msg)
                raise ValueError(msg)

            v = entry[field]
            if isinstance(v, bool) or not isinstance(v, field_specs['type']):
                msg = (
                    f'{section} field "{field}" must be one of {field_specs["type"]}, '
                    f'got {type(v)}.'
                )
                logging.error(msg)
                raise TypeError(msg)

            if field_specs.get('format') == 'isodate' and v is not None and not is_valid_isodate(v):
                msg = f'{section} field "{field}" must be an ISO-8601 timestamp, got "{v}".'
                logging.error(msg)
                raise ValueError(msg)

        if entry['token'] in seen:
            msg = f'{section} has more than one entry for "{entry["token"]}".'
            logging.error(msg)
            raise ValueError(msg)
        seen.add(entry['token'])


def validate_settings_data(data: Dict[str, Any]) -> None:
    """Validate a settings document against :data:`SETTINGS_SCHEMA`.

    Raises:
        status.SettingsInvalidException: If a section is missing or fails validation.
    """
    if not isinstance(data, dict):
        raise status.SettingsInvalidException(f'Expected a dict, got {type(data)}.')

    for section, specs in SETTINGS_SCHEMA.items():
        if specs.get('required') and section not in data:
            raise status.SettingsInvalidException(f'Missing required section: {section}')

    unknown = set(data) - set(SETTINGS_SCHEMA)
    if unknown:
        raise status.SettingsInvalidException(f'Unknown sections: {sorted(unknown)}')

    try:
        _validate_variables(data['VARIABLES'], SETTINGS_SCHEMA['VARIABLES'])
        _validate_entries('COMPARISONS', data['COMPARISONS'], SETTINGS_SCHEMA['COMPARISONS']['item_schema'])
        _validate_entries('TOTALS', data['TOTALS'], SETTINGS_SCHEMA['TOTALS']['item_schema'])
    except (TypeError, ValueError) as ex:
        raise status.SettingsInvalidException(str(ex)) from ex


def default_settings() -> Dict[str, Any]:
    """Return a fresh copy of the default settings document."""
    with template_path.open('r', encoding='utf-8') as f:
        return json.load(f)


class SettingsAPI:
    """
    Owns the settings document and persists it through the host store.

    The document is never mutated in place: every change builds a new document and
    passes it to :meth:`update_settings`, which validates it, writes it and only then
    swaps it in. A rejected write leaves the in-memory copy untouched.

    Args:
        host: The host capability object providing ``get``, ``set`` and ``keys``.
        tokens: The token registry reconciled when VARIABLES change.
    """

    def __init__(self, host, tokens) -> None:
        self.host = host
        self.tokens = tokens
        self.settings_key: str = f'{host.manifest["id"]}.settings'
        self.settings_data: Dict[str, Any] = default_settings()

    def __getitem__(self, section: str) -> List[Any]:
        return self.get_section(section)

    def init_settings(self) -> Dict[str, Any]:
        """Load the stored document, or persist the default one if none exists yet.

        Returns:
            The loaded settings document.

        Raises:
            status.SettingsInvalidException: If the stored document fails validation.
            status.PersistenceFailureException: If the default document cannot be written.
        """
        if self.settings_key in self.host.keys():
            logging.debug(f'Found settings key "{self.settings_key}"')
            data = self.host.get(self.settings_key)
            validate_settings_data(data)
            data['VARIABLES'] = unique_names(data['VARIABLES'])
            self.settings_data = data
        else:
            logging.info(f'Initializing "{self.settings_key}" with defaults')
            self.update_settings(default_settings())

        return self.settings_data

    def update_settings(self, data: Dict[str, Any], update: bool = False) -> None:
        """Replace and persist the whole settings document.

        Args:
            data: The new document.
            update: Reconcile tokens against the previous VARIABLES.

        Raises:
            status.SettingsInvalidException: If data fails validation.
            status.PersistenceFailureException: If the host store rejects the write.
        """
        validate_settings_data(data)
        data = json.loads(json.dumps(data))
        data['VARIABLES'] = unique_names(data['VARIABLES'])

        logging.debug(f'New settings: {data}')
        try:
            self.host.set(self.settings_key, data)
        except Exception as ex:
            raise status.PersistenceFailureException(str(ex)) from ex

        old_data = self.settings_data
        self.settings_data = data

        from ..core.signals import signals
        signals.settingsChanged.emit(self.get_settings())

        if update:
            self.tokens.set_tokens(data['VARIABLES'], old_data['VARIABLES'])

    def set_variables(self, names: Iterable[str]) -> None:
        """Replace the tracked names and reconcile their tokens.

        Comparisons and totals of every name outside the new VARIABLES are dropped,
        running ones included. This covers names that were never tracked but were
        started ad hoc: their entries are discarded and their duration and comparison
        tokens removed. Currency and calculation tokens of such names that have no
        entry stay registered until the app is uninitialized.

        Args:
            names: The new tracked variable names.
        """
        variables = unique_names(names)
        old_variables = self.settings_data['VARIABLES']
        untracked = unique_names(
            e['token'] for section in ('COMPARISONS', 'TOTALS') for e in self.settings_data[section]
            if e['token'] not in variables and e['token'] not in old_variables
        )

        self.update_settings({
            'VARIABLES': variables,
            'COMPARISONS': [c for c in self.settings_data['COMPARISONS'] if c['token'] in variables],
            'TOTALS': [t for t in self.settings_data['TOTALS'] if t['token'] in variables],
        }, update=True)

        if untracked:
            logging.debug(f'Dropping untracked entries: {untracked}')
            self.tokens.set_tokens(variables, untracked)

    def get_settings(self) -> Dict[str, Any]:
        """Return a deep copy of the settings document."""
        return json.loads(json.dumps(self.settings_data))

    def get_section(self, section: str) -> List[Any]:
        """Return a copy of one section.

        Raises:
            KeyError: If section is not one of :data:`SECTIONS`.
        """
        if section not in SECTIONS:
            raise KeyError(f'Invalid section: {section}, must be one of {SECTIONS}')
        return json.loads(json.dumps(self.settings_data[section]))

    def find_entry(self, section: str, name: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the COMPARISONS or TOTALS entry for name, or None."""
        return next((e for e in self.get_section(section) if e['token'] == name), None)
