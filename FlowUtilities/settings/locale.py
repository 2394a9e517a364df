"""
Module for formatting decimal and currency values using Babel.

"""
import logging

from babel import Locale, UnknownLocaleError, numbers

from ..status import status

DEFAULT_LOCALE: str = 'en_US'
DEFAULT_CURRENCY: str = 'EUR'


def normalize_locale(identifier: str) -> str:
    """
    Normalize a host locale identifier to Babel's underscore form.

    Host catalogs use identifiers such as 'nl-NL' or 'en'. Unknown or empty identifiers
    fall back to :data:`DEFAULT_LOCALE`.

    Args:
        identifier (str): Locale identifier, e.g. 'nl-NL'.

    Returns:
        str: A locale string Babel can parse, e.g. 'nl_NL'.
    """
    if not identifier or not isinstance(identifier, str):
        return DEFAULT_LOCALE

    candidate = identifier.strip().replace('-', '_')
    try:
        return str(Locale.parse(candidate))
    except (ValueError, UnknownLocaleError) as ex:
        logging.warning(f'Unknown locale "{identifier}", using {DEFAULT_LOCALE}: {ex}')
        return DEFAULT_LOCALE


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: Currency code such as 'EUR'. Defaults to 'EUR' if the territory is unknown.
    """
    territory = Locale.parse(normalize_locale(locale)).territory
    if not territory:
        return DEFAULT_CURRENCY

    currencies = numbers.get_territory_currencies(territory)
    return currencies[0] if currencies else DEFAULT_CURRENCY


def validate_currency(code: str) -> str:
    """
    Check a currency code against Babel's ISO 4217 list.

    Args:
        code (str): Currency code, case-insensitive, e.g. 'eur'.

    Returns:
        str: The upper-cased currency code.

    Raises:
        status.InvalidCurrencyException: If the code is not a known currency.
    """
    if not isinstance(code, str) or not code.strip():
        raise status.InvalidCurrencyException(f'Got "{code}".')

    code = code.strip().upper()
    try:
        numbers.validate_currency(code)
    except numbers.UnknownCurrencyError as ex:
        raise status.InvalidCurrencyException(f'Got "{code}".') from ex
    return code


def format_float(value: float, locale: str) -> str:
    """
    Format a float as a decimal string according to the locale conventions.

    Args:
        value (float): The numeric value to be formatted.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted decimal string.
    """
    return numbers.format_decimal(value, locale=Locale.parse(normalize_locale(locale)))


def format_currency_value(value: float, currency: str, locale: str) -> str:
    """
    Format a number as a currency string.

    Args:
        value (float): The numeric value to be formatted.
        currency (str): ISO 4217 currency code. Empty means the locale's default currency.
        locale (str): Locale identifier, e.g. 'nl-NL' or 'fr_FR'.

    Returns:
        str: The formatted currency string, e.g. '€ 12,50'.

    Raises:
        status.InvalidCurrencyException: If the currency code is unknown.
    """
    locale = normalize_locale(locale)
    currency_code = validate_currency(currency) if currency else get_currency_from_locale(locale)
    return numbers.format_currency(value, currency=currency_code, locale=Locale.parse(locale))
