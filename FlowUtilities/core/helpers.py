"""Pure helpers: token identifiers, duration text and named calculations."""
import logging
import math
import operator
import re
import unicodedata
from typing import Callable, Dict, List, Tuple, Union

from ..status import status

Number = Union[int, float]

# (unit, milliseconds) largest first
TIME_UNITS: List[Tuple[str, int]] = [
    ('days', 86_400_000),
    ('hours', 3_600_000),
    ('minutes', 60_000),
    ('seconds', 1_000),
]


def _percentage(a: float, b: float) -> float:
    return a / b * 100


CALCULATIONS: Dict[str, Callable[[float, float], float]] = {
    'add': operator.add,
    'subtract': operator.sub,
    'multiply': operator.mul,
    'divide': operator.truediv,
    'percentage': _percentage,
    'modulo': math.fmod,
    'power': operator.pow,
}

ZERO_DIVISOR_CALCULATIONS: Tuple[str, ...] = ('divide', 'percentage', 'modulo')


def format_token(title: str) -> str:
    """Turn a display title into a token identifier.

    Accents are stripped, the result is casefolded and every run of non-word
    characters becomes a single underscore. Letters of any script are kept.

    Example:
        >>> format_token('Washing Machine duration')
        'washing_machine_duration'
    """
    decomposed = unicodedata.normalize('NFKD', title)
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r'[\W_]+', '_', stripped.casefold()).strip('_')


def split_time(milliseconds: Number, translate: Callable[[str], str]) -> str:
    """Render a duration as localized text, e.g. '1 day 2 hours 5 seconds'.

    Zero-valued units are left out and sub-second remainders are dropped. A duration
    shorter than a second renders as zero seconds.

    Args:
        milliseconds: The non-negative duration.
        translate: Host translation lookup, used for the unit labels.

    Returns:
        str: The duration text.

    Raises:
        ValueError: If milliseconds is negative.
    """
    if milliseconds < 0:
        raise ValueError(f'Duration must not be negative, got {milliseconds}.')

    remainder = int(milliseconds)
    parts = []
    for unit, size in TIME_UNITS:
        n, remainder = divmod(remainder, size)
        if n:
            parts.append(_unit_text(n, unit, translate))

    if not parts:
        return _unit_text(0, 'seconds', translate)
    return ' '.join(parts)


def _unit_text(n: int, unit: str, translate: Callable[[str], str]) -> str:
    key = f'helpers.{unit}_singular' if n == 1 else f'helpers.{unit}'
    return f'{n} {translate(key)}'


def to_number(value: Union[Number, str]) -> float:
    """Coerce a flow argument to a float.

    Raises:
        status.InvalidOperationException: If value is not a finite number.
    """
    if isinstance(value, bool):
        raise status.InvalidOperationException(f'"{value}" is not a number.')
    try:
        number = float(value)
    except (TypeError, ValueError) as ex:
        raise status.InvalidOperationException(f'"{value}" is not a number.') from ex
    if not math.isfinite(number):
        raise status.InvalidOperationException(f'"{value}" is not a finite number.')
    return number


def calculation_type(calc_type: str, number1: Union[Number, str], number2: Union[Number, str]) -> float:
    """Apply a named calculation to two operands.

    Args:
        calc_type: One of the keys of :data:`CALCULATIONS`.
        number1: Left operand.
        number2: Right operand.

    Returns:
        float: The result.

    Raises:
        status.InvalidOperationException: Unknown calc_type, non-numeric operands or an
            overflowing result.
        status.DivisionByZeroException: A zero divisor for divide, percentage or modulo.
    """
    if calc_type not in CALCULATIONS:
        raise status.InvalidOperationException(
            f'Unknown calculation "{calc_type}", must be one of {list(CALCULATIONS)}.'
        )

    a = to_number(number1)
    b = to_number(number2)

    if calc_type in ZERO_DIVISOR_CALCULATIONS and b == 0:
        raise status.DivisionByZeroException(f'{calc_type}({a}, {b})')

    try:
        result = CALCULATIONS[calc_type](a, b)
    except (OverflowError, ZeroDivisionError) as ex:
        raise status.InvalidOperationException(f'{calc_type}({a}, {b}): {ex}') from ex

    if isinstance(result, complex) or math.isinf(result) or math.isnan(result):
        raise status.InvalidOperationException(f'{calc_type}({a}, {b}) has no real result.')

    logging.debug(f'{calc_type}({a}, {b}) = {result}')
    return result
