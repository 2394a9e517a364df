"""Timer and comparison engine.

A comparison is started for a tracked name with an optional baseline value and ended
later with an optional final value. Ending it records the elapsed time and the
difference between the two values in the TOTALS section and publishes both to the
name's duration and comparison tokens.

Currency formatting and calculations are stateless and publish straight to tokens.
"""
import datetime
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from . import helpers
from .signals import signals
from ..settings import locale
from ..status import status

Number = Union[int, float]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class StartOptions:
    """Options for :meth:`Engine.start`.

    Attributes:
        track_duration: Record the start time so ending the comparison yields a duration.
    """
    track_duration: bool = True


class Engine:
    """Start/end bookkeeping for comparisons plus the currency and calculation actions.

    Args:
        settings: The :class:`FlowUtilities.settings.lib.SettingsAPI` owning the document.
        tokens: The :class:`FlowUtilities.core.tokens.TokenRegistry` to publish to.
        clock: Returns the current, timezone-aware time.
    """

    def __init__(self, settings, tokens, clock: Callable[[], datetime.datetime] = utcnow) -> None:
        self.settings = settings
        self.tokens = tokens
        self.clock = clock

    @property
    def translate(self) -> Callable[[str], str]:
        return self.settings.host.translate

    def _warn_untracked(self, name: str) -> None:
        if name not in self.settings['VARIABLES']:
            logging.warning(f'"{name}" is not a tracked variable; its tokens will not be managed')

    def start(self, name: str, comparison: Optional[Union[Number, str]] = None,
              options: Optional[StartOptions] = None) -> Dict[str, Any]:
        """Start, or restart, the comparison for name.

        Any comparison already running for name is discarded.

        Args:
            name: Tracked variable name.
            comparison: Baseline value the final value is compared against.
            options: See :class:`StartOptions`.

        Returns:
            dict: The new COMPARISONS entry.

        Raises:
            status.InvalidOperationException: If comparison is not numeric.
        """
        options = options or StartOptions()
        logging.debug(f'Starting comparison "{name}" (baseline: {comparison!r})')
        self._warn_untracked(name)

        entry = {
            'token': name,
            'date': self.clock().isoformat() if options.track_duration else None,
            'comparison': helpers.to_number(comparison) if comparison is not None else None,
        }

        data = self.settings.get_settings()
        data['COMPARISONS'] = [c for c in data['COMPARISONS'] if c['token'] != name] + [entry]
        self.settings.update_settings(data)

        signals.comparisonStarted.emit(name)
        return entry

    def end(self, name: str, value: Optional[Union[Number, str]] = None) -> Dict[str, Any]:
        """End the running comparison for name and publish its results.

        Args:
            name: Tracked variable name.
            value: Final value. When omitted no comparison is computed.

        Returns:
            dict: The new TOTALS entry.

        Raises:
            status.ComparisonNotFoundException: If no comparison is running for name.
            status.InvalidOperationException: If value or the stored baseline is not numeric.
        """
        existing = self.settings.find_entry('COMPARISONS', name)
        if existing is None:
            raise status.ComparisonNotFoundException(f'"{name}"')
        logging.debug(f'Ending comparison "{name}": {existing}')

        end_date = self.clock()
        duration = self.calculate_duration(existing['date'], end_date) if existing['date'] else None
        comparison = self.calculate_comparison(existing['comparison'], value) if value is not None else None

        entry = {'token': name, 'duration': duration, 'comparison': comparison}

        data = self.settings.get_settings()
        data['COMPARISONS'] = [c for c in data['COMPARISONS'] if c['token'] != name]
        data['TOTALS'] = [t for t in data['TOTALS'] if t['token'] != name] + [entry]
        self.settings.update_settings(data)

        self.publish_totals(entry)

        signals.comparisonEnded.emit(name, entry)
        return entry

    def cancel(self, name: str) -> None:
        """Drop the running comparison for name without recording totals.

        Raises:
            status.ComparisonNotFoundException: If no comparison is running for name.
        """
        if self.settings.find_entry('COMPARISONS', name) is None:
            raise status.ComparisonNotFoundException(f'"{name}"')

        data = self.settings.get_settings()
        data['COMPARISONS'] = [c for c in data['COMPARISONS'] if c['token'] != name]
        self.settings.update_settings(data)
        logging.debug(f'Cancelled comparison "{name}"')

    def publish_totals(self, entry: Dict[str, Any]) -> None:
        """Write a TOTALS entry to its duration token and, if set, its comparison token."""
        duration = entry['duration']
        text = helpers.split_time(duration, self.translate) if duration is not None else None
        self.tokens.create_token(entry['token'], 'duration', text)

        if entry['comparison'] is not None:
            self.tokens.create_token(entry['token'], 'comparison', entry['comparison'])

    def restore_tokens(self) -> None:
        """Republish the stored totals of every tracked name."""
        variables = self.settings['VARIABLES']
        for entry in self.settings['TOTALS']:
            if entry['token'] in variables:
                self.publish_totals(entry)

    @staticmethod
    def calculate_duration(start: str, end: datetime.datetime) -> int:
        """Return the absolute milliseconds between an ISO timestamp and end."""
        start_date = datetime.datetime.fromisoformat(start)
        if start_date.tzinfo is None:
            start_date = start_date.replace(tzinfo=datetime.timezone.utc)
        return round(abs(end - start_date).total_seconds() * 1000)

    @staticmethod
    def calculate_comparison(start: Optional[Union[Number, str]], end: Union[Number, str]) -> float:
        """Return end minus start, rounded to two decimals. A missing start counts as zero."""
        baseline = helpers.to_number(start) if start is not None else 0.0
        result = helpers.to_number(end) - baseline
        if not math.isfinite(result):
            raise status.InvalidOperationException(f'{end!r} - {start!r} is not a finite number.')
        return round(result, 2)

    def set_currency(self, name: str, number: Union[Number, str], currency: str) -> str:
        """Format number as currency for the host locale and publish it.

        Args:
            name: Tracked variable name.
            number: The amount.
            currency: ISO 4217 code. Empty uses the locale's default currency.

        Returns:
            str: The formatted text.

        Raises:
            status.InvalidOperationException: If number is not numeric.
            status.InvalidCurrencyException: If currency is unknown.
        """
        amount = helpers.to_number(number)
        text = locale.format_currency_value(amount, currency, self.translate('helpers.locale'))
        logging.debug(f'Currency "{name}": {number!r} {currency!r} => {text}')

        self.tokens.create_token(name, 'currency', text)
        return text

    def calculation(self, name: str, calc_type: str,
                    number1: Union[Number, str], number2: Union[Number, str]) -> float:
        """Run a named calculation and publish the result.

        Raises:
            status.InvalidOperationException: Unknown calc_type or non-numeric operands.
            status.DivisionByZeroException: Zero divisor.
        """
        result = helpers.calculation_type(calc_type, number1, number2)
        logging.debug(f'Calculation "{name}": {calc_type}({number1!r}, {number2!r}) => {result}')

        self.tokens.create_token(name, 'calculation', result)
        return result
