"""
Unit tests for FlowUtilities.core.engine (comparison lifecycle and actions).
"""
import datetime
import unittest

from FlowUtilities.core.engine import Engine, StartOptions
from FlowUtilities.core.signals import signals
from FlowUtilities.status import status
from tests.base import InitializedTestCase


class EngineTestCase(InitializedTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.app.set_variables(['pump', 'dryer'])
        self.engine = self.app.engine
        self.settings = self.app.settings


class StartTests(EngineTestCase):
    def test_start_records_time_and_baseline(self):
        entry = self.engine.start('pump', 10)
        self.assertEqual(entry, {'token': 'pump', 'date': self.clock.now.isoformat(), 'comparison': 10.0})
        self.assertEqual(self.settings['COMPARISONS'], [entry])

    def test_start_without_duration(self):
        entry = self.engine.start('pump', options=StartOptions(track_duration=False))
        self.assertIsNone(entry['date'])
        self.assertIsNone(entry['comparison'])

    def test_restart_replaces_previous(self):
        self.engine.start('pump', 1)
        self.clock.advance(minutes=5)
        self.engine.start('pump', 2)
        self.engine.start('dryer', 3)

        comparisons = self.settings['COMPARISONS']
        self.assertEqual([c['token'] for c in comparisons], ['pump', 'dryer'])
        self.assertEqual(comparisons[0]['comparison'], 2.0)
        self.assertEqual(comparisons[0]['date'], self.clock.now.isoformat())

    def test_start_rejects_non_numeric_baseline(self):
        with self.assertRaises(status.InvalidOperationException):
            self.engine.start('pump', 'lots')
        self.assertEqual(self.settings['COMPARISONS'], [])

    def test_start_rejects_infinite_baseline(self):
        for value in ('inf', float('-inf')):
            with self.subTest(value=value):
                with self.assertRaises(status.InvalidOperationException):
                    self.engine.start('pump', value)
        self.assertEqual(self.settings['COMPARISONS'], [])

    def test_start_is_persisted(self):
        self.engine.start('pump', 1)
        stored = self.new_host().get(self.settings.settings_key)
        self.assertEqual(stored['COMPARISONS'], self.settings['COMPARISONS'])


class EndTests(EngineTestCase):
    def test_immediate_end(self):
        self.engine.start('pump', 10)
        entry = self.engine.end('pump', 12.5)

        self.assertEqual(entry, {'token': 'pump', 'duration': 0, 'comparison': 2.5})
        self.assertEqual(self.settings['TOTALS'], [entry])
        self.assertEqual(self.token_value('pump_duration'), '0 seconds')
        self.assertEqual(self.token_value('pump_comparison'), 2.5)

    def test_end_with_real_clock_is_near_zero(self):
        engine = Engine(self.settings, self.app.tokens)
        engine.start('pump', 1.1)
        entry = engine.end('pump', 3.35)
        self.assertLess(entry['duration'], 1_000)
        self.assertEqual(entry['comparison'], 2.25)

    def test_end_computes_elapsed_time(self):
        self.engine.start('pump', 100)
        self.clock.advance(hours=1, minutes=2, seconds=3, milliseconds=400)
        entry = self.engine.end('pump', 90.123)

        self.assertEqual(entry['duration'], 3_723_400)
        self.assertEqual(entry['comparison'], -9.88)
        self.assertEqual(self.token_value('pump_duration'), '1 hour 2 minutes 3 seconds')

    def test_end_without_value_skips_comparison(self):
        self.app.tokens.create_token('pump', 'comparison', 7.0)
        self.engine.start('pump', 100)
        entry = self.engine.end('pump')

        self.assertIsNone(entry['comparison'])
        self.assertEqual(self.token_value('pump_comparison'), 7.0)

    def test_zero_comparison_is_published(self):
        self.engine.start('pump', 5)
        self.engine.end('pump', 5)
        self.assertEqual(self.token_value('pump_comparison'), 0)

    def test_missing_baseline_counts_as_zero(self):
        self.engine.start('pump')
        self.assertEqual(self.engine.end('pump', 4)['comparison'], 4)

    def test_end_without_duration(self):
        self.app.tokens.create_token('pump', 'duration', 'old')
        self.engine.start('pump', 1, StartOptions(track_duration=False))
        entry = self.engine.end('pump', 2)
        self.assertIsNone(entry['duration'])
        self.assertIsNone(self.token_value('pump_duration'))

    def test_end_consumes_comparison_and_replaces_totals(self):
        self.engine.start('pump', 1)
        self.engine.end('pump', 2)
        self.engine.start('pump', 1)
        self.engine.end('pump', 5)

        self.assertEqual(self.settings['COMPARISONS'], [])
        self.assertEqual(self.settings['TOTALS'], [{'token': 'pump', 'duration': 0, 'comparison': 4}])

    def test_end_unknown_raises_without_mutation(self):
        self.engine.start('dryer', 1)
        before = self.settings.get_settings()
        self.host.writes.clear()
        values = {k: t.value for k, t in self.host.tokens.items()}

        with self.assertRaises(status.ComparisonNotFoundException):
            self.engine.end('pump', 3)

        self.assertEqual(self.settings.get_settings(), before)
        self.assertEqual(self.host.writes, [])
        self.assertEqual({k: t.value for k, t in self.host.tokens.items()}, values)

    def test_end_twice_raises(self):
        self.engine.start('pump', 1)
        self.engine.end('pump', 2)
        with self.assertRaises(status.ComparisonNotFoundException):
            self.engine.end('pump', 2)

    def test_end_rejects_non_numeric_value_without_mutation(self):
        self.engine.start('pump', 1)
        before = self.settings.get_settings()
        with self.assertRaises(status.InvalidOperationException):
            self.engine.end('pump', 'n/a')
        self.assertEqual(self.settings.get_settings(), before)

    def test_end_rejects_infinite_value_without_mutation(self):
        self.engine.start('pump', 1)
        before = self.settings.get_settings()
        with self.assertRaises(status.InvalidOperationException):
            self.engine.end('pump', 'inf')
        self.assertEqual(self.settings.get_settings(), before)
        self.assertIsNone(self.token_value('pump_comparison'))

    def test_end_rejects_overflowing_comparison(self):
        self.engine.start('pump', -1e308)
        with self.assertRaises(status.InvalidOperationException):
            self.engine.end('pump', 1e308)
        self.assertEqual(self.settings['TOTALS'], [])

    def test_end_handles_naive_stored_dates(self):
        data = self.settings.get_settings()
        data['COMPARISONS'] = [{'token': 'pump', 'date': '2025-01-01T11:59:00', 'comparison': None}]
        self.settings.update_settings(data)
        self.assertEqual(self.engine.end('pump')['duration'], 60_000)

    def test_end_emits_signal(self):
        received = []

        def _slot(name: str, entry: dict) -> None:
            received.append((name, entry))

        signals.comparisonEnded.connect(_slot)
        try:
            self.engine.start('pump', 1)
            entry = self.engine.end('pump', 2)
        finally:
            signals.comparisonEnded.disconnect(_slot)
        self.assertEqual(received, [('pump', entry)])

    def test_untracked_name_still_works(self):
        self.engine.start('ghost', 1)
        self.engine.end('ghost', 2)
        self.assertEqual(self.token_value('ghost_comparison'), 1)


class CancelTests(EngineTestCase):
    def test_cancel(self):
        self.engine.start('pump', 1)
        self.engine.cancel('pump')
        self.assertEqual(self.settings['COMPARISONS'], [])
        self.assertEqual(self.settings['TOTALS'], [])

    def test_cancel_unknown(self):
        with self.assertRaises(status.ComparisonNotFoundException):
            self.engine.cancel('pump')


class RestoreTests(EngineTestCase):
    def test_restore_tokens(self):
        data = self.settings.get_settings()
        data['TOTALS'] = [
            {'token': 'pump', 'duration': 61_000, 'comparison': 1.5},
            {'token': 'ghost', 'duration': 1_000, 'comparison': None},
        ]
        self.settings.update_settings(data)

        self.engine.restore_tokens()
        self.assertEqual(self.token_value('pump_duration'), '1 minute 1 second')
        self.assertEqual(self.token_value('pump_comparison'), 1.5)
        self.assertNotIn('ghost_duration', self.host.tokens)


class CalculateTests(unittest.TestCase):
    def test_calculate_duration(self):
        end = datetime.datetime(2025, 1, 1, 12, 0, 10, tzinfo=datetime.timezone.utc)
        self.assertEqual(Engine.calculate_duration('2025-01-01T12:00:00+00:00', end), 10_000)
        # Start after end still yields a positive duration
        self.assertEqual(Engine.calculate_duration('2025-01-01T12:00:20+00:00', end), 10_000)

    def test_calculate_comparison(self):
        self.assertEqual(Engine.calculate_comparison(1, 3.456), 2.46)
        self.assertEqual(Engine.calculate_comparison('2', '1'), -1)
        self.assertEqual(Engine.calculate_comparison(None, 1), 1)
        with self.assertRaises(status.InvalidOperationException):
            Engine.calculate_comparison(-1e308, 1e308)


class ActionTests(EngineTestCase):
    def test_set_currency(self):
        text = self.engine.set_currency('pump', 1234.5, 'usd')
        self.assertEqual(text, '$1,234.50')
        self.assertEqual(self.token_value('pump_currency'), '$1,234.50')
        self.assertEqual(self.settings['TOTALS'], [])

    def test_set_currency_invalid(self):
        with self.assertRaises(status.InvalidCurrencyException):
            self.engine.set_currency('pump', 1, 'XYZ')
        with self.assertRaises(status.InvalidOperationException):
            self.engine.set_currency('pump', 'ten', 'EUR')
        with self.assertRaises(status.InvalidOperationException):
            self.engine.set_currency('pump', float('inf'), 'EUR')
        self.assertIsNone(self.token_value('pump_currency'))

    def test_calculation(self):
        self.assertEqual(self.engine.calculation('pump', 'multiply', 4, 5), 20)
        self.assertEqual(self.token_value('pump_calculation'), 20)

    def test_calculation_errors_leave_token(self):
        self.engine.calculation('pump', 'add', 1, 1)
        with self.assertRaises(status.InvalidOperationException):
            self.engine.calculation('pump', 'sqrt', 4, 0)
        with self.assertRaises(status.DivisionByZeroException):
            self.engine.calculation('pump', 'divide', 4, 0)
        self.assertEqual(self.token_value('pump_calculation'), 2)


class DutchActionTests(EngineTestCase):
    language = 'nl'

    def test_tokens_use_translated_suffix(self):
        self.assertIn('pump_duur', self.host.tokens)
        self.assertIn('pump_valuta', self.host.tokens)

    def test_set_currency_uses_host_locale(self):
        text = self.engine.set_currency('pump', 1234.5, 'EUR')
        self.assertIn('1.234,50', text)

    def test_duration_labels(self):
        self.engine.start('pump')
        self.clock.advance(days=1, minutes=1)
        self.engine.end('pump')
        self.assertEqual(self.token_value('pump_duur'), '1 dag 1 minuut')


if __name__ == '__main__':
    unittest.main()
