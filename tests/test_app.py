"""
Integration tests for FlowUtilities.core.app.App startup, variable changes and shutdown.
"""
import unittest
from unittest.mock import patch

import FlowUtilities
from FlowUtilities.core.app import App
from tests.base import BaseTestCase

KIND_SUFFIXES = ('duration', 'currency', 'comparison', 'calculation')


class AppTests(BaseTestCase):
    def test_first_start_writes_defaults(self):
        self.app.on_init()
        self.assertEqual(self.app.get_settings(), {'VARIABLES': [], 'COMPARISONS': [], 'TOTALS': []})
        self.assertEqual(self.host.tokens, {})

    def test_added_names_get_four_null_tokens(self):
        self.app.on_init()
        self.app.set_variables(['pump', 'dryer'])

        for name in ('pump', 'dryer'):
            ids = [f'{name}_{kind}' for kind in KIND_SUFFIXES]
            for token_id in ids:
                self.assertIsNone(self.token_value(token_id))
        self.assertEqual(len(self.host.tokens), 8)

    def test_removed_names_lose_their_tokens(self):
        self.app.on_init()
        self.app.set_variables(['pump', 'dryer'])
        self.app.set_variables(['dryer'])

        for kind in KIND_SUFFIXES:
            self.assertNotIn(f'pump_{kind}', self.host.tokens)
            self.assertIn(f'dryer_{kind}', self.host.tokens)

    def test_names_sharing_tokens_keep_them(self):
        self.app.on_init()
        self.app.set_variables(['Pump', 'pump'])
        self.assertEqual(self.app.get_settings()['VARIABLES'], ['Pump'])

        self.app.set_variables(['pump'])
        self.assertEqual(self.app.get_settings()['VARIABLES'], ['pump'])
        for kind in KIND_SUFFIXES:
            self.assertIn(f'pump_{kind}', self.host.tokens)
        self.assertEqual(len(self.host.tokens), 4)

    def test_non_latin_names_do_not_share_tokens(self):
        self.app.on_init()
        self.app.set_variables(['温度', '湿度'])
        self.assertEqual(len(self.host.tokens), 8)

        self.app.engine.start('温度', 1)
        self.app.engine.end('温度', 3)
        self.assertEqual(self.token_value('温度_comparison'), 2)
        self.assertIsNone(self.token_value('湿度_comparison'))

    def test_set_variables_discards_untracked_names(self):
        self.app.on_init()
        self.app.set_variables(['pump'])
        self.app.engine.start('ghost', 1)
        self.app.engine.end('ghost', 2)
        self.app.engine.start('ghost', 5)
        self.assertIn('ghost_comparison', self.host.tokens)

        self.app.set_variables(['pump', 'dryer'])

        data = self.app.get_settings()
        self.assertEqual(data['COMPARISONS'], [])
        self.assertEqual(data['TOTALS'], [])
        self.assertNotIn('ghost_duration', self.host.tokens)
        self.assertNotIn('ghost_comparison', self.host.tokens)
        self.assertEqual(len(self.host.tokens), 8)

    def test_restart_restores_state(self):
        self.app.on_init()
        self.app.set_variables(['pump'])
        self.app.engine.start('pump', 1)
        self.clock.advance(minutes=3)
        self.app.engine.end('pump', 4)
        self.app.engine.start('pump', 10)
        self.app.on_uninit()
        self.assertEqual(self.host.tokens, {})

        host = self.new_host()
        restarted = App(host, clock=self.clock)
        restarted.on_init()

        self.assertEqual(restarted.get_settings(), self.app.get_settings())
        self.assertEqual(host.tokens['pump_duration'].value, '3 minutes')
        self.assertEqual(host.tokens['pump_comparison'].value, 3)
        self.assertIsNone(host.tokens['pump_currency'].value)

        # The comparison started before the restart can still be ended
        self.clock.advance(seconds=30)
        self.assertEqual(restarted.engine.end('pump', 11)['duration'], 30_000)


class StartTests(BaseTestCase):
    def test_start_helper(self):
        app = FlowUtilities.start(self.host)
        self.assertIsInstance(app, App)
        self.assertIn('action_START', self.host.actions)

    def test_start_helper_defaults_to_local_host(self):
        with patch('FlowUtilities.host.host.LocalHost.default_settings_path',
                   return_value=self.temp_dir / 'default' / 'settings.json'):
            app = FlowUtilities.start()
        self.assertTrue((self.temp_dir / 'default' / 'settings.json').exists())
        app.on_uninit()


if __name__ == '__main__':
    unittest.main()
