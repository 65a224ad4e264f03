#!/usr/bin/env python3
"""
Tests for the scheduler command line entry point.
"""

import unittest
from unittest.mock import Mock, patch

import main
from core.config_loader import AppConfig
from core.exceptions import NotFoundError
from pipeline.runner import RunResult


class TestMainCli(unittest.TestCase):

    def setUp(self):
        for target, kwargs in (
            ('main.load_config', {'return_value': AppConfig()}),
            ('main.AppContext.build', {'return_value': Mock()}),
            ('main.init_db', {}),
            ('main.configure_logging', {}),
        ):
            patcher = patch(target, **kwargs)
            setattr(self, target.rsplit('.', 1)[-1], patcher.start())
            self.addCleanup(patcher.stop)

    @patch('main.run_once', return_value=RunResult())
    def test_default_command_runs_once(self, mock_run_once):
        self.assertEqual(main.main([]), 0)
        self.init_db.assert_called_once()
        mock_run_once.assert_called_once_with(self.build.return_value, source="cli")

    @patch('main.run_once', return_value=RunResult(skipped=True))
    def test_skipped_cycle_is_success(self, _):
        self.assertEqual(main.main(['run-once']), 0)

    def test_init_db_command(self):
        self.assertEqual(main.main(['--config', 'other.yaml', 'init-db']), 0)
        self.load_config.assert_called_once_with('other.yaml')
        self.init_db.assert_called_once()

    @patch('main.ingest_opportunity', side_effect=NotFoundError("Opportunity", 7))
    @patch('main.placement_uow')
    def test_engine_error_exits_1(self, _, __):
        self.assertEqual(main.main(['ingest-opportunity', '7']), 1)

    @patch('main.run_once', side_effect=RuntimeError("database unreachable"))
    def test_unexpected_error_exits_2(self, _):
        self.assertEqual(main.main(['run-once']), 2)


if __name__ == '__main__':
    unittest.main()
