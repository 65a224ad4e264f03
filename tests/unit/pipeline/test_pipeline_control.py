#!/usr/bin/env python3
"""
Tests for the host-wide scheduler lock.
"""

import os
import tempfile
import unittest

from pipeline.control import PipelineController


class TestPipelineController(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.lock_file = os.path.join(self.tmpdir.name, "scheduler.lock")

    def test_acquire_and_release(self):
        controller = PipelineController(self.lock_file)
        self.assertTrue(controller.acquire_lock("cli", {"now": "2026-03-02T12:00:00+00:00"}))

        info = controller.get_lock_info()
        self.assertEqual(info["source"], "cli")
        self.assertEqual(info["pid"], os.getpid())
        self.assertEqual(info["now"], "2026-03-02T12:00:00+00:00")

        controller.release_lock()
        self.assertIsNone(controller.get_lock_info())
        self.assertTrue(controller.acquire_lock("http"))
        controller.release_lock()

    def test_second_holder_is_refused(self):
        first = PipelineController(self.lock_file)
        second = PipelineController(self.lock_file)
        self.assertTrue(first.acquire_lock("cli"))
        try:
            self.assertFalse(second.acquire_lock("http"))
            self.assertEqual(second.get_lock_info()["source"], "cli")
        finally:
            first.release_lock()
        self.assertTrue(second.acquire_lock("http"))
        second.release_lock()

    def test_release_without_lock_is_noop(self):
        PipelineController(self.lock_file).release_lock()

    def test_lock_info_missing_or_corrupt(self):
        controller = PipelineController(self.lock_file)
        self.assertIsNone(controller.get_lock_info())
        with open(self.lock_file, "w") as f:
            f.write("{not json")
        self.assertIsNone(controller.get_lock_info())

    def test_unopenable_lock_file(self):
        controller = PipelineController(os.path.join(self.tmpdir.name, "missing", "scheduler.lock"))
        self.assertFalse(controller.acquire_lock("cli"))


if __name__ == '__main__':
    unittest.main()
