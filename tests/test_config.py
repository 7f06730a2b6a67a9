#!/usr/bin/env python3
"""Configuration values and the settings that consume them."""
import logging
import unittest
from unittest import mock

from orderchat.app.config import Config
from orderchat.utils.logger import get_logger


class TestConfig(unittest.TestCase):

    def test_defaults_are_valid(self):
        self.assertTrue(Config.validate())

    def test_invalid_values_are_reported(self):
        with mock.patch.multiple(Config, PIN_HASH_ITERATIONS=0, LOG_LEVEL="LOUD"):
            with self.assertRaises(ValueError) as ctx:
                Config.validate()
        self.assertIn("PIN_HASH_ITERATIONS", str(ctx.exception))
        self.assertIn("LOG_LEVEL", str(ctx.exception))

    def test_api_key_per_provider(self):
        with mock.patch.multiple(Config, OPENAI_API_KEY="sk-1", GROQ_API_KEY="gsk-2"):
            self.assertEqual(Config.api_key_for("openai"), "sk-1")
            self.assertEqual(Config.api_key_for("groq"), "gsk-2")
            self.assertIsNone(Config.api_key_for("other"))


class TestLogger(unittest.TestCase):

    def test_level_follows_config(self):
        root = get_logger()
        self.assertEqual(root.name, "orderchat")
        self.assertEqual(root.level, logging.getLevelName(Config.LOG_LEVEL))

    def test_module_loggers_are_children(self):
        self.assertEqual(get_logger("orderchat.app.controller").name, "orderchat.app.controller")
        self.assertEqual(get_logger("tests").parent.name, "orderchat")


if __name__ == "__main__":
    unittest.main()
