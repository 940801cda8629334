"""
Tests for settings files and client-supplied options.
"""

import json
import os
import tempfile
import unittest

from asteroid_ls.config import CONFIG_FILENAME, ServerConfig, find_config_file


def write_settings(directory: str, content) -> str:
    path = os.path.join(directory, CONFIG_FILENAME)
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(content, str):
            f.write(content)
        else:
            json.dump(content, f)
    return path


class TestDefaults(unittest.TestCase):
    def test_defaults(self):
        config = ServerConfig()
        self.assertEqual(config.comment_lead, "--")
        self.assertIsNone(config.log_file)
        self.assertTrue(config.diagnostics)

    def test_frozen(self):
        with self.assertRaises(AttributeError):
            ServerConfig().comment_lead = "%"


class TestUpdated(unittest.TestCase):
    def test_applies_known_keys(self):
        config = ServerConfig().updated(
            {"commentLead": "%", "logFile": "/tmp/ls.log", "diagnostics": False}
        )
        self.assertEqual(config.comment_lead, "%")
        self.assertEqual(config.log_file, "/tmp/ls.log")
        self.assertFalse(config.diagnostics)

    def test_returns_copy(self):
        original = ServerConfig()
        original.updated({"commentLead": "%"})
        self.assertEqual(original.comment_lead, "--")

    def test_empty_options(self):
        config = ServerConfig(comment_lead="%")
        self.assertIs(config.updated(None), config)
        self.assertIs(config.updated({}), config)

    def test_unknown_keys_ignored(self):
        config = ServerConfig().updated({"formatter": "black", "diagnostics": False})
        self.assertFalse(config.diagnostics)

    def test_empty_log_file_clears_it(self):
        config = ServerConfig(log_file="/tmp/a.log").updated({"logFile": ""})
        self.assertIsNone(config.log_file)

    def test_bad_values(self):
        for options in (
            {"commentLead": "#"},
            {"commentLead": None},
            {"logFile": 3},
            {"diagnostics": "yes"},
            ["commentLead", "%"],
        ):
            with self.subTest(options=options):
                with self.assertRaises(ValueError):
                    ServerConfig().updated(options)


class TestSettingsFile(unittest.TestCase):
    def test_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_settings(tmp, {"commentLead": "%"})
            config = ServerConfig.load(path)
        self.assertEqual(config.comment_lead, "%")
        self.assertTrue(config.diagnostics)

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                ServerConfig.load(os.path.join(tmp, CONFIG_FILENAME))

    def test_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_settings(tmp, "{not json")
            with self.assertRaises(ValueError):
                ServerConfig.load(path)

    def test_not_an_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_settings(tmp, "[1, 2]")
            with self.assertRaises(ValueError):
                ServerConfig.load(path)

    def test_bad_value_names_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_settings(tmp, {"commentLead": "//"})
            with self.assertRaises(ValueError) as ctx:
                ServerConfig.load(path)
        self.assertIn(CONFIG_FILENAME, str(ctx.exception))


class TestDiscovery(unittest.TestCase):
    def test_walks_up_to_parent(self):
        with tempfile.TemporaryDirectory() as tmp:
            expected = write_settings(tmp, {"commentLead": "%"})
            nested = os.path.join(tmp, "src", "lib")
            os.makedirs(nested)

            self.assertEqual(
                os.path.realpath(find_config_file(nested)), os.path.realpath(expected)
            )
            self.assertEqual(ServerConfig.discover(nested).comment_lead, "%")

    def test_starts_from_file_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            write_settings(tmp, {"diagnostics": False})
            source = os.path.join(tmp, "main.ast")
            with open(source, "w", encoding="utf-8") as f:
                f.write("let x = 1\n")

            self.assertFalse(ServerConfig.discover(source).diagnostics)

    def test_nearest_file_wins(self):
        with tempfile.TemporaryDirectory() as tmp:
            write_settings(tmp, {"commentLead": "%"})
            inner = os.path.join(tmp, "inner")
            os.makedirs(inner)
            write_settings(inner, {"commentLead": "--"})

            self.assertEqual(ServerConfig.discover(inner).comment_lead, "--")


if __name__ == "__main__":
    unittest.main()
