"""Tests for configuration loading."""

import os
import shutil
import sys
import tempfile
import unittest

import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_remap.config import DEFAULTS, load_config, validate_config


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, data):
        path = os.path.join(self.tmpdir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                yaml.safe_dump(data, f, allow_unicode=True)
        return path

    def test_defaults_without_file(self):
        self.assertEqual(load_config(), DEFAULTS)
        self.assertEqual(load_config(os.path.join(self.tmpdir, "missing.yaml")), DEFAULTS)

    def test_defaults_not_mutated(self):
        config = load_config(self._write({"header_row": 3}))
        self.assertEqual(config["header_row"], 3)
        self.assertEqual(DEFAULTS["header_row"], 1)

    def test_file_values_merged(self):
        config = load_config(self._write({"unresolved_placeholder": "#REF", "log_level": "DEBUG"}))
        self.assertEqual(config["unresolved_placeholder"], "#REF")
        self.assertEqual(config["log_level"], "DEBUG")
        self.assertEqual(config["summary_sheet_name"], "汇总表")

    def test_empty_file(self):
        self.assertEqual(load_config(self._write("")), DEFAULTS)

    def test_overrides_win(self):
        path = self._write({"log_level": "DEBUG"})
        config = load_config(path, overrides={"log_level": "WARNING", "header_row": None})
        self.assertEqual(config["log_level"], "WARNING")
        self.assertEqual(config["header_row"], 1)

    def test_not_a_mapping(self):
        with self.assertRaises(ValueError):
            load_config(self._write("- a\n- b\n"))

    def test_unknown_version(self):
        with self.assertRaises(ValueError):
            load_config(self._write({"config_version": 2}))


class TestValidateConfig(unittest.TestCase):
    def test_bad_header_row(self):
        for value in (0, -1, "2"):
            with self.assertRaises(ValueError):
                validate_config(dict(DEFAULTS, header_row=value))

    def test_defaults_valid(self):
        validate_config(dict(DEFAULTS))


if __name__ == "__main__":
    unittest.main()
