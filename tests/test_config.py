"""Tests for configuration manager and settings."""
import os
import unittest
import tempfile
import shutil
from pathlib import Path
from unittest import mock

from financeai.config import AppSettings, Config, ConfigManager
from financeai.utils.exceptions import ConfigError


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.config_manager = ConfigManager(config_file=self.test_dir / "config.json")

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_save_and_load_config(self):
        """Test saving and loading configuration."""
        config = Config(gemini_api_key="test_key", storage_backend="sqlite")

        self.config_manager.save_config(config)
        loaded_config = self.config_manager.load_config()

        self.assertEqual(loaded_config.gemini_api_key, config.gemini_api_key)
        self.assertEqual(loaded_config.storage_backend, "sqlite")

    def test_env_fallback(self):
        """Test the GEMINI_API_KEY fallback when no file exists."""
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "env_key"}):
            config = self.config_manager.load_config()

        self.assertEqual(config.gemini_api_key, "env_key")

    def test_no_config(self):
        """Test that nothing configured yields None."""
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(self.config_manager.load_config())

    def test_corrupted_config(self):
        """Test that an unreadable file raises ConfigError."""
        self.config_manager.config_file.write_text("{oops")

        with self.assertRaises(ConfigError):
            self.config_manager.load_config()

    def test_validate_config_valid(self):
        """Test validation with valid config."""
        is_valid, message = self.config_manager.validate_config(Config(gemini_api_key="test_key"))
        self.assertTrue(is_valid)

    def test_validate_config_missing_key(self):
        """Test validation with missing API key."""
        is_valid, message = self.config_manager.validate_config(Config(gemini_api_key=""))

        self.assertFalse(is_valid)
        self.assertIn("API key", message)

    def test_validate_config_bad_backend(self):
        """Test validation of the storage backend override."""
        config = Config(gemini_api_key="k", storage_backend="postgres")

        is_valid, message = self.config_manager.validate_config(config)
        self.assertFalse(is_valid)


class TestAppSettings(unittest.TestCase):
    """Test AppSettings loading."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_load_yaml(self):
        """Test reading a partial YAML file."""
        path = self.test_dir / "config.yaml"
        path.write_text(
            "llm:\n  model_name: gemini-test\n"
            "storage:\n  backend: sqlite\n"
            "paths:\n  data_dir: /srv/financeai\n"
            "budget:\n  limits:\n    Travel: 800\n",
            encoding="utf-8"
        )

        with mock.patch.dict(os.environ, {}, clear=True):
            settings = AppSettings.load(path)

        self.assertEqual(settings.llm_model_name, "gemini-test")
        self.assertEqual(settings.storage_backend, "sqlite")
        self.assertEqual(settings.budget_limits, {"Travel": 800})
        self.assertEqual(settings.llm_recent_transactions, 10)
        self.assertEqual(settings.records_path, Path("/srv/financeai/records"))

    def test_home_override(self):
        """Test FINANCEAI_HOME relocating the data directory."""
        path = self.test_dir / "config.yaml"
        path.write_text("app:\n  name: Test\n", encoding="utf-8")

        with mock.patch.dict(os.environ, {"FINANCEAI_HOME": str(self.test_dir)}):
            settings = AppSettings.load(path)

        self.assertEqual(settings.database_path, self.test_dir / "financeai.db")

    def test_missing_explicit_file(self):
        """Test that an explicit missing path is an error."""
        with self.assertRaises(FileNotFoundError):
            AppSettings.load(self.test_dir / "absent.yaml")

    def test_default_budget_limits(self):
        """Test the built-in budget limits."""
        self.assertEqual(AppSettings().budget_limits["Food & Dining"], 500)


if __name__ == "__main__":
    unittest.main()
