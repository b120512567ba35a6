"""Unit tests for ConfigLoader."""

import pytest
from pathlib import Path
import tempfile
import yaml

from linctl.core import ConfigLoader, DEFAULT_API_URL
from linctl.models import Config
from linctl.exceptions import (
    ConfigNotFoundError,
    InvalidYAMLError,
    InvalidFieldValueError,
)


class TestConfigLoader:
    """Test ConfigLoader functionality."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for test files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def write_config(self, temp_dir, data):
        config_path = temp_dir / "linctl.yaml"
        with open(config_path, 'w') as f:
            yaml.dump(data, f)
        return config_path

    def test_load_valid_config(self, temp_dir):
        """Test loading a config that sets every field."""
        config_path = self.write_config(temp_dir, {
            "default_team": "ENG",
            "output": "plaintext",
            "page_size": 25,
            "api_url": "https://linear.example.test/graphql",
        })

        config = ConfigLoader(config_path).load()

        assert isinstance(config, Config)
        assert config.default_team == "ENG"
        assert config.output == "plaintext"
        assert config.page_size == 25
        assert config.api_url == "https://linear.example.test/graphql"

    def test_defaults_for_missing_fields(self, temp_dir):
        config_path = self.write_config(temp_dir, {"default_team": "OPS"})

        config = ConfigLoader(config_path).load()

        assert config.output == "table"
        assert config.page_size == 50
        assert config.api_url == DEFAULT_API_URL

    def test_empty_file(self, temp_dir):
        config_path = temp_dir / "linctl.yaml"
        config_path.write_text("")

        assert ConfigLoader(config_path).load() == Config()

    def test_config_not_found(self, temp_dir):
        """Test error when config file doesn't exist."""
        config_path = temp_dir / "nonexistent.yaml"

        with pytest.raises(ConfigNotFoundError) as exc_info:
            ConfigLoader(config_path).load()

        assert str(config_path) in str(exc_info.value)

    def test_load_or_default_without_file(self, temp_dir):
        assert ConfigLoader(temp_dir / "linctl.yaml").load_or_default() == Config()

    def test_invalid_yaml(self, temp_dir):
        """Test error when YAML is malformed."""
        config_path = temp_dir / "linctl.yaml"
        config_path.write_text("default_team: [unclosed\n")

        with pytest.raises(InvalidYAMLError):
            ConfigLoader(config_path).load()

    def test_non_mapping_yaml(self, temp_dir):
        config_path = temp_dir / "linctl.yaml"
        config_path.write_text("- just\n- a list\n")

        with pytest.raises(InvalidYAMLError, match="top level must be a mapping"):
            ConfigLoader(config_path).load()

    def test_invalid_output(self, temp_dir):
        config_path = self.write_config(temp_dir, {"output": "xml"})

        with pytest.raises(InvalidFieldValueError) as exc_info:
            ConfigLoader(config_path).load()

        assert "Invalid value for 'output': xml" in str(exc_info.value)
        assert "table, plaintext, json" in str(exc_info.value)

    @pytest.mark.parametrize("page_size", [0, -5, "ten", True])
    def test_invalid_page_size(self, temp_dir, page_size):
        config_path = self.write_config(temp_dir, {"page_size": page_size})

        with pytest.raises(InvalidFieldValueError, match="page_size"):
            ConfigLoader(config_path).load()

    def test_invalid_default_team(self, temp_dir):
        config_path = self.write_config(temp_dir, {"default_team": ""})

        with pytest.raises(InvalidFieldValueError, match="default_team"):
            ConfigLoader(config_path).load()

    def test_invalid_api_url(self, temp_dir):
        config_path = self.write_config(temp_dir, {"api_url": "ftp://linear"})

        with pytest.raises(InvalidFieldValueError, match="api_url"):
            ConfigLoader(config_path).load()

    def test_find_config_in_parent_directory(self, temp_dir, monkeypatch):
        """Test that linctl.yaml is discovered from a nested working directory."""
        self.write_config(temp_dir, {"default_team": "ENG"})
        nested = temp_dir / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        loader = ConfigLoader()

        assert loader.config_path == temp_dir / "linctl.yaml"
        assert loader.get_config_dir() == temp_dir
        assert loader.load().default_team == "ENG"

    def test_search_stops_after_three_parents(self, temp_dir, monkeypatch):
        self.write_config(temp_dir, {"default_team": "ENG"})
        nested = temp_dir / "a" / "b" / "c" / "d"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        loader = ConfigLoader()

        assert loader.config_path == nested / "linctl.yaml"
        assert loader.load_or_default() == Config()
