"""Tests for configuration loading."""

import logging

from qmltypegen.config import Config, read_config


class TestReadConfig:
    """Test config file discovery and fallbacks."""

    def test_defaults(self, tmp_path):
        config = read_config(tmp_path)
        assert config == Config()
        assert config.admonition_aliases == {"INFO": "NOTE"}

    def test_own_file(self, tmp_path):
        (tmp_path / ".qmltypegen.toml").write_text(
            '[qmltypegen]\ndescriptor_name = "qmldir.md"\nlocal_module_prefix = "Shell"\n'
        )
        config = read_config(tmp_path)
        assert config.descriptor_name == "qmldir.md"
        assert config.local_module_prefix == "Shell"
        assert config.delimiter == "-----"

    def test_pyproject_fallback(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            '[tool.qmltypegen]\ndelimiter = "+++"\n\n[tool.qmltypegen.admonition_aliases]\nTIP = "NOTE"\n'
        )
        config = read_config(tmp_path)
        assert config.delimiter == "+++"
        assert config.admonition_aliases == {"TIP": "NOTE"}

    def test_own_file_wins(self, tmp_path):
        (tmp_path / ".qmltypegen.toml").write_text('[qmltypegen]\ndelimiter = "==="\n')
        (tmp_path / "pyproject.toml").write_text('[tool.qmltypegen]\ndelimiter = "+++"\n')
        assert read_config(tmp_path).delimiter == "==="

    def test_invalid_toml_warns(self, tmp_path, caplog):
        (tmp_path / ".qmltypegen.toml").write_text("[qmltypegen\n")
        with caplog.at_level(logging.WARNING):
            config = read_config(tmp_path)
        assert config == Config()
        assert "Could not read" in caplog.text

    def test_unknown_keys_ignored(self, tmp_path):
        (tmp_path / ".qmltypegen.toml").write_text('[qmltypegen]\ncolour = "blue"\n')
        assert read_config(tmp_path) == Config()
