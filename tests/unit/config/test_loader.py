from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from mrm.config import read_config_file, read_toml_file, read_yaml_file
from mrm.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: "FakeFilesystem") -> None:
        content = """
version = "exp"

[[commands]]
name = "web"
command = "npm"
"""
        path = Path("/project/mrm.toml")
        fs.create_file(path, contents=content)

        result = read_toml_file(path)

        assert result == {
            "version": "exp",
            "commands": [{"name": "web", "command": "npm"}],
        }

    def test_raises_file_not_found_for_missing_file(
        self, fs: "FakeFilesystem"
    ) -> None:
        with pytest.raises(FileNotFoundError):
            read_toml_file(Path("/project/missing.toml"))

    def test_raises_config_load_error_for_invalid_toml(
        self, fs: "FakeFilesystem"
    ) -> None:
        path = Path("/project/mrm.toml")
        fs.create_file(path, contents='[commands\nname = "unclosed"\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            read_toml_file(path)

        assert exc_info.value.path == path
        assert "Failed to parse TOML file" in str(exc_info.value)

    def test_raises_config_load_error_for_invalid_utf8(
        self, fs: "FakeFilesystem"
    ) -> None:
        path = Path("/project/mrm.toml")
        fs.create_file(path, contents=b'version = "exp"\n# \xff\xfe\n')

        with pytest.raises(ConfigLoadError) as exc_info:
            read_config_file(path)

        assert exc_info.value.path == path
        assert "invalid UTF-8 at byte 18" in str(exc_info.value)


class TestReadYamlFile:
    def test_parses_valid_yaml(self, fs: "FakeFilesystem") -> None:
        content = """
version: exp
commands:
  - name: web
    command: npm
    args: [run, dev]
"""
        path = Path("/project/mrm.yaml")
        fs.create_file(path, contents=content)

        result = read_yaml_file(path)

        assert result == {
            "version": "exp",
            "commands": [{"name": "web", "command": "npm", "args": ["run", "dev"]}],
        }

    def test_empty_document_is_empty_mapping(self, fs: "FakeFilesystem") -> None:
        path = Path("/project/mrm.yaml")
        fs.create_file(path, contents="")

        assert read_yaml_file(path) == {}

    def test_invalid_yaml_reports_location(self, fs: "FakeFilesystem") -> None:
        path = Path("/project/mrm.yaml")
        fs.create_file(path, contents="version: exp\ncommands: [unclosed\n")

        with pytest.raises(ConfigLoadError) as exc_info:
            read_yaml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line is not None
        assert error.column is not None

    def test_non_mapping_document_raises(self, fs: "FakeFilesystem") -> None:
        path = Path("/project/mrm.yaml")
        fs.create_file(path, contents="- just\n- a list\n")

        with pytest.raises(ConfigLoadError, match="Expected a mapping"):
            read_yaml_file(path)


class TestReadConfigFile:
    @pytest.mark.parametrize("name", ["mrm.toml", "mrm.tml", "config.TOML"])
    def test_t_suffix_reads_toml(self, fs: "FakeFilesystem", name: str) -> None:
        path = Path("/project") / name
        fs.create_file(path, contents='version = "exp"\n')

        assert read_config_file(path) == {"version": "exp"}

    @pytest.mark.parametrize("name", ["mrm.yaml", "mrm.yml", "mrmrc"])
    def test_other_suffixes_read_yaml(self, fs: "FakeFilesystem", name: str) -> None:
        path = Path("/project") / name
        fs.create_file(path, contents="version: exp\n")

        assert read_config_file(path) == {"version": "exp"}

    def test_missing_file_raises_load_error(self, fs: "FakeFilesystem") -> None:
        path = Path("/project/mrm.yaml")

        with pytest.raises(ConfigLoadError) as exc_info:
            read_config_file(path)

        assert exc_info.value.path == path
        assert "Failed to read config file" in str(exc_info.value)
