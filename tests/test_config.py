"""
Tests for nsconfig.json handling.

Tests cover:
- Strict parsing (unknown, missing and mistyped fields)
- Value validation
- Loading, saving and default creation
- Include/exclude file selection
"""

import json

import pytest

from nullscript.config import (
    CONFIG_FILENAME,
    ProjectConfig,
    create_default_config,
    load_project_config,
    validate_config_file,
)
from nullscript.errors import ConfigError


def config_dict(**overrides):
    data = ProjectConfig().to_dict()
    data.update(overrides)
    return data


class TestParsing:
    """Test ProjectConfig.from_json."""

    def test_defaults_round_trip(self):
        config = ProjectConfig.from_json(ProjectConfig().to_json())

        assert config.compiler_options.root_dir == "./src"
        assert config.compiler_options.out_dir == "./dist"
        assert config.compiler_options.reports.default_format == "html"
        assert config.include == ["src/**/*.ns"]

    def test_invalid_json(self):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            ProjectConfig.from_json("{not json")

    def test_unknown_top_level_field(self):
        with pytest.raises(ConfigError, match="Unknown field 'watch'"):
            ProjectConfig.from_json(json.dumps(config_dict(watch=True)))

    def test_unknown_nested_field(self):
        data = config_dict()
        data["compilerOptions"]["strict"] = True
        with pytest.raises(ConfigError, match="Unknown field 'strict' in compilerOptions"):
            ProjectConfig.from_json(json.dumps(data))

    def test_missing_field(self):
        data = config_dict()
        del data["exclude"]
        with pytest.raises(ConfigError, match="Missing required field 'exclude'"):
            ProjectConfig.from_json(json.dumps(data))

    def test_wrong_type(self):
        with pytest.raises(ConfigError, match="must be a list of strings"):
            ProjectConfig.from_json(json.dumps(config_dict(include="src")))

    def test_empty_out_dir(self):
        data = config_dict()
        data["compilerOptions"]["outDir"] = "  "
        with pytest.raises(ConfigError, match="outDir cannot be empty"):
            ProjectConfig.from_json(json.dumps(data))

    def test_bad_report_format(self):
        data = config_dict()
        data["compilerOptions"]["reports"]["defaultFormat"] = "pdf"
        with pytest.raises(ConfigError) as info:
            ProjectConfig.from_json(json.dumps(data))
        assert "html" in info.value.hint

    def test_empty_include(self):
        with pytest.raises(ConfigError, match="at least one pattern"):
            ProjectConfig.from_json(json.dumps(config_dict(include=[])))

    def test_empty_exclude_entry(self):
        with pytest.raises(ConfigError, match="exclude patterns cannot be empty"):
            ProjectConfig.from_json(json.dumps(config_dict(exclude=[""])))


class TestFiles:
    """Test loading and writing nsconfig.json."""

    def test_absent_file_gives_defaults(self, tmp_path):
        config = load_project_config(tmp_path)
        assert config == ProjectConfig()
        assert config.source_path is None

    def test_invalid_file_is_error(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('{"include": []}', encoding="utf-8")
        with pytest.raises(ConfigError) as info:
            load_project_config(tmp_path)
        assert info.value.file_path.endswith(CONFIG_FILENAME)

    def test_create_default(self, tmp_path):
        path = create_default_config(tmp_path)

        assert path.name == CONFIG_FILENAME
        assert json.loads(path.read_text(encoding="utf-8"))["compilerOptions"]["outDir"] == "./dist"
        assert load_project_config(tmp_path).source_path == path

    def test_create_refuses_overwrite(self, tmp_path):
        create_default_config(tmp_path)
        with pytest.raises(ConfigError, match="already exists"):
            create_default_config(tmp_path)
        create_default_config(tmp_path, overwrite=True)

    def test_validate_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            validate_config_file(tmp_path / CONFIG_FILENAME)

    def test_two_space_indent(self):
        assert ProjectConfig().to_json().startswith('{\n  "compilerOptions"')


class TestMatching:
    """Test include/exclude selection."""

    @pytest.fixture
    def config(self):
        return ProjectConfig()

    @pytest.mark.parametrize("path", ["src/app.ns", "src/lib/deep/util.ns", "./src/app.ns"])
    def test_included(self, config, path):
        assert config.matches(path)

    @pytest.mark.parametrize("path", [
        "lib/app.ns",
        "src/app.ts",
        "src/node_modules/pkg/index.ns",
        "dist/app.ns",
    ])
    def test_not_included(self, config, path):
        assert not config.matches(path)

    def test_exclude_glob(self):
        config = ProjectConfig(exclude=["**/*.test.ns"])
        assert not config.matches("src/app.test.ns")
        assert config.matches("src/app.ns")

    def test_exclude_nested_path(self):
        config = ProjectConfig(exclude=["src/generated"])
        assert not config.matches("src/generated/a.ns")
        assert config.matches("src/generated_not/a.ns")

    def test_absolute_path_with_root(self, config, tmp_path):
        assert config.matches(tmp_path / "src" / "a.ns", root=tmp_path)
        assert not config.matches(tmp_path.parent / "other" / "a.ns", root=tmp_path)
