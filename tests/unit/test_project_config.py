"""Tests for Seastar.toml parsing."""

from pathlib import Path

import pytest

from seastar.config import BuildOptions, ConfigError, DepSpec, ProjectConfig, load_config


def write_config(directory: Path, content: str) -> Path:
    path = directory / "Seastar.toml"
    path.write_text(content)
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_minimal_config(self, tmp_path):
        path = write_config(tmp_path, 'project_name = "hello"\ncompiler = "gcc"\n')

        config = load_config(path)

        assert config.project_name == "hello"
        assert config.compiler == "gcc"
        assert config.is_library is False
        assert config.cpp_compiler is None
        assert config.options == BuildOptions()
        assert config.dependencies == {}
        assert config.base_dir == tmp_path.resolve()

    def test_full_config(self, tmp_path):
        path = write_config(
            tmp_path,
            """
project_name = "ring"
compiler = "clang"
cpp_compiler = "clang++"
is_library = true

[options]
c_flags = "-Wall -O2"
link_flags = "-lm"
cpp_flags = "-std=c++17"
cpp_link_flags = "-lstdc++"

[dependencies]
vec = "https://github.com/acme/vec.git"
fmt = { git = "https://github.com/acme/fmt.git", tag = "v1.0.0" }
util = { path = "../util" }
""",
        )

        config = load_config(path)

        assert config.is_library is True
        assert config.cpp_compiler == "clang++"
        assert config.options.c_flags == "-Wall -O2"
        assert config.options.cpp_link_flags == "-lstdc++"
        assert list(config.dependencies) == ["vec", "fmt", "util"]
        assert config.dependencies["vec"] == DepSpec(git="https://github.com/acme/vec.git")
        assert config.dependencies["fmt"] == DepSpec(git="https://github.com/acme/fmt.git", tag="v1.0.0")
        assert config.dependencies["util"] == DepSpec(path="../util")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "Seastar.toml")

    def test_malformed_toml(self, tmp_path):
        path = write_config(tmp_path, 'project_name = "hello\ncompiler = gcc\n')

        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(path)

    @pytest.mark.parametrize("missing", ["project_name", "compiler"])
    def test_missing_required_field(self, tmp_path, missing):
        fields = {"project_name": '"hello"', "compiler": '"gcc"'}
        del fields[missing]
        path = write_config(tmp_path, "".join(f"{k} = {v}\n" for k, v in fields.items()))

        with pytest.raises(ConfigError, match=missing):
            load_config(path)

    def test_wrong_types(self, tmp_path):
        path = write_config(tmp_path, 'project_name = "hello"\ncompiler = "gcc"\nis_library = "yes"\n')

        with pytest.raises(ConfigError, match="is_library"):
            load_config(path)

    def test_error_names_the_file(self, tmp_path):
        path = write_config(tmp_path, 'project_name = 3\ncompiler = "gcc"\n')

        with pytest.raises(ConfigError, match="Seastar.toml"):
            load_config(path)


class TestDepSpec:
    """Tests for DepSpec.from_value()."""

    def test_plain_url(self):
        assert DepSpec.from_value("a", "https://x/a.git") == DepSpec(git="https://x/a.git")

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown keys: branch"):
            DepSpec.from_value("a", {"git": "https://x/a.git", "branch": "main"})

    def test_wrong_value_type(self):
        with pytest.raises(ConfigError, match="repository URL or a table"):
            DepSpec.from_value("a", 42)

    def test_from_dict_without_path_uses_cwd(self):
        config = ProjectConfig.from_dict({"project_name": "x", "compiler": "cc"})
        assert config.path is None
        assert config.base_dir == Path.cwd()
