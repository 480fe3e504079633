"""Tests for docdoctor.core.config — Config loading, whitelist editing."""

from pathlib import Path

import pytest
import yaml

from docdoctor.core.config import Config, WhitelistConfig


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Set up a temp config location."""
    config_path = tmp_path / "config.yaml"
    monkeypatch.setenv("DOCDOCTOR_CONFIG", str(config_path))
    monkeypatch.delenv("DOCDOCTOR_DB_PATH", raising=False)
    monkeypatch.delenv("DOCDOCTOR_DIAGNOSTICS", raising=False)
    return tmp_path


def _write_config(path: Path, data: dict):
    config_file = path / "config.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


class TestConfigLoad:
    def test_defaults(self, config_dir):
        cfg = Config.load()
        assert cfg.max_files == 1000
        assert cfg.max_problems == 1000
        assert cfg.max_file_size == 1024 * 1024
        assert cfg.check_main_function is False
        assert cfg.file_whitelist == []
        assert cfg.function_whitelist == {}
        assert cfg.diagnostics_command is None

    def test_load_from_yaml(self, config_dir):
        _write_config(config_dir, {
            "check_main_function": True,
            "file_whitelist": ["src/legacy/", "test/"],
            "function_whitelist": {"src/a.c": ["f1", "f2"], "*": ["init"]},
            "return_type_whitelist": ["void"],
            "max_problems": 50,
            "diagnostics_command": "clang -fsyntax-only",
        })
        cfg = Config.load()
        assert cfg.check_main_function is True
        assert cfg.file_whitelist == ["src/legacy/", "test/"]
        assert cfg.function_whitelist == {"src/a.c": ["f1", "f2"], "*": ["init"]}
        assert cfg.return_type_whitelist == ["void"]
        assert cfg.max_problems == 50
        assert cfg.diagnostics_command == "clang -fsyntax-only"

    def test_function_whitelist_normalized(self, config_dir):
        _write_config(config_dir, {
            "function_whitelist": {
                "src/a.c": ["  f1  ", "", None],
                "src/b.c": [],
                "src/c.c": "not-a-list",
            },
        })
        cfg = Config.load()
        assert cfg.function_whitelist == {"src/a.c": ["f1"]}

    def test_bad_types_ignored(self, config_dir):
        _write_config(config_dir, {
            "file_whitelist": "src/",
            "function_whitelist": ["f"],
        })
        cfg = Config.load()
        assert cfg.file_whitelist == []
        assert cfg.function_whitelist == {}

    def test_env_overrides_yaml(self, config_dir, monkeypatch):
        _write_config(config_dir, {"db_path": "from-yaml.db"})
        monkeypatch.setenv("DOCDOCTOR_DB_PATH", "/custom/problems.db")
        monkeypatch.setenv("DOCDOCTOR_DIAGNOSTICS", "gcc -fsyntax-only")
        cfg = Config.load()
        assert cfg.db_path == "/custom/problems.db"
        assert cfg.diagnostics_command == "gcc -fsyntax-only"

    def test_missing_config_file(self, config_dir):
        # No config file created — should use defaults without error
        cfg = Config.load()
        assert cfg.db_path == ".doc-doctor/problems.db"

    def test_invalid_yaml_uses_defaults(self, config_dir):
        (config_dir / "config.yaml").write_text("file_whitelist: [unclosed\n")
        cfg = Config.load()
        assert cfg.file_whitelist == []

    def test_workspace_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DOCDOCTOR_CONFIG", raising=False)
        (tmp_path / ".doc-doctor.yaml").write_text(yaml.dump({"file_whitelist": ["gen/"]}))
        cfg = Config.load(workspace=str(tmp_path))
        assert cfg.file_whitelist == ["gen/"]


class TestResolvedDbPath:
    def test_relative_to_workspace(self, tmp_path):
        cfg = Config()
        assert cfg.resolved_db_path(str(tmp_path)) == tmp_path / ".doc-doctor" / "problems.db"

    def test_absolute_kept(self, tmp_path):
        cfg = Config(db_path=str(tmp_path / "x.db"))
        assert cfg.resolved_db_path("/elsewhere") == tmp_path / "x.db"

    def test_expands_tilde(self):
        cfg = Config(db_path="~/test.db")
        assert "~" not in str(cfg.resolved_db_path())


class TestWhitelistSnapshot:
    def test_snapshot_fields(self, tmp_path):
        cfg = Config(
            check_main_function=True,
            file_whitelist=["a/"],
            function_whitelist={"*": ["f"]},
            return_type_whitelist=["void"],
        )
        wl = cfg.whitelist(str(tmp_path))
        assert isinstance(wl, WhitelistConfig)
        assert wl.check_main_function is True
        assert wl.file_whitelist == ("a/",)
        assert wl.function_whitelist == {"*": frozenset({"f"})}
        assert wl.return_type_whitelist == frozenset({"void"})
        assert wl.workspace_root == str(tmp_path.resolve())

    def test_snapshot_independent_of_later_edits(self):
        cfg = Config(file_whitelist=["a/"])
        wl = cfg.whitelist()
        cfg.file_whitelist.append("b/")
        assert wl.file_whitelist == ("a/",)
        assert wl.workspace_root is None


class TestSetConfig:
    def test_set_new_key(self, config_dir):
        Config.set_config("max_problems", 10)
        data = yaml.safe_load((config_dir / "config.yaml").read_text())
        assert data["max_problems"] == 10

    def test_set_preserves_other_keys(self, config_dir):
        _write_config(config_dir, {"check_main_function": True, "max_files": 5})
        Config.set_config("max_files", 7)
        data = yaml.safe_load((config_dir / "config.yaml").read_text())
        assert data == {"check_main_function": True, "max_files": 7}

    def test_set_creates_parent_dirs(self, tmp_path, monkeypatch):
        deep_path = tmp_path / "a" / "b" / "config.yaml"
        monkeypatch.setenv("DOCDOCTOR_CONFIG", str(deep_path))
        Config.set_config("check_main_function", True)
        assert deep_path.exists()


class TestAddToWhitelist:
    def test_global_function(self, config_dir):
        assert Config.add_to_whitelist("function", "init") is True
        assert Config.load().function_whitelist == {"*": ["init"]}

    def test_per_file_function(self, config_dir):
        Config.add_to_whitelist("function", "int f(int x)", file="src\\a.c")
        assert Config.load().function_whitelist == {"src/a.c": ["int f(int x)"]}

    def test_duplicate(self, config_dir):
        Config.add_to_whitelist("file", "vendor/")
        assert Config.add_to_whitelist("file", "vendor/") is False
        assert Config.load().file_whitelist == ["vendor/"]

    def test_return_type(self, config_dir):
        Config.add_to_whitelist("return", "void")
        assert Config.load().return_type_whitelist == ["void"]

    def test_unknown_kind(self, config_dir):
        with pytest.raises(ValueError):
            Config.add_to_whitelist("macro", "X")

    def test_empty_value(self, config_dir):
        with pytest.raises(ValueError):
            Config.add_to_whitelist("file", "   ")
