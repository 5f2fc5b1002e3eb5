from pathlib import Path

from typeprofile.utils.config import Settings, load_settings


def test_env_overrides(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text("node_executable = '/opt/node/bin/node'\nport = 9000\n")
    monkeypatch.setenv("TYPEPROFILE_PORT", "9100")
    monkeypatch.setenv("TYPEPROFILE_STRUCTURED_LOGGING", "true")
    settings = load_settings(config_path)
    assert settings.node_executable == "/opt/node/bin/node"
    assert settings.port == 9100
    assert settings.structured_logging is True


def test_file_values_are_normalized(tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
node-options = ["--max-old-space-size=256", "--no-warnings"]
shutdown_timeout = 2
template_path = "templates/page.html"
"""
    )

    settings = load_settings(config_path)

    assert settings.node_options == ("--max-old-space-size=256", "--no-warnings")
    assert settings.shutdown_timeout == 2.0
    assert isinstance(settings.shutdown_timeout, float)
    assert settings.template_path == Path("templates/page.html")
    assert settings.example_path is None


def test_node_options_from_env_are_split(tmp_path, monkeypatch):
    monkeypatch.setenv("TYPEPROFILE_NODE_OPTIONS", "--no-warnings, --jitless")
    settings = load_settings(tmp_path / "missing.toml")
    assert settings.node_options == ("--no-warnings", "--jitless")


def test_unknown_keys_are_ignored(tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text("source_url = 'snippet.js'\nunknown_key = 1\n")
    settings = load_settings(config_path)
    assert settings.source_url == "snippet.js"
    assert not hasattr(settings, "unknown_key")


def test_project_config_discovered_in_parent_directory(tmp_path, monkeypatch):
    project_root = tmp_path / "repo"
    nested_dir = project_root / "src" / "module"
    nested_dir.mkdir(parents=True)

    config_path = project_root / ".typeprofile.toml"
    config_path.write_text("source_url = 'parent-tree.js'\n")

    monkeypatch.chdir(nested_dir)

    settings = load_settings()

    assert settings.source_url == "parent-tree.js"


def test_project_config_without_dot_discovered_in_parent_directory(tmp_path, monkeypatch):
    project_root = tmp_path / "repo"
    nested_dir = project_root / "src"
    nested_dir.mkdir(parents=True)

    config_path = project_root / "typeprofile.toml"
    config_path.write_text("host = '0.0.0.0'\n")

    monkeypatch.chdir(nested_dir)

    settings = load_settings()

    assert settings.host == "0.0.0.0"


def test_defaults():
    settings = Settings()
    assert settings.node_executable == "node"
    assert settings.source_url == "test"
    assert settings.port == 8080
