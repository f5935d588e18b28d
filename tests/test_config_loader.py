"""Tests for appdistro.yml discovery, resolution and parsing."""

import pytest

from appdistro.constants import BACKEND_CLI, DEFAULT_DISTRIBUTE_COMMAND
from appdistro.core import ConfigLoader
from appdistro.exceptions import ConfigurationError
from appdistro.models import Platform

from tests.conftest import ANDROID_APP_ID


def test_load_base_config(config, tmp_path) -> None:
    assert config.project_name == "demo"
    assert config.root_dir == tmp_path.resolve()
    assert config.list_platforms() == ["android", "ios"]
    assert config.distribution.backend == BACKEND_CLI
    assert config.distribution.command == DEFAULT_DISTRIBUTE_COMMAND
    assert config.distribution.groups == ["qa-team", "internal"]
    assert config.github_repo == "acme/mobile"

    android = config.get_target(Platform.ANDROID)
    assert android.app_id == ANDROID_APP_ID
    assert android.build_command == "echo building android"
    assert android.groups is None


def test_find_config_walks_up(write_config, tmp_path) -> None:
    path = write_config()
    nested = tmp_path / "android" / "app"
    nested.mkdir(parents=True)

    assert ConfigLoader(nested).find_config() == path.resolve()


def test_find_config_missing(tmp_path) -> None:
    with pytest.raises(ConfigurationError) as exc:
        ConfigLoader(tmp_path).load()
    assert exc.value.context == "Run: appdistro init"


def test_placeholders_resolved_from_environment(write_config, monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_ANDROID_APP_ID", ANDROID_APP_ID)
    path = write_config(
        """\
targets:
  android:
    app_id: "{{ FIREBASE_ANDROID_APP_ID }}"
    artifact: app.apk
"""
    )
    config = ConfigLoader().load(path)
    assert config.get_target(Platform.ANDROID).app_id == ANDROID_APP_ID


def test_unresolved_placeholder_names_variable(write_config) -> None:
    path = write_config(
        """\
targets:
  ios:
    app_id: "{{ MISSING_IOS_ID }}"
"""
    )
    with pytest.raises(ConfigurationError) as exc:
        ConfigLoader().load(path)
    assert "MISSING_IOS_ID" in exc.value.message


def test_app_id_falls_back_to_ci_secret(write_config, monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_ANDROID_APP_ID", ANDROID_APP_ID)
    path = write_config("targets:\n  android:\n    artifact: app.apk\n")

    config = ConfigLoader().load(path)
    assert config.get_target(Platform.ANDROID).app_id == ANDROID_APP_ID


def test_groups_secret_overrides_file(write_config, monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_GROUPS", "beta,beta, vip")
    config = ConfigLoader().load(write_config())
    assert config.distribution.groups == ["beta", "vip"]


def test_dotenv_loaded_without_overriding_environment(
    write_config, tmp_path, monkeypatch
) -> None:
    # Registered so monkeypatch removes whatever load_dotenv sets
    monkeypatch.setenv("FIREBASE_IOS_APP_ID", "placeholder")
    monkeypatch.delenv("FIREBASE_IOS_APP_ID")
    monkeypatch.setenv("FIREBASE_GROUPS", "from-env")

    (tmp_path / ".env").write_text(
        "FIREBASE_IOS_APP_ID=1:42:ios:beef\nFIREBASE_GROUPS=from-dotenv\n"
    )
    config = ConfigLoader().load(write_config("targets:\n  ios:\n    artifact: a.ipa\n"))

    assert config.get_target(Platform.IOS).app_id == "1:42:ios:beef"
    assert config.distribution.groups == ["from-env"]


def test_target_overrides_groups_and_testers(write_config) -> None:
    path = write_config(
        """\
distribution:
  groups: [qa]
  testers: lead@example.com
targets:
  android:
    app_id: "1:1:android:ff"
    artifact: app.apk
    groups: []
"""
    )
    config = ConfigLoader().load(path)
    target = config.get_target(Platform.ANDROID)

    assert target.effective_groups(config.distribution) == []
    assert target.effective_testers(config.distribution) == ["lead@example.com"]


def test_project_name_defaults_to_directory(write_config, tmp_path) -> None:
    config = ConfigLoader().load(write_config("targets:\n  ios: {}\n"))
    assert config.project_name == tmp_path.name


@pytest.mark.parametrize(
    "content,fragment",
    [
        ("project:\n  name: x\n", "targets"),
        ("targets:\n  windows: {}\n", "Unknown platform"),
        ("distribution:\n  backend: ftp\ntargets:\n  ios: {}\n", "Unknown distribution backend"),
        ("distribution:\n  timeout: 0\ntargets:\n  ios: {}\n", "timeout"),
        ("distribution:\n  timeout: true\ntargets:\n  ios: {}\n", "timeout"),
        ("distribution:\n  build_timeout: -5\ntargets:\n  ios: {}\n", "build_timeout"),
        ("- just\n- a list\n", "must be a mapping"),
        ("targets: [unclosed\n", "Invalid YAML"),
    ],
)
def test_invalid_configs(write_config, content, fragment) -> None:
    with pytest.raises(ConfigurationError) as exc:
        ConfigLoader().load(write_config(content))
    assert fragment in exc.value.message


def test_select_targets(config) -> None:
    assert [t.name for t in config.select_targets(None)] == ["android", "ios"]
    assert [t.name for t in config.select_targets(["IOS", "ios"])] == ["ios"]


def test_select_unconfigured_target(write_config) -> None:
    config = ConfigLoader().load(write_config("targets:\n  ios: {}\n"))
    with pytest.raises(ConfigurationError) as exc:
        config.select_targets(["android"])
    assert exc.value.context == "Configured targets: ios"


def test_to_dict_has_no_credential_material(config) -> None:
    data = config.to_dict()
    assert data["targets"]["android"]["groups"] == ["qa-team", "internal"]
    assert data["credentials"] == {"file": None, "env": "FIREBASE_SERVICE_ACCOUNT"}


def test_numeric_scalars_become_strings(write_config) -> None:
    config = ConfigLoader().load(
        write_config(
            """\
distribution:
  release_notes: 2.0
targets:
  ios:
    artifact: app.ipa
    release_notes: 1.2
"""
        )
    )

    assert config.distribution.release_notes == "2.0"
    assert config.get_target(Platform.IOS).release_notes == "1.2"
