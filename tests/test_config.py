"""Tests for loading Chef credentials from YAML config files."""

from __future__ import annotations

from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from chef_sdk.auth import Credentials


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CHEF_CONFIG_PATH", raising=False)


def _write_config(directory: Path, key_path: Path | str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    config = directory / "chef.yml"
    config.write_text(
        "CHEF_SERVER_URL: https://chef.example.com\n"
        "CHEF_CLIENT_NAME: pivotal\n"
        f"CHEF_CLIENT_KEY: {key_path}\n"
    )
    return config


def test_credentials_from_file_missing_file(tmp_path: Path) -> None:
    """Given no config file, when `Credentials.from_file()` runs, then a
    `FileNotFoundError` is raised."""
    with pytest.raises(FileNotFoundError):
        Credentials.from_file(tmp_path / "conf" / "chef.yml")


def test_credentials_from_file_missing_values(tmp_path: Path) -> None:
    """Given a config file without a client key, when `Credentials.from_file()`
    runs, then a `ValueError` names the missing setting."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    config = conf_dir / "chef.yml"
    config.write_text("CHEF_SERVER_URL: https://chef.example.com\nCHEF_CLIENT_NAME: pivotal\n")

    with pytest.raises(ValueError, match="CHEF_CLIENT_KEY"):
        Credentials.from_file(config)


def test_credentials_from_file_success(tmp_path: Path, fixtures_dir: Path) -> None:
    config = _write_config(tmp_path / "conf", fixtures_dir / "client.pem")

    creds = Credentials.from_file(config)

    assert str(creds.server_url).startswith("https://chef.example.com")
    assert creds.client_name == "pivotal"
    assert creds.client_key == fixtures_dir / "client.pem"
    assert isinstance(creds.load_private_key(), RSAPrivateKey)


def test_relative_key_path_resolves_next_to_config(tmp_path: Path, private_key_pem: str) -> None:
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    (conf_dir / "pivotal.pem").write_text(private_key_pem)
    config = _write_config(conf_dir, "pivotal.pem")

    creds = Credentials.from_file(config)

    assert creds.client_key == (conf_dir / "pivotal.pem").resolve()
    assert isinstance(creds.load_private_key(), RSAPrivateKey)


def test_lowercase_keys_are_accepted(tmp_path: Path, fixtures_dir: Path) -> None:
    config = tmp_path / "chef.yml"
    config.write_text(
        "chef_server_url: https://chef.example.com\n"
        "chef_client_name: pivotal\n"
        f"chef_client_key: {fixtures_dir / 'client.pem'}\n"
    )

    assert Credentials.from_file(config).client_name == "pivotal"


def test_env_path_overrides_argument(
    tmp_path: Path, fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Given `CHEF_CONFIG_PATH`, when an explicit path is also passed, then the
    environment variable wins."""
    env_config = _write_config(tmp_path / "env", fixtures_dir / "client.pem")
    monkeypatch.setenv("CHEF_CONFIG_PATH", str(env_config))

    creds = Credentials.from_file(tmp_path / "does-not-exist.yml")

    assert creds.client_name == "pivotal"


def test_non_mapping_config_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "chef.yml"
    config.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        Credentials.from_file(config)


def test_relative_path_is_found_from_working_directory(
    tmp_path: Path, fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_config(tmp_path / "conf", fixtures_dir / "client.pem")
    monkeypatch.chdir(tmp_path)

    assert Credentials.from_file("conf/chef.yml").client_name == "pivotal"


def test_ambiguous_relative_path_is_rejected(
    tmp_path: Path, fixtures_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Given the same relative path under two search roots, when
    `Credentials.from_file()` runs, then a `RuntimeError` lists both."""
    first = tmp_path / "first"
    second = tmp_path / "second"
    _write_config(first / "conf", fixtures_dir / "client.pem")
    _write_config(second / "conf", fixtures_dir / "client.pem")
    monkeypatch.setattr("chef_sdk.auth._search_roots", lambda: (first, second))

    with pytest.raises(RuntimeError, match="Multiple Chef config files"):
        Credentials.from_file("conf/chef.yml")
