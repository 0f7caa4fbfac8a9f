"""Tests for MeshctlSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from meshctl.config.settings import MeshctlSettings


class TestDefaults:
    def test_all_defaults(self) -> None:
        settings = MeshctlSettings.from_cli()
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.server.endpoint == "http://localhost:9081"
        assert settings.server.token_path is None
        assert settings.validation.spec == "smi"
        assert settings.validation.adapter == "meshery-osm"
        assert settings.validation.watch_timeout == 1200.0
        assert settings.validation.event_client == "cli_validate"
        assert settings.validation.error_marker == "error"

    def test_frozen(self) -> None:
        settings = MeshctlSettings.from_cli()
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_discovered_from_cwd(self, tmp_path: Path) -> None:
        toml = tmp_path / "meshctl.toml"
        toml.write_text(
            '[server]\nendpoint = "https://meshery.example:443"\n'
            "[validation]\nwatch_timeout = 60\n"
        )
        settings = MeshctlSettings.from_cli()
        assert settings.config_path == toml
        assert settings.server.endpoint == "https://meshery.example:443"
        assert settings.validation.watch_timeout == 60.0
        assert settings.validation.adapter == "meshery-osm"  # default preserved

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[validation]\nadapter = "meshery-istio"\n')
        settings = MeshctlSettings.from_cli(config_path=str(custom))
        assert settings.validation.adapter == "meshery-istio"
        assert settings.config_path == custom

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            MeshctlSettings.from_cli(config_path=str(tmp_path / "missing.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "meshctl.toml").write_text("[server\nendpoint = ")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            MeshctlSettings.from_cli()

    def test_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / "meshctl.toml").write_text("[validation]\nwatch_timeout = 0\n")
        with pytest.raises(click.ClickException) as excinfo:
            MeshctlSettings.from_cli()
        message = excinfo.value.message
        assert "validation.watch_timeout" in message
        assert "meshctl.toml (from discovery)" in message

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MESHCTL_VALIDATION__WATCH_TIMEOUT", "-1")
        with pytest.raises(click.ClickException, match="validation.watch_timeout"):
            MeshctlSettings.from_cli()

    def test_missing_env_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MESHCTL_CONFIG", str(tmp_path / "nope.toml"))
        with pytest.raises(click.ClickException, match="from MESHCTL_CONFIG"):
            MeshctlSettings.from_cli()


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "meshctl.toml").write_text('[server]\nendpoint = "http://from-toml:9081"\n')
        monkeypatch.setenv("MESHCTL_SERVER__ENDPOINT", "http://from-env:9081")
        settings = MeshctlSettings.from_cli()
        assert settings.server.endpoint == "http://from-env:9081"

    def test_cli_flags_override_toml(self, tmp_path: Path) -> None:
        (tmp_path / "meshctl.toml").write_text("verbose = true\n")
        settings = MeshctlSettings.from_cli(verbose=False, json_output=True)
        assert settings.verbose is False
        assert settings.json_output is True
