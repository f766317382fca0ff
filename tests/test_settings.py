from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from penfilter.channels import ChannelFormulas
from penfilter.settings import (
    FilterConfig,
    FilterConfigError,
    FilterSettings,
    read_project_table,
)

from tests.helpers import write_pyproject


def test_settings_defaults_are_identities() -> None:
    settings = FilterSettings()

    assert settings.formulas == ChannelFormulas()
    assert settings.reset_timeout_ms == -1
    assert settings.as_dict() == {
        "x": "x",
        "y": "y",
        "p": "p",
        "tx": "tx",
        "ty": "ty",
        "reset_timeout_ms": -1,
    }


def test_settings_formulas_follow_replace() -> None:
    settings = dataclasses.replace(FilterSettings(), x="x*2", reset_timeout_ms=10)

    assert settings.formulas.x == "x*2"
    assert settings.reset_timeout_ms == 10


@pytest.mark.parametrize(
    "kwargs",
    [
        {"x": 1},
        {"ty": None},
        {"reset_timeout_ms": "50"},
        {"reset_timeout_ms": 1.5},
        {"reset_timeout_ms": True},
    ],
)
def test_settings_reject_invalid_values(kwargs: dict[str, object]) -> None:
    with pytest.raises(FilterConfigError):
        FilterSettings(**kwargs)  # type: ignore[arg-type]


def test_settings_from_mapping_rejects_unknown_keys() -> None:
    with pytest.raises(FilterConfigError, match="unknown keys: z"):
        FilterSettings.from_mapping({"x": "x", "z": "x"})


def test_settings_from_mapping_prefixes_context() -> None:
    with pytest.raises(FilterConfigError, match=r"^'\[profiles.fast\]'"):
        FilterSettings.from_mapping({"reset_timeout_ms": "slow"}, context="[profiles.fast]")


def _config_payload() -> dict[str, object]:
    return {
        "filter": {"x": "x", "y": "y", "reset_timeout_ms": 100},
        "profiles": {
            "smooth": {"x": "(x + cx) / 2"},
            "smoother": {"extends": "smooth", "y": "(y + cy) / 2"},
            "combined": {"extends": ["smoother"], "reset_timeout_ms": 0},
        },
    }


def test_config_without_profile_uses_base_table() -> None:
    config = FilterConfig.from_mapping(_config_payload())

    settings = config.settings()

    assert config.active_profile is None
    assert config.available_profiles == ("smooth", "smoother", "combined")
    assert settings.x == "x"
    assert settings.reset_timeout_ms == 100


def test_config_profiles_inherit() -> None:
    config = FilterConfig.from_mapping(_config_payload(), default_profile="combined")

    settings = config.settings()

    assert settings.x == "(x + cx) / 2"
    assert settings.y == "(y + cy) / 2"
    assert settings.reset_timeout_ms == 0

    config.set_profile(None)
    assert config.settings().x == "x"


def test_config_unknown_profile() -> None:
    config = FilterConfig.from_mapping(_config_payload())

    with pytest.raises(KeyError):
        config.set_profile("missing")


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"filter": []}, "must be a table"),
        ({"filter": {"q": "x"}}, "unknown keys"),
        ({"profiles": {"a": {"extends": "b"}, "b": {"extends": "a"}}}, "Circular inheritance"),
        ({"profiles": {"a": {"extends": "ghost"}}}, "unknown profile 'ghost'"),
        ({"profiles": {"a": {"extends": 3}}}, "must be a string or an array"),
        ({"profiles": {"a": "x"}}, "must be represented as a table"),
        ({"profiles": {"a": {"reset_timeout_ms": "soon"}}}, r"\[profiles.a\]"),
    ],
)
def test_config_validation_errors(payload: dict[str, object], message: str) -> None:
    with pytest.raises(FilterConfigError, match=message):
        FilterConfig.from_mapping(payload)


def test_config_loads_file(tmp_path: Path) -> None:
    path = tmp_path / "filter.toml"
    path.write_text(
        '[filter]\nx = "x * 2"\n\n[profiles.lag]\nx = "lx"\n',
        encoding="utf8",
    )

    config = FilterConfig(path, default_profile="lag")

    assert config.path == path
    assert config.settings().x == "lx"


def test_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FilterConfigError, match="does not exist"):
        FilterConfig(tmp_path / "missing.toml")


def test_failed_reload_keeps_previous_configuration(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "filter.toml"
    path.write_text('[filter]\nx = "x + 1"\n\n[profiles.a]\ny = "y"\n', encoding="utf8")
    config = FilterConfig(path, default_profile="a")

    path.write_text("[filter\n", encoding="utf8")
    with caplog.at_level(logging.ERROR, logger="penfilter.settings"):
        config.reload_config()

    assert config.settings().x == "x + 1"
    assert config.active_profile == "a"
    assert "Failed to parse filter configuration" in caplog.text


def test_reload_clears_vanished_profile(tmp_path: Path) -> None:
    path = tmp_path / "filter.toml"
    path.write_text('[filter]\n\n[profiles.a]\nx = "lx"\n', encoding="utf8")
    config = FilterConfig(path, default_profile="a")

    path.write_text('[filter]\nx = "cx"\n', encoding="utf8")
    config.reload_config()

    assert config.active_profile is None
    assert config.settings().x == "cx"


def test_config_from_project(tmp_path: Path) -> None:
    write_pyproject(
        tmp_path,
        """
        [tool.penfilter.filter]
        p = "p * 0.5"
        reset_timeout_ms = 20

        [tool.penfilter.profiles.firm]
        p = "p"
        """,
    )

    config = FilterConfig.from_project(tmp_path)

    assert config.settings().p == "p * 0.5"
    assert config.settings().reset_timeout_ms == 20
    assert config.available_profiles == ("firm",)


def test_config_from_project_without_section(tmp_path: Path) -> None:
    write_pyproject(tmp_path, "[tool.other]\nvalue = 1\n")

    with pytest.raises(FilterConfigError, match="Unable to locate"):
        FilterConfig.from_project(tmp_path)


def test_read_project_table_accepts_file_or_directory(tmp_path: Path) -> None:
    pyproject = write_pyproject(tmp_path, '[tool.penfilter.logging]\nlevel = "debug"\n')

    from_directory = read_project_table(tmp_path)
    from_file = read_project_table(pyproject)

    assert from_directory == from_file == ({"logging": {"level": "debug"}}, pyproject.resolve())
    assert read_project_table(tmp_path / "elsewhere") is None


def test_read_project_table_rejects_malformed_toml(tmp_path: Path) -> None:
    write_pyproject(tmp_path, "[tool.penfilter\n")

    with pytest.raises(FilterConfigError, match="Unable to read"):
        read_project_table(tmp_path)
