from __future__ import annotations

from pathlib import Path
import textwrap

import pytest
from pydantic import ValidationError

from fieldtrial_manager.config import Settings, load_settings
from fieldtrial_manager.models import UpdateModePolicy


def test_load_settings_reads_yaml_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "basic.yaml"
    data_root = tmp_path / "data-root"
    cache_root = tmp_path / "cache-root"
    config_path.write_text(
        textwrap.dedent(
            f"""
            data_root: {data_root}
            index_root: {tmp_path / 'index'}
            study_cache_root: {cache_root}
            reindex_update_policy: as_requested
            show_progress: false
            """
        ),
        encoding="utf-8",
    )

    settings = load_settings(yaml_path=config_path)

    assert settings.data_root == data_root
    assert settings.study_cache_root == cache_root
    assert settings.reindex_update_policy is UpdateModePolicy.AS_REQUESTED
    assert settings.show_progress is False
    assert data_root.is_dir()
    assert cache_root.is_dir()


def test_overrides_beat_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        textwrap.dedent(
            f"""
            data_root: {tmp_path / 'data'}
            index_root: {tmp_path / 'index'}
            fd_package_root: {tmp_path / 'yaml-packages'}
            """
        ),
        encoding="utf-8",
    )

    settings = load_settings(
        yaml_path=config_path,
        overrides={"fd_package_root": tmp_path / "cli-packages"},
    )

    assert settings.fd_package_root == tmp_path / "cli-packages"
    assert settings.data_root == tmp_path / "data"


def test_environment_variables_are_read(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FTM_STUDY_CACHE_ROOT", str(tmp_path / "env-cache"))
    monkeypatch.setenv("FTM_SHOW_PROGRESS", "false")

    settings = Settings()

    assert settings.study_cache_root == tmp_path / "env-cache"
    assert settings.show_progress is False


def test_settings_are_frozen(tmp_path: Path) -> None:
    settings = Settings(data_root=tmp_path)

    with pytest.raises(ValidationError):
        settings.data_root = tmp_path / "other"

    derived = settings.merge_overrides({"cache_suffix": ".cache"})
    assert derived.cache_suffix == ".cache"
    assert settings.cache_suffix == ".json"


def test_yaml_must_be_a_mapping(tmp_path: Path) -> None:
    config_path = tmp_path / "list.yaml"
    config_path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        Settings.from_yaml(config_path)


def test_missing_yaml_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Settings.from_yaml(tmp_path / "absent.yaml")
