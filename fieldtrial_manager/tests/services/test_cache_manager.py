from __future__ import annotations

from pathlib import Path

import pytest

from fieldtrial_manager.models import CacheClearSpec, OperationStatus, ServiceJob
from fieldtrial_manager.services.cache import CacheManager


def _populate(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).write_text('{"study": "%s"}' % name, encoding="utf-8")


def test_list_then_clear_everything(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "beta.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    listing = manager.list_entries()
    assert listing.status is OperationStatus.SUCCEEDED
    assert sorted(listing.names) == ["alpha.json", "beta.json"]

    result = manager.clear(CacheClearSpec.parse("*"))
    assert result.status is OperationStatus.SUCCEEDED
    assert result.attempted == 2
    assert result.removed == 2

    after = manager.list_entries()
    assert after.status is OperationStatus.SUCCEEDED
    assert after.entries == []


def test_clear_one_entry_leaves_the_rest(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "beta.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))
    assert set(manager.list_entries(full_path=False).names) == {"alpha.json", "beta.json"}

    result = manager.clear(CacheClearSpec(names=("alpha",)))

    assert (result.attempted, result.removed) == (1, 1)
    assert result.status is OperationStatus.SUCCEEDED
    assert manager.list_entries(full_path=False).names == ["beta.json"]


def test_list_ignores_other_suffixes(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "notes.txt")
    (cache_dir / "nested.json").mkdir()

    listing = CacheManager(make_settings(study_cache_root=cache_dir)).list_entries()

    assert listing.names == ["alpha.json"]
    assert listing.files_seen == 1


def test_list_full_path_reports_same_entries(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "beta.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    short = manager.list_entries(full_path=False)
    full = manager.list_entries(full_path=True)

    assert len(short.entries) == len(full.entries) == 2
    assert sorted(full.names) == sorted(str(cache_dir.resolve() / name) for name in short.names)


def test_list_empty_directory_succeeds(make_settings, cache_dir):
    listing = CacheManager(make_settings(study_cache_root=cache_dir)).list_entries()

    assert listing.status is OperationStatus.SUCCEEDED
    assert listing.to_records() == []


def test_clear_named_entries_appends_suffix(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "beta.json", "gamma.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec.parse("alpha beta.json"))

    assert result.status is OperationStatus.SUCCEEDED
    assert result.removed == 2
    assert sorted(path.name for path in result.removed_paths) == ["alpha.json", "beta.json"]
    assert (cache_dir / "gamma.json").exists()


def test_clear_accepts_paths_rooted_in_cache_dir(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec(names=(str(cache_dir / "alpha"),)))

    assert result.status is OperationStatus.SUCCEEDED
    assert result.removed_paths == [cache_dir.resolve() / "alpha.json"]
    assert not (cache_dir / "alpha.json").exists()


def test_clear_deduplicates_names_for_the_same_file(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec(names=("alpha", "alpha.json")))

    assert result.attempted == 1
    assert result.removed == 1
    assert result.status is OperationStatus.SUCCEEDED


def test_clear_wildcard_inside_list_expands(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json", "beta.json")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec(names=("alpha", "*")))

    assert result.attempted == 2
    assert result.removed == 2
    assert list(cache_dir.glob("*.json")) == []


def test_clear_missing_entry_is_partial(make_settings, cache_dir):
    _populate(cache_dir, "alpha.json")
    job = ServiceJob()
    manager = CacheManager(make_settings(study_cache_root=cache_dir), job=job)

    result = manager.clear(CacheClearSpec(names=("alpha", "missing")))

    assert result.status is OperationStatus.PARTIALLY_SUCCEEDED
    assert result.attempted == 2
    assert result.removed == 1
    assert result.failed_names == ["missing"]
    assert len(job.errors_for("cache")) == 1


def test_clear_only_missing_entries_fails(make_settings, cache_dir):
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec(names=("missing",)))

    assert result.status is OperationStatus.FAILED
    assert result.removed == 0


def test_clear_wildcard_on_empty_cache_succeeds(make_settings, cache_dir):
    result = CacheManager(make_settings(study_cache_root=cache_dir)).clear(CacheClearSpec.all())

    assert result.attempted == 0
    assert result.status is OperationStatus.SUCCEEDED


def test_unconfigured_cache_is_idle(make_settings):
    manager = CacheManager(make_settings())

    assert not manager.is_configured
    assert manager.list_entries().status is OperationStatus.IDLE
    assert manager.clear(CacheClearSpec.all()).status is OperationStatus.IDLE


def test_missing_directory_lists_nothing(make_settings, tmp_path):
    manager = CacheManager(make_settings(), directory=tmp_path / "absent")

    listing = manager.list_entries()

    assert listing.entries == []
    assert listing.status is OperationStatus.SUCCEEDED


def test_relative_cache_root_lists_absolute_paths(make_settings, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "cache").mkdir()
    _populate(tmp_path / "cache", "alpha.json")
    manager = CacheManager(make_settings(study_cache_root=Path("cache")))

    listing = manager.list_entries(full_path=True)

    assert listing.names == [str(tmp_path.resolve() / "cache" / "alpha.json")]
    assert Path(listing.names[0]).is_absolute()


def test_relative_cache_root_deduplicates_every_spelling(make_settings, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "cache").mkdir()
    _populate(tmp_path / "cache", "alpha.json")
    job = ServiceJob()
    manager = CacheManager(make_settings(study_cache_root=Path("cache")), job=job)

    result = manager.clear(
        CacheClearSpec(names=("alpha", str(tmp_path / "cache" / "alpha.json"), "cache/alpha"))
    )

    assert (result.attempted, result.removed) == (1, 1)
    assert result.status is OperationStatus.SUCCEEDED
    assert job.errors == []


def test_clear_refuses_names_outside_the_cache(make_settings, tmp_path, cache_dir):
    studies = tmp_path / "data" / "studies.json"
    studies.parent.mkdir()
    studies.write_text("[]", encoding="utf-8")
    (tmp_path / "stray.json").write_text("{}", encoding="utf-8")
    job = ServiceJob()
    manager = CacheManager(make_settings(study_cache_root=cache_dir), job=job)

    result = manager.clear(
        CacheClearSpec(names=("../data/studies", str(cache_dir / ".." / "stray")))
    )

    assert result.status is OperationStatus.FAILED
    assert (result.attempted, result.removed) == (2, 0)
    assert result.failed_names == ["../data/studies", str(cache_dir / ".." / "stray")]
    assert len(job.errors_for("cache")) == 2
    assert studies.exists()
    assert (tmp_path / "stray.json").exists()


def test_clear_outside_name_does_not_stop_the_batch(make_settings, tmp_path, cache_dir):
    _populate(cache_dir, "alpha.json")
    (tmp_path / "outside.json").write_text("{}", encoding="utf-8")
    manager = CacheManager(make_settings(study_cache_root=cache_dir))

    result = manager.clear(CacheClearSpec(names=("../outside", "alpha")))

    assert result.status is OperationStatus.PARTIALLY_SUCCEEDED
    assert result.removed == 1
    assert not (cache_dir / "alpha.json").exists()
    assert (tmp_path / "outside.json").exists()


def test_resolve_path_requires_a_cache_directory(make_settings):
    with pytest.raises(RuntimeError, match="No study cache path"):
        CacheManager(make_settings()).resolve_path("alpha")
