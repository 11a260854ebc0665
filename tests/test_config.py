from __future__ import annotations

import json

import pytest

from rental_crawler.config import DEFAULT_BACKEND, CrawlConfig, migrate_config
from rental_crawler.version import CONFIG_SCHEMA_VERSION


def test_defaults():
    cfg = CrawlConfig()

    assert cfg.base_url == "https://www.airbnb.com/"
    assert cfg.max_sections == 5
    assert cfg.workers_per_section == 3
    assert (cfg.min_delay, cfg.max_delay) == (3.0, 7.0)
    assert cfg.max_retries == 3
    assert cfg.listings_per_page == 3
    assert cfg.description_max_chars == 200
    assert cfg.headless is True
    assert cfg.backend == DEFAULT_BACKEND
    assert cfg.schema_version == CONFIG_SCHEMA_VERSION


def test_from_env(monkeypatch):
    monkeypatch.setenv("RENTAL_CRAWLER_MAX_SECTIONS", "2")
    monkeypatch.setenv("RENTAL_CRAWLER_WORKERS", "6")
    monkeypatch.setenv("RENTAL_CRAWLER_MIN_DELAY", "0.5")
    monkeypatch.setenv("RENTAL_CRAWLER_MAX_DELAY", "1.5")
    monkeypatch.setenv("RENTAL_CRAWLER_HEADLESS", "false")
    monkeypatch.setenv("RENTAL_CRAWLER_SCROLL_STEPS", "400, 1200,2000")
    monkeypatch.setenv("RENTAL_CRAWLER_EXTRA_ADAPTERS", "pkg.mod:One, pkg.mod:Two,")

    cfg = CrawlConfig.from_env()

    assert cfg.max_sections == 2
    assert cfg.workers_per_section == 6
    assert (cfg.min_delay, cfg.max_delay) == (0.5, 1.5)
    assert cfg.headless is False
    assert cfg.scroll_steps == (400, 1200, 2000)
    assert cfg.extra_adapters == ["pkg.mod:One", "pkg.mod:Two"]
    assert cfg.max_retries == 3


def test_from_file_migrates_v1_names(tmp_path):
    path = tmp_path / "crawler.json"
    path.write_text(json.dumps({"max_pages": 4, "max_workers": 5, "scroll_steps": [100, 200]}), encoding="utf-8")

    cfg = CrawlConfig.from_file(path)

    assert cfg.max_sections == 4
    assert cfg.workers_per_section == 5
    assert cfg.scroll_steps == (100, 200)
    assert cfg.schema_version == 2


def test_migration_keeps_explicit_new_names():
    migrated = migrate_config({"schema_version": 1, "max_pages": 4, "max_sections": 9})
    assert migrated["max_sections"] == 9
    assert "max_pages" not in migrated


def test_current_schema_passes_through_unchanged():
    raw = {"schema_version": CONFIG_SCHEMA_VERSION, "max_sections": 3}
    assert migrate_config(raw) == raw


def test_to_dict_round_trips_through_file(tmp_path):
    cfg = CrawlConfig(max_sections=2, scroll_steps=(10, 20))
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(cfg.to_dict()), encoding="utf-8")

    assert CrawlConfig.from_file(path) == cfg


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_url": "  "},
        {"max_sections": 0},
        {"workers_per_section": 0},
        {"max_retries": 0},
        {"request_timeout": 0},
        {"min_delay": -1},
        {"min_delay": 5, "max_delay": 2},
        {"listings_per_page": 0},
        {"description_max_chars": 0},
    ],
)
def test_validate_rejects_bad_values(tmp_path, overrides):
    cfg = CrawlConfig(output_path=str(tmp_path / "out.json"), **overrides)
    with pytest.raises(ValueError):
        cfg.validate()


def test_validate_creates_output_directory(tmp_path):
    cfg = CrawlConfig(output_path=str(tmp_path / "nested" / "dir" / "out.json"))
    cfg.validate()
    assert (tmp_path / "nested" / "dir").is_dir()
