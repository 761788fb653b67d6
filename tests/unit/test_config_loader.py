from pathlib import Path

import pytest

from pricepaid.common.config_loader import load_config
from pricepaid.common.errors import ConfigError

SECRETS = {
    "STORAGE_CONNECTION_STRING": "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=a2V5;EndpointSuffix=core.windows.net",
    "SEARCH_NAME": "test-search",
    "SEARCH_KEY": "secret",
}


def _write_local_config(config_dir: Path, **overrides: str) -> None:
    config_dir.mkdir(parents=True, exist_ok=True)
    text = """dataset:
  latest_month_url: "https://example.test/pp-monthly.csv"
  year_url_template: "https://example.test/pp-{year}.csv"
storage:
  backend: local
  container: properties
  postcode_table: postcodes
  local_root: ./blobs
  postcode_csv: ./ukpostcodes.csv
search:
  enabled: false
  index_name: properties
  suggester_name: suggester
  data_source_name: blob-transactions
  api_version: "2023-11-01"
  indexer_interval: PT1H
enrichment:
  batch_size: 500
  lookup_workers: 4
  lookup_retries: 3
  progress_every: 5000
export:
  formats: [csv]
  chunk_size: 25000
schedule:
  initial_delay_seconds: 0
  interval_days: 7
"""
    for old, new in overrides.items():
        text = text.replace(old, new)
    (config_dir / "ingestion.yml").write_text(text, encoding="utf-8")


def test_load_config_from_repo_config_dir_with_env_secrets():
    cfg = load_config(Path("config"), environ=SECRETS)
    assert cfg["storage"]["backend"] == "azure"
    assert cfg["storage"]["connection_string"] == SECRETS["STORAGE_CONNECTION_STRING"]
    assert cfg["search"]["service_name"] == "test-search"
    assert cfg["export"]["chunk_size"] == 25000
    assert cfg["enrichment"]["batch_size"] == 500


def test_repo_config_requires_storage_secret():
    with pytest.raises(ConfigError, match="connection_string"):
        load_config(Path("config"), environ={})


def test_repo_local_overlay_needs_no_secrets():
    cfg = load_config(Path("config"), overlay_config_dir=Path("config/local"), environ={})
    assert cfg["storage"]["backend"] == "local"
    assert cfg["search"]["enabled"] is False
    # Overlay keeps base values it does not mention.
    assert cfg["storage"]["container"] == "properties"


def test_load_config_applies_overlay_values(tmp_path: Path):
    base = tmp_path / "base"
    overlay = tmp_path / "overlay"
    _write_local_config(base)
    overlay.mkdir()
    (overlay / "ingestion.yml").write_text("export:\n  formats: [csv, json]\n", encoding="utf-8")

    cfg = load_config(base, overlay_config_dir=overlay, environ={})

    assert cfg["export"]["formats"] == ["csv", "json"]
    assert cfg["export"]["chunk_size"] == 25000


def test_load_config_rejects_unknown_keys(tmp_path: Path):
    _write_local_config(tmp_path, **{"chunk_size: 25000": "chunk_size: 25000\n  compression: gzip"})

    with pytest.raises(ConfigError, match="Unknown keys in export: compression"):
        load_config(tmp_path, environ={})

    cfg = load_config(tmp_path, allow_unknown=True, environ={})
    assert cfg["export"]["compression"] == "gzip"


def test_load_config_rejects_unknown_export_format(tmp_path: Path):
    _write_local_config(tmp_path, **{"formats: [csv]": "formats: [csv, parquet]"})

    with pytest.raises(ConfigError, match="parquet"):
        load_config(tmp_path, environ={})


def test_load_config_requires_year_placeholder(tmp_path: Path):
    _write_local_config(tmp_path, **{"pp-{year}.csv": "pp-year.csv"})

    with pytest.raises(ConfigError, match="year"):
        load_config(tmp_path, environ={})


def test_enabled_search_requires_credentials(tmp_path: Path):
    _write_local_config(tmp_path, **{"enabled: false": "enabled: true"})

    with pytest.raises(ConfigError, match="search.service_name"):
        load_config(tmp_path, environ={})

    cfg = load_config(tmp_path, environ={"SEARCH_NAME": "svc", "SEARCH_KEY": "key"})
    assert cfg["search"]["api_key"] == "key"


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError, match="Missing config file"):
        load_config(tmp_path, environ={})


def test_positive_integers_are_enforced(tmp_path: Path):
    _write_local_config(tmp_path, **{"batch_size: 500": "batch_size: 0"})

    with pytest.raises(ConfigError, match="enrichment.batch_size"):
        load_config(tmp_path, environ={})
