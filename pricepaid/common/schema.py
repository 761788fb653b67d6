"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from pricepaid.common.errors import ConfigError

SECTION_KEYS: dict[str, tuple[set[str], set[str]]] = {
    # section: (required, optional)
    "dataset": ({"latest_month_url", "year_url_template"}, set()),
    "storage": (
        {"backend", "container", "postcode_table"},
        {"connection_string", "local_root", "postcode_csv"},
    ),
    "search": (
        {"enabled", "index_name", "suggester_name", "data_source_name", "api_version", "indexer_interval"},
        {"service_name", "api_key"},
    ),
    "enrichment": ({"batch_size", "lookup_workers", "lookup_retries", "progress_every"}, set()),
    "export": ({"formats", "chunk_size"}, set()),
    "schedule": ({"initial_delay_seconds", "interval_days"}, set()),
}

STORAGE_BACKENDS = {"azure", "local"}
EXPORT_FORMATS = {"csv", "json"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value: object, ctx: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive integer")


def validate_ingestion_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("ingestion config must be a mapping")

    _assert_required_keys(cfg, set(SECTION_KEYS), "ingestion config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "ingestion config", allow_unknown)

    for section, (required, optional) in SECTION_KEYS.items():
        if not isinstance(cfg[section], dict):
            raise ConfigError(f"{section} must be a mapping")
        _assert_required_keys(cfg[section], required, section)
        _assert_no_unknown_keys(cfg[section], required | optional, section, allow_unknown)

    if "{year}" not in cfg["dataset"]["year_url_template"]:
        raise ConfigError("dataset.year_url_template must contain a {year} placeholder")

    storage = cfg["storage"]
    if storage["backend"] not in STORAGE_BACKENDS:
        raise ConfigError(f"storage.backend must be one of: {', '.join(sorted(STORAGE_BACKENDS))}")
    if storage["backend"] == "azure" and not storage.get("connection_string"):
        raise ConfigError("storage.connection_string is required for the azure backend")
    if storage["backend"] == "local":
        _assert_required_keys(storage, {"local_root", "postcode_csv"}, "storage (local backend)")

    search = cfg["search"]
    if search["enabled"] and not (search.get("service_name") and search.get("api_key")):
        raise ConfigError("search.service_name and search.api_key are required when search is enabled")

    for key in ("batch_size", "lookup_workers", "progress_every"):
        _assert_positive_int(cfg["enrichment"][key], f"enrichment.{key}")
    retries = cfg["enrichment"]["lookup_retries"]
    if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
        raise ConfigError("enrichment.lookup_retries must be a non-negative integer")

    formats = cfg["export"]["formats"]
    if not isinstance(formats, list) or not formats:
        raise ConfigError("export.formats must be a non-empty list")
    unknown_formats = set(formats) - EXPORT_FORMATS
    if unknown_formats:
        raise ConfigError(f"Unknown export formats: {', '.join(sorted(unknown_formats))}")
    _assert_positive_int(cfg["export"]["chunk_size"], "export.chunk_size")

    _assert_positive_int(cfg["schedule"]["interval_days"], "schedule.interval_days")
    delay = cfg["schedule"]["initial_delay_seconds"]
    if not isinstance(delay, (int, float)) or isinstance(delay, bool) or delay < 0:
        raise ConfigError("schedule.initial_delay_seconds must be a non-negative number")

    return cfg
