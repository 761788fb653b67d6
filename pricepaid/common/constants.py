"""Application constants."""

USER_AGENT = "pricepaid-ingest/1.0 (+property-search)"
COMMANDS = (
    "run",
    "ingest",
    "provision",
    "seed-postcodes",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20

HASH_MARKER_PREFIX = "hash-"
HASH_MARKER_EXTENSION = ".txt"
CHUNK_SIZE = 25_000
ENRICH_BATCH_SIZE = 500
PROGRESS_EVERY = 5_000
GEO_LOOKUP_RETRIES = 3

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "selector",
    "dataset_hash",
    "rows",
    "attempt",
    "duration_ms",
    "error_code",
    "message",
)
