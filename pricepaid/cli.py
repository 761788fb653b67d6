"""CLI entrypoint for the price-paid ingestion worker."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from datetime import timedelta
from pathlib import Path

from pricepaid.common.config_loader import load_config
from pricepaid.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from pricepaid.common.errors import ConfigError, IngestionCancelled, PipelineError
from pricepaid.common.http import HttpClient
from pricepaid.common.ids import generate_run_id
from pricepaid.common.logging import build_logger, log_event
from pricepaid.common.models import RefreshType
from pricepaid.pipeline.orchestrator import run_ingestion
from pricepaid.pipeline.postcode_seed import POSTCODE_FILE_FORMATS, seed_postcodes
from pricepaid.search.provisioner import IndexProvisioner
from pricepaid.storage.backends import build_backends
from pricepaid.storage.postcode_table import AzurePostcodeTable
from pricepaid.worker.scheduler import BackgroundScheduler


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--year", type=int, default=None)
    parser.add_argument("--input", default=None)
    parser.add_argument("--format", default="ukpostcodes", choices=POSTCODE_FILE_FORMATS)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def _install_signal_handlers(cancel_event: threading.Event) -> None:
    def _handler(_signum, _frame) -> None:
        cancel_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def provision_index(cfg: dict, logger, run_id: str) -> bool:
    if not cfg["search"]["enabled"]:
        log_event(logger, "search provisioning disabled", run_id=run_id, stage="provision", event="INDEX_SKIPPED", status="ok")
        return False
    with HttpClient() as client:
        return IndexProvisioner(cfg, client, logger=logger, run_id=run_id).ensure()


def build_scheduler(cfg: dict, cancel_event: threading.Event, logger, run_id: str) -> BackgroundScheduler:
    backends = build_backends(cfg["storage"])

    def _ingest(selector: RefreshType):
        return run_ingestion(selector, cfg, backends, cancel_event=cancel_event, logger=logger, run_id=run_id)

    schedule = cfg["schedule"]
    return BackgroundScheduler(
        _ingest,
        cancel_event=cancel_event,
        logger=logger,
        interval=timedelta(days=schedule["interval_days"]),
        initial_delay=timedelta(seconds=schedule["initial_delay_seconds"]),
        provision=lambda: provision_index(cfg, logger, run_id),
        run_id=run_id,
    )


def execute_command(args: argparse.Namespace, cfg: dict, cancel_event: threading.Event, logger, run_id: str) -> int:
    if args.command == "run":
        _install_signal_handlers(cancel_event)
        build_scheduler(cfg, cancel_event, logger, run_id).run()
    elif args.command == "ingest":
        selector = RefreshType.for_year(args.year) if args.year else RefreshType.latest_month()
        backends = build_backends(cfg["storage"])
        result = run_ingestion(selector, cfg, backends, cancel_event=cancel_event, logger=logger, run_id=run_id)
        outcome = f"completed {result.rows} rows" if result.completed else "nothing to do"
        log_event(logger, f"ingestion {outcome}", run_id=run_id, stage="ingest", event="INGEST_END", status="ok", selector=selector.label(), dataset_hash=result.dataset_hash, rows=result.rows)
    elif args.command == "provision":
        provision_index(cfg, logger, run_id)
    elif args.command == "seed-postcodes":
        if not args.input:
            raise ConfigError("seed-postcodes requires --input")
        if cfg["storage"]["backend"] != "azure":
            raise ConfigError("seed-postcodes writes to the azure postcode table; the local backend reads storage.postcode_csv directly")
        table = AzurePostcodeTable.from_connection_string(cfg["storage"]["connection_string"], cfg["storage"]["postcode_table"])
        table.ensure_table()
        seed_postcodes(table, Path(args.input), file_format=args.format, logger=logger, run_id=run_id)
    else:
        raise ValueError(f"Unknown command: {args.command}")
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace, cancel_event: threading.Event | None = None) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(run_id, level=args.log_level, log_dir=Path(args.log_dir) if args.log_dir else None)
    cancel_event = cancel_event or threading.Event()

    try:
        cfg = load_config(
            Path(args.config_dir),
            overlay_config_dir=Path(args.overlay_config_dir) if args.overlay_config_dir else None,
        )
        return execute_command(args, cfg, cancel_event, logger, run_id)
    except IngestionCancelled as exc:
        log_event(logger, str(exc), run_id=run_id, stage=args.command, event="CANCELLED", status="cancelled", error_code=exc.error_code)
        return EXIT_PARTIAL
    except PipelineError as exc:
        logger.error(
            f"{args.command} failed: {exc}",
            extra={"run_id": run_id, "stage": args.command, "event": "COMMAND_FAIL", "status": "error", "error_code": exc.error_code},
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception(
            f"unexpected failure in {args.command}",
            extra={"run_id": run_id, "stage": args.command, "event": "COMMAND_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
        )
        return EXIT_HARD_FAIL


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
