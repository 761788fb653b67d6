"""Long-running worker that re-checks the price-paid data on a fixed cadence."""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import Callable

from pricepaid.common.errors import IngestionCancelled, PipelineError
from pricepaid.common.logging import log_event, log_warning
from pricepaid.common.models import RefreshResult, RefreshType
from pricepaid.common.time_utils import next_check_iso

IngestFn = Callable[[RefreshType], RefreshResult]
ProvisionFn = Callable[[], object]


class BackgroundScheduler:
    """Starting -> Provisioning -> (Waiting -> Ingesting)* -> Stopped.

    Provisioning runs once and its failure is fatal. A failed ingestion cycle is
    logged and retried only at the next scheduled cycle.
    """

    def __init__(
        self,
        ingest: IngestFn,
        *,
        cancel_event: threading.Event,
        logger: logging.Logger,
        interval: timedelta,
        initial_delay: timedelta = timedelta(0),
        provision: ProvisionFn | None = None,
        selector: RefreshType | None = None,
        run_id: str | None = None,
    ) -> None:
        self.ingest = ingest
        self.provision = provision
        self.cancel_event = cancel_event
        self.logger = logger
        self.interval = interval
        self.initial_delay = initial_delay
        self.selector = selector or RefreshType.latest_month()
        self.run_id = run_id
        self.cycles = 0
        self.state = "starting"

    def _wait(self, delay: timedelta) -> bool:
        """Sleep for ``delay`` unless cancelled first. Returns True when cancelled."""
        self.state = "waiting"
        return self.cancel_event.wait(delay.total_seconds())

    def run_cycle(self) -> RefreshResult | None:
        self.state = "ingesting"
        self.cycles += 1
        log_event(self.logger, "trying to refresh latest property prices", run_id=self.run_id, stage="schedule", event="CYCLE_START", status="ok", attempt=self.cycles)
        started = time.monotonic()
        try:
            result = self.ingest(self.selector)
        except IngestionCancelled:
            raise
        except Exception as exc:
            error_code = exc.error_code if isinstance(exc, PipelineError) else "UNEXPECTED_ERROR"
            self.logger.exception(
                "ingestion cycle failed, will retry at the next scheduled check",
                extra={"run_id": self.run_id, "stage": "schedule", "event": "CYCLE_FAIL", "status": "error", "attempt": self.cycles, "error_code": error_code},
            )
            return None

        duration_ms = int((time.monotonic() - started) * 1000)
        if result.completed:
            message = f"successfully ingested {result.rows} rows (hash: {result.dataset_hash})"
        else:
            message = "check was successful - nothing to do"
        log_event(
            self.logger,
            f"{message}; next check due {next_check_iso(self.interval)}",
            run_id=self.run_id,
            stage="schedule",
            event="CYCLE_END",
            status="ok",
            dataset_hash=result.dataset_hash,
            rows=result.rows,
            attempt=self.cycles,
            duration_ms=duration_ms,
        )
        return result

    def run(self) -> None:
        log_event(self.logger, "price paid data background download worker has started", run_id=self.run_id, stage="schedule", event="WORKER_START", status="ok")
        if self.provision is not None and not self.cancel_event.is_set():
            self.state = "provisioning"
            self.provision()

        try:
            if not self._wait(self.initial_delay):
                while not self.cancel_event.is_set():
                    self.run_cycle()
                    if self._wait(self.interval):
                        break
        except IngestionCancelled as exc:
            log_warning(self.logger, f"ingestion interrupted by shutdown: {exc}", run_id=self.run_id, stage="schedule", event="CYCLE_CANCELLED", status="cancelled")

        self.state = "stopped"
        log_event(self.logger, "price paid data background download worker has gracefully shut down", run_id=self.run_id, stage="schedule", event="WORKER_STOP", status="ok")
