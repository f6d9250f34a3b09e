"""Per-job event log: one JSON line per pipeline event, secrets scrubbed.

Every line carries ``trace_id`` (the job id) and a per-job ``seq`` so a job's
events can be grepped out of a shared stream and put back in order. The
``summary`` line folds in what the job accumulated: stage durations, the
status path and error/warning counts.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import sys
import time
from typing import IO, Any, Callable, Optional

_logger = logging.getLogger("itinerary-jobs.events")

Scrubber = Callable[[str], str]


class JobEventLog:
    def __init__(self, job_id: str, output: Optional[IO[str]] = None, scrubber: Optional[Scrubber] = None):
        self.trace_id = job_id
        self._output = output or sys.stderr
        self._scrub = scrubber or (lambda text: text)
        self._seq = 0
        self._opened = time.monotonic()
        self._running: dict[str, float] = {}
        self.stage_ms: dict[str, float] = {}
        self.status_path: list[str] = []
        self.errors = 0
        self.warnings = 0

    def _emit(self, event: str, **fields: Any) -> None:
        self._seq += 1
        record = {
            "event": event,
            "trace_id": self.trace_id,
            "seq": self._seq,
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds"),
            **fields,
        }
        line = self._scrub(json.dumps(record, ensure_ascii=False, default=str))
        try:
            self._output.write(line + "\n")
            self._output.flush()
        except (OSError, ValueError) as exc:
            # Closed or broken stream: keep the event in the regular log instead.
            _logger.warning("Job event stream unavailable (%s): %s", exc, line)

    def stage_start(self, stage: str, **extra: Any) -> None:
        self._running[stage] = time.monotonic()
        self._emit("stage_start", stage=stage, **extra)

    def stage_end(self, stage: str, **extra: Any) -> None:
        started = self._running.pop(stage, time.monotonic())
        self.stage_ms[stage] = round((time.monotonic() - started) * 1000, 1)
        self._emit("stage_end", stage=stage, duration_ms=self.stage_ms[stage], **extra)

    def transition(self, from_status: str, to_status: str, **extra: Any) -> None:
        if not self.status_path:
            self.status_path.append(from_status)
        self.status_path.append(to_status)
        self._emit("transition", **{"from": from_status, "to": to_status}, **extra)

    def error(self, stage: str, error: str, **extra: Any) -> None:
        self.errors += 1
        # A stage that raised never reaches stage_end; record how long it ran.
        if stage in self._running:
            self.stage_ms[stage] = round((time.monotonic() - self._running.pop(stage)) * 1000, 1)
        self._emit("error", stage=stage, error=error, **extra)

    def warning(self, stage: str, message: str, **extra: Any) -> None:
        self.warnings += 1
        self._emit("warning", stage=stage, message=message, **extra)

    def summary(self, **extra: Any) -> None:
        self._emit(
            "summary",
            elapsed_ms=round((time.monotonic() - self._opened) * 1000, 1),
            stages=dict(self.stage_ms),
            status_path=list(self.status_path),
            errors=self.errors,
            warnings=self.warnings,
            **extra,
        )


def job_event_log(job_id: str, output: Optional[IO[str]] = None, scrubber: Optional[Scrubber] = None) -> JobEventLog:
    return JobEventLog(job_id, output=output, scrubber=scrubber)


__all__ = ["JobEventLog", "job_event_log"]
