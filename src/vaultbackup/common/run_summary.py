"""Helpers for building and persisting machine-readable run summaries."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from vaultbackup.common.events import Event
from vaultbackup.core.models import RunResult, RunState

STEP_ORDER = (
    RunState.CHECKING_PRECONDITIONS,
    RunState.PRUNING,
    RunState.SNAPSHOTTING,
    RunState.RENEWING,
)


@dataclass(slots=True)
class StepResultData:
    """Summary of a single step."""

    name: str
    status: str
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "status": self.status, "error": self.error}


def _step_statuses(result: RunResult) -> list[StepResultData]:
    steps: list[StepResultData] = []
    reached = STEP_ORDER.index(result.last_step) if result.last_step in STEP_ORDER else -1

    for index, step in enumerate(STEP_ORDER):
        if index < reached or (index == reached and result.state is RunState.DONE):
            status = "success"
        elif index == reached:
            status = "failed"
        else:
            status = "not_run"
        steps.append(
            StepResultData(name=step.value, status=status, error=result.error if status == "failed" else None)
        )
    return steps


class RunSummaryBuilder:
    """Turn a run result into JSON and store it."""

    def __init__(self, *, run_id: str, timestamp: str, dry_run: bool, host: str) -> None:
        self.run_id = run_id
        self.timestamp = timestamp
        self.dry_run = dry_run
        self.host = host
        self._result: RunResult | None = None
        self._events: list[Event] = []

    def record(self, result: RunResult, events: Iterable[Event] = ()) -> None:
        self._result = result
        self._events = list(events)

    def build(self) -> dict[str, object]:
        result = self._result or RunResult()
        return {
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "dry_run": self.dry_run,
            "host": self.host,
            "state": result.state.value,
            "last_step": result.last_step.value,
            "exit_code": int(result.exit_code),
            "error": result.error,
            "backup_path": str(result.backup_path) if result.backup_path else None,
            "pruned": [str(path) for path in result.pruned],
            "prune_performed": result.prune_performed,
            "renewed": result.renewed,
            "steps": [step.to_dict() for step in _step_statuses(result)],
            "events": [
                {"event_id": int(event.event_id), "severity": event.severity, "message": event.message}
                for event in self._events
            ],
        }

    def save(self, target: Path, logger: logging.Logger) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.build(), indent=2, ensure_ascii=False), encoding="utf-8")

        logger.info("run_summary_json_saved path=%s", target)
        return target
