"""Workflow execution telemetry accumulated across stream events.

The ledger records workflow and node start/finish timestamps as they are
observed and derives an ``ExecutionReport`` on demand. Timestamps are the
upstream unix-second values; durations are only derived when both ends of an
interval are known.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


logger = logging.getLogger(__name__)


def _elapsed(started_at: Optional[float], finished_at: Optional[float]) -> Optional[float]:
    if started_at is None or finished_at is None:
        return None
    return finished_at - started_at


@dataclass
class NodeRecord:
    """Ledger entry for one workflow node."""
    node_id: str
    node_type: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        return _elapsed(self.started_at, self.finished_at)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeExecution(_CamelModel):
    """Snapshot of a node record with its derived duration."""
    node_id: str
    node_type: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    duration: Optional[float] = None


class ExecutionReport(_CamelModel):
    """Summary of a workflow run's timing and per-node durations."""
    workflow_id: str
    workflow_run_id: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    duration: Optional[float] = None
    total_tokens: Optional[Union[int, float]] = None
    nodes: List[NodeExecution] = Field(default_factory=list)


class WorkflowTelemetry:
    """Mutable per-stream ledger of workflow and node timing.

    Fields are monotonic: a value is only replaced by a later non-empty value
    of the same kind. Events that cannot be matched (a node finishing without
    a recorded start, a workflow finishing without a recorded start) are
    absorbed; they only leave durations undefined.
    """

    def __init__(self):
        self.workflow_id: Optional[str] = None
        self.workflow_run_id: Optional[str] = None
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None
        self.total_tokens: Optional[Union[int, float]] = None
        self.nodes: Dict[str, NodeRecord] = {}

    def on_workflow_started(
        self,
        workflow_id: Optional[str],
        run_id: Optional[str],
        started_at: Optional[float],
    ) -> None:
        if workflow_id:
            self.workflow_id = workflow_id
        if run_id:
            self.workflow_run_id = run_id
        if started_at is not None:
            self.started_at = started_at

    def on_workflow_finished(
        self,
        finished_at: Optional[float],
        total_tokens: Optional[Union[int, float]] = None,
    ) -> None:
        if self.workflow_id is None:
            logger.debug("workflow_finished observed without workflow_started")
        if finished_at is not None:
            self.finished_at = finished_at
        if total_tokens is not None:
            self.total_tokens = total_tokens

    def on_node_started(
        self,
        node_id: str,
        node_type: Optional[str],
        started_at: Optional[float],
    ) -> NodeRecord:
        record = self.nodes.get(node_id)
        if record is None:
            record = NodeRecord(node_id=node_id)
            self.nodes[node_id] = record
        if node_type:
            record.node_type = node_type
        if started_at is not None:
            record.started_at = started_at
        return record

    def on_node_finished(self, node_id: str, finished_at: Optional[float]) -> Optional[NodeRecord]:
        """Record a node finish; returns ``None`` for a node never seen starting."""
        record = self.nodes.get(node_id)
        if record is None:
            logger.debug("node_finished for unknown node %s ignored", node_id)
            return None
        if finished_at is not None:
            record.finished_at = finished_at
        return record

    @property
    def duration(self) -> Optional[float]:
        return _elapsed(self.started_at, self.finished_at)

    def build_report(self) -> Optional[ExecutionReport]:
        """Derive the execution report, or ``None`` if no workflow was started."""
        if self.workflow_id is None:
            return None
        return ExecutionReport(
            workflow_id=self.workflow_id,
            workflow_run_id=self.workflow_run_id,
            started_at=self.started_at,
            finished_at=self.finished_at,
            duration=self.duration,
            total_tokens=self.total_tokens,
            nodes=[
                NodeExecution(
                    node_id=record.node_id,
                    node_type=record.node_type,
                    started_at=record.started_at,
                    finished_at=record.finished_at,
                    duration=record.duration,
                )
                for record in self.nodes.values()
            ],
        )
