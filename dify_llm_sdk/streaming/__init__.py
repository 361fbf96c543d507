"""Streaming layer for Dify responses.

This layer handles:
- Server-sent event decoding
- Reasoning/answer channel splitting
- Workflow execution telemetry
"""

from .reasoning import ReasoningSplitter, generate_block_id
from .sse import SSEDecodeError, iter_sse_json
from .telemetry import ExecutionReport, NodeExecution, WorkflowTelemetry
from .types import ParseResult

__all__ = [
    "ReasoningSplitter",
    "generate_block_id",
    "SSEDecodeError",
    "iter_sse_json",
    "ExecutionReport",
    "NodeExecution",
    "WorkflowTelemetry",
    "ParseResult",
]
