"""Reasoning/answer channel splitting for streamed answer text.

Upstream answer fragments may embed the model's deliberation between a
``<think>\\n`` and a ``\\n</think>`` marker. ``ReasoningSplitter`` reclassifies
each fragment into reasoning and answer parts as it arrives, keeping only the
"inside reasoning" flag between fragments.

Known limitation: a fragment carrying both markers is handled as a begin
marker only. The text after the begin marker is emitted as reasoning as-is
and the end marker is searched for from the next fragment on.
"""

from __future__ import annotations

import uuid
from typing import Callable, List, Optional

from ..config.constants import ANSWER_TEXT_ID, THINK_END_MARKER, THINK_START_MARKER
from ..models.stream_parts import (
    ReasoningDeltaPart,
    ReasoningEndPart,
    ReasoningStartPart,
    StreamPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)


def generate_block_id() -> str:
    return uuid.uuid4().hex[:16]


class ReasoningSplitter:
    """Splits answer fragments between a reasoning and an answer channel.

    The splitter opens the answer channel (``text-start``) at most once, but
    never closes it on its own: more answer text can follow a closed
    reasoning block within the same run, so the owner calls ``close_text()``
    when the run completes.
    """

    def __init__(
        self,
        text_id: str = ANSWER_TEXT_ID,
        id_generator: Callable[[], str] = generate_block_id,
        start_marker: str = THINK_START_MARKER,
        end_marker: str = THINK_END_MARKER,
    ):
        self.text_id = text_id
        self._generate_id = id_generator
        self.start_marker = start_marker
        self.end_marker = end_marker

        self.in_reasoning = False
        self.reasoning_id: Optional[str] = None
        self.text_open = False

    def feed(self, fragment: str) -> List[StreamPart]:
        """Classify one answer fragment and return the parts it produces."""
        if not fragment:
            return []

        if not self.in_reasoning and self.start_marker in fragment:
            return self._open_reasoning(fragment)

        if self.in_reasoning:
            return self._continue_reasoning(fragment)

        return self._answer(fragment)

    def close_text(self) -> List[StreamPart]:
        """Close the answer channel if it is open."""
        if not self.text_open:
            return []
        self.text_open = False
        return [TextEndPart(id=self.text_id)]

    def _open_reasoning(self, fragment: str) -> List[StreamPart]:
        self.in_reasoning = True
        self.reasoning_id = self._generate_id()
        parts: List[StreamPart] = [ReasoningStartPart(id=self.reasoning_id)]

        _, _, after = fragment.partition(self.start_marker)
        if after:
            parts.append(ReasoningDeltaPart(id=self.reasoning_id, delta=after))
        return parts

    def _continue_reasoning(self, fragment: str) -> List[StreamPart]:
        if self.end_marker not in fragment:
            return [ReasoningDeltaPart(id=self.reasoning_id, delta=fragment)]

        before, _, after = fragment.partition(self.end_marker)
        parts: List[StreamPart] = []
        if before:
            parts.append(ReasoningDeltaPart(id=self.reasoning_id, delta=before))
        parts.append(ReasoningEndPart(id=self.reasoning_id))
        self.in_reasoning = False

        if after:
            parts.extend(self._answer(after))
        return parts

    def _answer(self, text: str) -> List[StreamPart]:
        parts: List[StreamPart] = []
        if not self.text_open:
            self.text_open = True
            parts.append(TextStartPart(id=self.text_id))
        parts.append(TextDeltaPart(id=self.text_id, delta=text))
        return parts
