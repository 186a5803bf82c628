# src/aide_client/resources/assistant.py

"""
AI assistant: one-shot suggestion/analysis shown in a modal, plus a chat transcript.

The assistant's value is the text it shows, so failures of suggest/analyze become
modal text instead of errors. Auth failures still propagate (forced logout).

Chat transcript:
- kept in memory only, dropped on logout;
- the user's message is echoed immediately (local only) and marked PENDING;
- on success it becomes SENT and the reply is appended;
- on failure it stays in place marked FAILED with the reason, and can be re-sent
  with retry_failed() without adding a duplicate entry.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import AuthError, ClientError, NetworkError, ValidationError
from ..core.events import ModalShown, TranscriptChanged
from ..core.models import ChatMessage, ChatRole, DeliveryStatus
from .base import ResourceController

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = "Analyze my budget based on my recorded expenses and give me brief advice."

SUGGEST_FALLBACK = "Failed to get suggestion. Is the AI provider API key set on the server?"
ANALYSIS_FALLBACK = "Failed to get analysis. Is the AI provider API key set on the server?"

TITLE_PENDING = "AI Insight"
TITLE_SUGGESTION = "AI Smart Suggestion"
TITLE_ANALYSIS = "AI Budget Analysis"
TITLE_ERROR = "AI Error"


def _text_field(data: Any, key: str) -> str | None:
    if isinstance(data, dict):
        val = data.get(key)
        if isinstance(val, str):
            return val
    return None


class AssistantController(ResourceController):
    resource = "assistant"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.transcript: list[ChatMessage] = []
        self.modal: ModalShown | None = None
        # Bumped on reset so replies that land after a logout are not applied.
        self._epoch = 0

    # ---- modal ----

    def _show(self, title: str, body: str) -> None:
        self.modal = ModalShown(title=title, body=body)
        self._bus.publish(self.modal)

    def close_modal(self) -> None:
        self.modal = None

    async def _one_shot(
            self,
            *,
            path: str,
            body: Any,
            field: str,
            pending_text: str,
            title: str,
            fallback: str,
    ) -> str:
        self._show(TITLE_PENDING, pending_text)
        try:
            data = await self._call(path, "POST", body)
        except AuthError:
            self.close_modal()
            raise
        except ClientError as e:
            logger.warning("%s failed: %r", path, e)
            self._show(TITLE_ERROR, fallback)
            return fallback

        text = _text_field(data, field)
        if text is None:
            logger.warning("%s: response has no %r field", path, field)
            self._show(TITLE_ERROR, fallback)
            return fallback

        self._show(title, text)
        return text

    async def suggest(self) -> str:
        return await self._one_shot(
            path="/ai/suggest",
            body=None,
            field="suggestion",
            pending_text="Thinking...",
            title=TITLE_SUGGESTION,
            fallback=SUGGEST_FALLBACK,
        )

    async def analyze(self) -> str:
        return await self._one_shot(
            path="/ai/chat",
            body={"message": ANALYSIS_PROMPT},
            field="response",
            pending_text="Analyzing your spending...",
            title=TITLE_ANALYSIS,
            fallback=ANALYSIS_FALLBACK,
        )

    # ---- chat ----

    def _publish_transcript(self) -> None:
        self._bus.publish(TranscriptChanged(messages=list(self.transcript)))

    async def chat(self, message: str) -> str:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty.")

        entry = ChatMessage(role=ChatRole.USER, text=text, status=DeliveryStatus.PENDING)
        self.transcript.append(entry)
        self._publish_transcript()
        return await self._deliver(entry)

    async def retry_failed(self) -> str:
        for entry in reversed(self.transcript):
            if entry.role is ChatRole.USER and entry.status is DeliveryStatus.FAILED:
                entry.status = DeliveryStatus.PENDING
                entry.error = None
                self._publish_transcript()
                return await self._deliver(entry)
        raise ValidationError("There is no failed message to retry.")

    async def _deliver(self, entry: ChatMessage) -> str:
        epoch = self._epoch
        try:
            data = await self._call("/ai/chat", "POST", {"message": entry.text})
            reply = _text_field(data, "response")
            if reply is None:
                raise NetworkError("Unexpected response from the assistant.")
        except ClientError as e:
            if epoch == self._epoch:
                entry.status = DeliveryStatus.FAILED
                entry.error = str(getattr(e, "message", "") or e)
                self._publish_transcript()
            logger.info("Chat message not delivered: %r", e)
            raise

        if epoch != self._epoch:
            logger.debug("Dropping chat reply received after reset.")
            return reply

        entry.status = DeliveryStatus.SENT
        self.transcript.append(ChatMessage(role=ChatRole.ASSISTANT, text=reply))
        self._publish_transcript()
        return reply

    @property
    def has_failed(self) -> bool:
        return any(m.status is DeliveryStatus.FAILED for m in self.transcript)

    def reset(self) -> None:
        self.transcript = []
        self.modal = None
        self._epoch += 1
