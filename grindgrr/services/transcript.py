"""Live transcript for one open conversation view.

A ``TranscriptReconciler`` moves through ``idle -> loading -> live`` and ends
in ``closed`` once the view is released. While loading it fetches the ordered
history; once live it merges insert-events from the change feed. Both
sources go through the same merge: insert-or-ignore keyed by message id,
followed by a sort on ``(created_at, id)``. Duplicate and out-of-order
delivery therefore converge on the same transcript.

Live events carry a partial message row; only the id is guaranteed. Before
an event is merged the full entry is looked up by message id. If that lookup
fails (the row may not be readable yet) the partial entry is shown unresolved,
provided it carries enough to be ordered.

Every await is followed by a liveness check against the conversation id the
work was started for, so a response that arrives after ``close()`` cannot
write into a released view.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from pydantic import ValidationError

from grindgrr.core.change_feed import ChangeEvent, ChangeFeed, Subscription
from grindgrr.core.errors import GrindgrrError
from grindgrr.schemas.transcript import LiveMessageEvent, TranscriptEntry

logger = logging.getLogger(__name__)

HistoryLoader = Callable[[int], Awaitable[list[TranscriptEntry]]]
SenderResolver = Callable[[int], Awaitable[TranscriptEntry]]
ChangeListener = Callable[[list[TranscriptEntry]], Awaitable[None]]


class ViewState(str, Enum):
    idle = "idle"
    loading = "loading"
    live = "live"
    closed = "closed"


def _event_conversation_id(event: ChangeEvent) -> int | None:
    record = event.get("record")
    if not isinstance(record, dict):
        return None
    try:
        return int(record.get("conversation_id"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


class TranscriptReconciler:
    def __init__(
        self,
        feed: ChangeFeed,
        load_history: HistoryLoader,
        resolve_sender: SenderResolver,
        on_change: ChangeListener | None = None,
    ) -> None:
        self._feed = feed
        self._load_history = load_history
        self._resolve_sender = resolve_sender
        self._on_change = on_change
        self.state = ViewState.idle
        self._conversation_id: int | None = None
        self._subscription: Subscription | None = None
        self._entries: dict[int, TranscriptEntry] = {}
        self._ordered: list[TranscriptEntry] = []

    @property
    def conversation_id(self) -> int | None:
        return self._conversation_id

    @property
    def transcript(self) -> list[TranscriptEntry]:
        return list(self._ordered)

    def is_current(self, conversation_id: int) -> bool:
        return (
            self.state in (ViewState.loading, ViewState.live)
            and self._conversation_id == conversation_id
        )

    def merge(self, entry: TranscriptEntry) -> bool:
        """Insert ``entry`` unless its id is already present. Returns True if added."""
        if entry.id in self._entries:
            return False
        entries = {**self._entries, entry.id: entry}
        ordered = sorted(entries.values(), key=lambda e: e.sort_key)
        self._entries = entries
        self._ordered = ordered
        return True

    async def open(self, conversation_id: int) -> None:
        if self.state != ViewState.idle:
            raise RuntimeError(f"transcript view already {self.state.value}")

        self._conversation_id = conversation_id
        self.state = ViewState.loading
        # Subscribe before fetching so rows inserted during the fetch are queued
        self._subscription = self._feed.subscribe(
            lambda event: event.get("table") == "message"
            and _event_conversation_id(event) == conversation_id
        )

        history = await self._load_history(conversation_id)
        if not self.is_current(conversation_id):
            logger.debug("history for conversation %s arrived after close", conversation_id)
            return

        for entry in history:
            self.merge(entry)
        self.state = ViewState.live
        await self._notify()

    async def run(self) -> None:
        """Merge live events until the subscription is released."""
        subscription = self._subscription
        conversation_id = self._conversation_id
        if subscription is None or conversation_id is None:
            return

        async for event in subscription:
            if not self.is_current(conversation_id):
                break
            try:
                await self.ingest(event.get("record"), conversation_id)
            except Exception:
                # One bad event must not end the transcript
                logger.exception(
                    "failed to merge live event for conversation %s",
                    conversation_id,
                )

    async def ingest(self, record: Any, conversation_id: int) -> bool:
        try:
            event = LiveMessageEvent.model_validate(record)
        except ValidationError as err:
            logger.warning(
                "skipping malformed live event for conversation %s: %s",
                conversation_id,
                err,
            )
            return False

        if event.conversation_id not in (None, conversation_id):
            return False
        if event.id in self._entries:
            return False

        entry: TranscriptEntry | None
        try:
            entry = await self._resolve_sender(event.id)
        except GrindgrrError as err:
            entry = event.as_unresolved(conversation_id)
            if entry is None:
                logger.warning(
                    "dropping live event %s: sender lookup failed and it has no "
                    "timestamp to order by: %s",
                    event.id,
                    err.detail,
                )
                return False
            logger.warning(
                "sender lookup for message %s failed, showing it unresolved: %s",
                event.id,
                err.detail,
            )

        if not self.is_current(conversation_id):
            return False
        if entry.conversation_id != conversation_id:
            return False
        if not self.merge(entry):
            return False
        await self._notify()
        return True

    def close(self) -> None:
        if self.state == ViewState.closed:
            return
        released_id = self._conversation_id
        subscription = self._subscription
        self._subscription = None
        self._conversation_id = None
        self.state = ViewState.closed
        if subscription is not None:
            subscription.unsubscribe()
        logger.info("released live transcript for conversation %s", released_id)

    async def _notify(self) -> None:
        if self._on_change is not None:
            await self._on_change(self.transcript)
