"""Test doubles and small helpers shared by the test modules."""

from datetime import datetime, timezone
from typing import Optional

from utils.dispatcher import InboundEvent


class RecordingNotifier:
    """Notifier stand-in that remembers everything it was asked to send."""

    def __init__(self, fail_for: tuple[str, ...] = ()):
        self.replies: list[tuple[int, str, Optional[int]]] = []
        self.broadcasts: list[tuple[int, str]] = []
        self.fail_for = fail_for

    async def reply(self, channel_id: int, text: str, in_reply_to: Optional[int] = None) -> None:
        self.replies.append((channel_id, text, in_reply_to))

    async def broadcast(self, channel_id: int, text: str) -> None:
        if any(marker in text for marker in self.fail_for):
            raise RuntimeError("channel went away")
        self.broadcasts.append((channel_id, text))

    @property
    def last_reply(self) -> str:
        return self.replies[-1][1]


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_event(content: str, author_id: str = "1001", automated: bool = False) -> InboundEvent:
    return InboundEvent(
        author_id=author_id,
        author_is_automated=automated,
        channel_id=42,
        message_id=777,
        content=content,
    )
