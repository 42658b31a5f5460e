"""
In-process change signals.

Stores call `change_hub.publish(group_code, topic)` after every successful
write. Listeners hold an asyncio.Event that is set on publish; a signal
carries no payload, listeners re-fetch the full state themselves.
"""
from collections import defaultdict
from typing import Dict, Set, Tuple
import asyncio
import logging

logger = logging.getLogger(__name__)

BLOCKS_TOPIC = "blocks"
MEMBERS_TOPIC = "members"


class ChangeHub:
    def __init__(self):
        self._listeners: Dict[Tuple[str, str], Set[asyncio.Event]] = defaultdict(set)

    def listen(self, group_code: str, topic: str) -> asyncio.Event:
        event = asyncio.Event()
        self._listeners[(group_code, topic)].add(event)
        return event

    def unlisten(self, group_code: str, topic: str, event: asyncio.Event) -> None:
        key = (group_code, topic)
        listeners = self._listeners.get(key)
        if not listeners:
            return
        listeners.discard(event)
        if not listeners:
            del self._listeners[key]

    def publish(self, group_code: str, topic: str) -> int:
        """Wake every listener on (group_code, topic). Returns how many were woken."""
        listeners = self._listeners.get((group_code, topic), ())
        for event in listeners:
            event.set()
        if listeners:
            logger.debug(f"Published {topic} change for group {group_code} to {len(listeners)} listener(s)")
        return len(listeners)

    def listener_count(self, group_code: str, topic: str) -> int:
        return len(self._listeners.get((group_code, topic), ()))


change_hub = ChangeHub()
