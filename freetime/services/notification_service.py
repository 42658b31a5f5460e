"""
Change notification bridge.

A subscription re-fetches the full snapshot for a group and hands it to a
callback, both when a change signal arrives (push) and on a fixed interval
(poll). Every delivery is a complete state, so consumers replace what they
had rather than merge. Disposing a subscription cancels both paths.
"""
from typing import Any, Awaitable, Callable, List, Optional, Sequence
import asyncio
import inspect
import logging

from freetime.core.config import settings
from freetime.core.events import change_hub, ChangeHub, BLOCKS_TOPIC, MEMBERS_TOPIC
from freetime.services.block_service import get_blocks
from freetime.services.group_service import get_group_members

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Sequence[Any]]]
SnapshotCallback = Callable[[Sequence[Any]], Any]
Disposer = Callable[[], None]


class Subscription:
    def __init__(
        self,
        group_code: str,
        topic: str,
        fetch: Fetcher,
        callback: SnapshotCallback,
        poll_interval: float,
        hub: Optional[ChangeHub] = None,
        push: bool = True
    ):
        self.group_code = group_code
        self.topic = topic
        self.fetch = fetch
        self.callback = callback
        self.poll_interval = poll_interval
        self.hub = hub or change_hub
        self.push = push
        self.closed = False
        self._event: Optional[asyncio.Event] = None
        self._tasks: List[asyncio.Task] = []

    def start(self) -> "Subscription":
        if self.push:
            self._event = self.hub.listen(self.group_code, self.topic)
            self._tasks.append(asyncio.create_task(self._push_loop()))
        if self.poll_interval > 0:
            self._tasks.append(asyncio.create_task(self._poll_loop()))
        logger.info(
            f"Subscribed to {self.topic} for group {self.group_code} "
            f"(push={'on' if self.push else 'off'}, poll={self.poll_interval}s)"
        )
        return self

    def close(self) -> None:
        """Stop both delivery paths. No callback runs after this returns."""
        if self.closed:
            return
        self.closed = True
        if self._event is not None:
            self.hub.unlisten(self.group_code, self.topic, self._event)
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        logger.info(f"Unsubscribed from {self.topic} for group {self.group_code}")

    async def _deliver(self) -> None:
        try:
            snapshot = await self.fetch(self.group_code)
        except Exception:
            logger.exception(f"Fetching {self.topic} failed for group {self.group_code}")
            return
        if self.closed:
            return
        try:
            result = self.callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Subscriber callback failed for {self.topic} in group {self.group_code}")

    async def _push_loop(self) -> None:
        while not self.closed:
            await self._event.wait()
            self._event.clear()
            await self._deliver()

    async def _poll_loop(self) -> None:
        while not self.closed:
            await asyncio.sleep(self.poll_interval)
            await self._deliver()


def _subscribe(
    group_code: str,
    topic: str,
    fetch: Fetcher,
    callback: SnapshotCallback,
    poll_interval: Optional[float],
    hub: Optional[ChangeHub]
) -> Disposer:
    interval = settings.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
    subscription = Subscription(
        group_code,
        topic,
        fetch,
        callback,
        poll_interval=interval,
        hub=hub,
        push=settings.REALTIME_ENABLED
    )
    return subscription.start().close

def subscribe_to_blocks(
    group_code: str,
    callback: SnapshotCallback,
    poll_interval: Optional[float] = None,
    hub: Optional[ChangeHub] = None
) -> Disposer:
    """
    Call `callback` with the group's full block list whenever it changes.

    Must be called from a running event loop. Returns a disposer.
    """
    return _subscribe(group_code, BLOCKS_TOPIC, get_blocks, callback, poll_interval, hub)

def subscribe_to_members(
    group_code: str,
    callback: SnapshotCallback,
    poll_interval: Optional[float] = None,
    hub: Optional[ChangeHub] = None
) -> Disposer:
    """
    Call `callback` with the group's roster whenever it changes.
    """
    return _subscribe(group_code, MEMBERS_TOPIC, get_group_members, callback, poll_interval, hub)
