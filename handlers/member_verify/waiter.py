"""
单次验证结果通道
Single-use resolution channel raced against a timer
"""

import asyncio
from typing import Awaitable, NamedTuple, Optional

from .config import Verdict


class Resolution(NamedTuple):
    verdict: str
    message_id: Optional[int] = None


class Waiter:
    """
    A pending verification's outcome, delivered at most once.

    ``resolve`` may be called any number of times from anywhere; only the
    first call is observed, later ones return False.
    """

    def __init__(self):
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    def resolve(self, resolution: Resolution) -> bool:
        if self._future.done():
            return False
        self._future.set_result(resolution)
        return True

    async def race(self, timer: Awaitable) -> Resolution:
        """
        wait until resolved or until ``timer`` finishes, whichever is first

        a timer win consumes the waiter as timed out, so resolves arriving
        afterwards are no-ops
        """
        timer_task = asyncio.ensure_future(timer)
        try:
            await asyncio.wait({self._future, timer_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            timer_task.cancel()

        if not self._future.done():
            # re-raises when the timer itself failed
            timer_task.result()
            self.resolve(Resolution(Verdict.TIMED_OUT))

        return self._future.result()
