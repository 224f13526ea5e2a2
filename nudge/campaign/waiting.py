"""NUDGE — Inter-batch Wait Strategies."""

import asyncio


class ConstantDelay:
    """Sleep a fixed number of seconds between batches."""

    def __init__(self, seconds: float = 1.0):
        if seconds < 0:
            raise ValueError("delay must be >= 0")
        self.seconds = seconds

    async def wait(self) -> None:
        await asyncio.sleep(self.seconds)

    def __repr__(self) -> str:
        return f"<ConstantDelay {self.seconds}s>"
