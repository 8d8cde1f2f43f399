"""Cooperative run control, rate limiting and progress observers."""

import asyncio
import logging
from enum import Enum
from typing import Optional

from tqdm import tqdm

from config.constants import RATE_LIMIT_DELAY

logger = logging.getLogger(__name__)


class ControlSignal(Enum):
    NONE = "none"
    STOP = "stop"    # finish the current batch, then save
    ABORT = "abort"  # finish the current batch, discard everything


class RunControl:
    """
    Cancellation token for a translation run.

    Signals are only looked at between batches; a request in flight is
    always completed first. Abort wins over Stop.
    """

    def __init__(self):
        self._signal = ControlSignal.NONE
        self._event: Optional[asyncio.Event] = None

    @property
    def signal(self) -> ControlSignal:
        return self._signal

    @property
    def aborting(self) -> bool:
        return self._signal is ControlSignal.ABORT

    @property
    def stopping(self) -> bool:
        return self._signal is ControlSignal.STOP

    def stop(self):
        if self._signal is ControlSignal.NONE:
            self._signal = ControlSignal.STOP
            self._wake()

    def abort(self):
        self._signal = ControlSignal.ABORT
        self._wake()

    def _wake(self):
        if self._event is not None:
            self._event.set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; return True if a signal arrived."""
        if self._signal is not ControlSignal.NONE:
            return True
        if self._event is None:
            self._event = asyncio.Event()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self._signal is not ControlSignal.NONE


class RateLimiter:
    """Flat delay between two consecutive API calls."""

    def __init__(self, delay: float = RATE_LIMIT_DELAY):
        self.delay = delay
        self.waits = 0

    async def wait(self, control: Optional[RunControl] = None):
        if self.delay <= 0:
            return
        self.waits += 1
        logger.debug(f"Waiting {self.delay:.1f}s before the next request")
        if control is None:
            await asyncio.sleep(self.delay)
        else:
            await control.wait(self.delay)


class RunObserver:
    """Receives progress and log messages of a run. Does nothing by default."""

    def on_progress(self, percent: float):
        pass

    def on_log(self, message: str):
        pass


class TqdmObserver(RunObserver):
    """Console progress bar; log lines reach the console through logging."""

    def __init__(self, desc: str = "Translating"):
        self.desc = desc
        self._bar: Optional[tqdm] = None

    def on_progress(self, percent: float):
        if self._bar is None:
            self._bar = tqdm(total=100, desc=self.desc, unit="%", bar_format="{l_bar}{bar}| {n:.1f}/{total}%")
        self._bar.n = min(100.0, round(percent, 1))
        self._bar.refresh()

    def close(self):
        if self._bar is not None:
            self._bar.close()
            self._bar = None
