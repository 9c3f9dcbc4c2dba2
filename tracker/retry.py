# tracker/retry.py
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

RETRY_DELAY_S = 5.0


@dataclass
class RetryResult:
    succeeded: bool
    attempts: int


class RetryPolicy:
    """
    Retry an attempt until it succeeds, waiting `delay` seconds between tries.

    There is no attempt limit. The wait goes through the cancellation token
    (a threading.Event); once it is set the loop stops and reports failure.
    """

    def __init__(self, delay: float = RETRY_DELAY_S, name: str = "retry"):
        self.delay = delay
        self.name = name

    def run(
        self,
        attempt: Callable[[], bool],
        stop_event: threading.Event,
        on_failure: Optional[Callable[[int], None]] = None,
    ) -> RetryResult:
        attempts = 0
        while not stop_event.is_set():
            attempts += 1
            if attempt():
                if attempts > 1:
                    logger.info(f"{self.name}: succeeded after {attempts} attempts")
                return RetryResult(True, attempts)

            logger.info(f"{self.name}: attempt {attempts} failed, retrying in {self.delay:g}s")
            if on_failure is not None:
                on_failure(attempts)

            if stop_event.wait(self.delay):
                logger.info(f"{self.name}: interrupted while waiting to retry")
                break

        return RetryResult(False, attempts)
