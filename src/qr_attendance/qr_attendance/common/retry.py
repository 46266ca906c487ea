from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ..core.exceptions import UnavailableError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def run_with_retry(func: Callable[[], T], *, attempts: int = 3, backoff_base: float = 0.05) -> T:
    """
    Execute a store operation with retry on transient failures.

    Retries on UnavailableError (connection drops, lock timeouts) with
    exponential backoff; the last error is re-raised.
    """
    for attempt in range(attempts):
        try:
            return func()
        except UnavailableError:
            if attempt >= attempts - 1:
                raise
            logger.warning("Transient store failure, retrying (attempt %s/%s)", attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
    raise UnavailableError("Retry attempts exhausted")
