"""
Reliability patterns for the research providers.

Provides the shared retry policy, the sliding-window rate limiter used in
front of quota-constrained providers, and performance tracking.
"""

import logging
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple, Type

import structlog
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from meetingintel.core.config import RetryConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy injected into every external call site.

    Exponential backoff starting at ``base_delay`` seconds and capped at
    ``max_delay``; the last exception is re-raised once attempts run out.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 5.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay_seconds,
            max_delay=config.max_delay_seconds,
        )

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1, base_delay=0.0, max_delay=0.0)

    def retrying(
        self,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        give_up_on: Tuple[Type[BaseException], ...] = (),
        deadline_seconds: Optional[float] = None,
    ) -> Retrying:
        condition = retry_if_exception_type(retry_on)
        if give_up_on:
            condition = condition & retry_if_not_exception_type(give_up_on)

        stop = stop_after_attempt(max(1, self.max_attempts))
        if deadline_seconds is not None:
            stop = stop | stop_after_delay(deadline_seconds)

        return Retrying(
            stop=stop,
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=condition,
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    def call(
        self,
        func: Callable[..., Any],
        *args,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        give_up_on: Tuple[Type[BaseException], ...] = (),
        deadline_seconds: Optional[float] = None,
        **kwargs,
    ) -> Any:
        """
        Invoke ``func`` under this policy.

        With ``deadline_seconds`` set, no further attempt starts once that
        much time has passed since the first one.
        """
        retrying = self.retrying(
            retry_on=retry_on, give_up_on=give_up_on, deadline_seconds=deadline_seconds
        )
        return retrying(func, *args, **kwargs)


class ProviderRateLimiter:
    """
    Sliding-window request governor.

    Allows ``max_requests`` calls per ``window_seconds``. Once the window is
    full the caller sleeps for what is left of it, after which the counter
    starts again from zero. Calls are delayed, never rejected.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "provider",
    ):
        self.max_requests = max(1, max_requests)
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._sleep = sleep

        self.request_count = 0
        self.window_started: Optional[float] = None
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """
        Block until a request slot is available.

        Returns the number of seconds the caller was suspended.
        """
        waited = 0.0
        while True:
            with self._lock:
                now = self._clock()
                if self.window_started is None or now - self.window_started >= self.window_seconds:
                    self.window_started = now
                    self.request_count = 0

                if self.request_count < self.max_requests:
                    self.request_count += 1
                    return waited

                wait_time = self.window_seconds - (now - self.window_started)

            logger.warning(
                "rate_limit_reached",
                limiter=self.name,
                max_requests=self.max_requests,
                wait_seconds=round(wait_time, 3),
            )
            self._sleep(wait_time)
            waited += wait_time

            with self._lock:
                # Window has elapsed for everyone still waiting on it
                if self.request_count >= self.max_requests:
                    self.window_started = self._clock()
                    self.request_count = 0

    @property
    def status(self) -> Dict[str, Any]:
        """Get current rate limiter status."""
        return {
            "name": self.name,
            "max_requests": self.max_requests,
            "window_seconds": self.window_seconds,
            "request_count": self.request_count,
            "window_started": self.window_started,
        }


def track_performance(operation_name: str):
    """
    Decorator to track performance metrics for operations.

    Args:
        operation_name: Name of the operation for logging
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            operation_id = f"{operation_name}_{int(start_time)}"

            logger.info(
                "Performance tracking started", operation=operation_name, operation_id=operation_id
            )

            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time

                logger.info(
                    "Performance tracking completed",
                    operation=operation_name,
                    operation_id=operation_id,
                    duration_seconds=round(duration, 3),
                    status="success",
                )

                return result

            except Exception as e:
                duration = time.time() - start_time

                logger.error(
                    "Performance tracking failed",
                    operation=operation_name,
                    operation_id=operation_id,
                    duration_seconds=round(duration, 3),
                    status="failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )

                raise

        return wrapper

    return decorator
