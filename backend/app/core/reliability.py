"""
Reliability Utilities.

Circuit breaker guarding calls to external services such as the payment
gateway.
"""

import logging
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger("parcel_delivery.reliability")


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    CLOSED -> OPEN after `failure_threshold` tracked failures in a row.
    OPEN rejects calls with CircuitOpenError until `reset_timeout` seconds
    have passed, then HALF_OPEN lets one trial call through: success closes
    the circuit, failure reopens it.

    Only exceptions in `tracked_exceptions` count as failures. Anything
    else (a declined card, a bad request) propagates without touching the
    breaker.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: int = 60,
        tracked_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
        name: str = "external"
    ):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.tracked_exceptions = tracked_exceptions
        self.name = name
        self.failures = 0
        self.last_failure_time = 0.0
        self.state = "CLOSED"

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if time.time() - self.last_failure_time <= self.reset_timeout:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")
            self.state = "HALF_OPEN"
            logger.info("Circuit '%s' half-open, allowing a trial call", self.name)

        try:
            result = await func(*args, **kwargs)
        except self.tracked_exceptions:
            self.record_failure()
            raise

        if self.state == "HALF_OPEN" or self.failures:
            self.reset_state()
        return result

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure_time = time.time()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning("Circuit '%s' opened after %s failures", self.name, self.failures)
            self.state = "OPEN"

    def reset_state(self) -> None:
        if self.state != "CLOSED":
            logger.info("Circuit '%s' closed", self.name)
        self.failures = 0
        self.state = "CLOSED"
