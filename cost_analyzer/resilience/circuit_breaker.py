"""
Circuit breaker for the pricing catalog.
Stops hammering an unreachable catalog after repeated transport failures.
"""
from enum import Enum
from typing import Callable, Optional
import logging
import threading
import time

from cost_analyzer.core.config import config

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing fast, not calling the catalog
    HALF_OPEN = "half_open"  # One probe request allowed


class CircuitBreaker:
    """
    Circuit breaker owned by a single catalog client.

    State machine:
    - CLOSED -> OPEN: after ``failure_threshold`` consecutive failures
    - OPEN -> HALF_OPEN: after ``open_duration`` seconds
    - HALF_OPEN -> CLOSED: on a successful probe
    - HALF_OPEN -> OPEN: on a failed probe

    All transitions happen under a lock because resolutions run concurrently.
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = None,
        open_duration: float = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize circuit breaker.

        Args:
            service_name: Name of the guarded service (used in log messages)
            failure_threshold: Consecutive failures before opening
            open_duration: Seconds to remain OPEN before allowing a probe
            clock: Monotonic time source
        """
        self.service_name = service_name
        self.failure_threshold = failure_threshold or config.CIRCUIT_FAILURE_THRESHOLD
        self.open_duration = open_duration if open_duration is not None else config.CIRCUIT_OPEN_SECONDS
        self._clock = clock
        self._lock = threading.Lock()

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._probe_in_flight = False

    def allow_request(self) -> bool:
        """
        Check if a catalog request should be attempted.

        Returns:
            True if the request may proceed, False if the circuit is open
        """
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True

            if self.state == CircuitState.OPEN:
                if self._clock() - self.opened_at < self.open_duration:
                    return False
                logger.warning(f"Circuit breaker for {self.service_name}: OPEN -> HALF_OPEN (testing recovery)")
                self.state = CircuitState.HALF_OPEN
                self._probe_in_flight = False

            if self._probe_in_flight:
                return False
            self._probe_in_flight = True
            return True

    def record_success(self) -> None:
        """Record a request that got an answer from the catalog."""
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit breaker for {self.service_name}: HALF_OPEN -> CLOSED (service recovered)")
                self.state = CircuitState.CLOSED
                self.opened_at = None
                self._probe_in_flight = False
            self.failure_count = 0

    def record_failure(self) -> None:
        """Record a transport failure."""
        with self._lock:
            self.failure_count += 1

            if self.state == CircuitState.HALF_OPEN:
                logger.warning(f"Circuit breaker for {self.service_name}: HALF_OPEN -> OPEN (service still failing)")
                self._open()
            elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
                logger.warning(
                    f"Circuit breaker for {self.service_name}: "
                    f"CLOSED -> OPEN ({self.failure_count} consecutive failures)"
                )
                self._open()

    def release_probe(self) -> None:
        """Give back the half-open probe slot of a request that ended without an answer."""
        with self._lock:
            self._probe_in_flight = False

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = self._clock()
        self._probe_in_flight = False

    def current_state(self) -> CircuitState:
        return self.state
