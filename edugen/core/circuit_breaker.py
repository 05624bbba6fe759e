"""
Circuit breaker for the LLM call boundary.

One breaker per logical endpoint (model name), shared by every worker in
the process. Outcomes are kept in a rolling window bounded by call count
and age; when the failure ratio crosses the threshold the circuit opens
and calls fail fast until a cool-down elapses. A single probe is then
admitted (half-open); its outcome closes the circuit or reopens it with
an exponentially longer cool-down.

State changes happen under a ``threading.Lock`` so concurrent workers
(coroutines or threads) never lose updates.

Dependencies: edugen.core.exceptions, edugen.configs
System role: Failure isolation between workers and the model server
"""

import enum
import logging
import threading
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from edugen.configs.resilience import CircuitBreakerSettings
from edugen.core.exceptions import (
    CallTimeoutError,
    CircuitOpenError,
    LLMConnectionError,
    LLMMalformedResponseError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FAILURE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    CallTimeoutError,
    LLMConnectionError,
    LLMMalformedResponseError,
)


class BreakerState(str, enum.Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of a breaker, for health checks and tests."""

    endpoint: str
    state: BreakerState
    calls_in_window: int
    failures_in_window: int
    consecutive_reopens: int
    current_cooldown_seconds: float
    last_transition_at: float


class CircuitBreaker:
    """
    Rolling-window circuit breaker.

    Attributes:
        endpoint: Logical endpoint name (model name)
    """

    def __init__(
        self,
        endpoint: str,
        *,
        failure_rate_threshold: float = 0.5,
        window_size: int = 10,
        minimum_calls: int = 5,
        window_seconds: float = 120.0,
        cooldown_seconds: float = 30.0,
        backoff_multiplier: float = 2.0,
        max_cooldown_seconds: float = 300.0,
        failure_exceptions: tuple[type[BaseException], ...] = DEFAULT_FAILURE_EXCEPTIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize breaker in the closed state.

        Args:
            endpoint: Logical endpoint name
            failure_rate_threshold: Failure ratio that opens the circuit
            window_size: Number of most recent outcomes evaluated
            minimum_calls: Outcomes required before the ratio is evaluated
            window_seconds: Maximum age of an outcome in the window
            cooldown_seconds: Base open-state duration
            backoff_multiplier: Cool-down growth per consecutive reopening
            max_cooldown_seconds: Cool-down cap
            failure_exceptions: Exception types that count as failures
            clock: Monotonic time source (injectable for tests)
        """
        if minimum_calls > window_size:
            raise ValueError("minimum_calls cannot exceed window_size")

        self.endpoint = endpoint
        self._threshold = failure_rate_threshold
        self._minimum_calls = minimum_calls
        self._window_seconds = window_seconds
        self._base_cooldown = cooldown_seconds
        self._backoff_multiplier = backoff_multiplier
        self._max_cooldown = max_cooldown_seconds
        self._failure_exceptions = failure_exceptions
        self._clock = clock

        self._lock = threading.Lock()
        self._outcomes: deque[tuple[float, bool]] = deque(maxlen=window_size)
        self._state = BreakerState.CLOSED
        self._opened_at = 0.0
        self._cooldown = cooldown_seconds
        self._consecutive_reopens = 0
        self._probe_in_flight = False
        self._last_transition_at = clock()

    @classmethod
    def from_settings(
        cls,
        endpoint: str,
        settings: CircuitBreakerSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CircuitBreaker":
        """Build a breaker from configuration."""
        return cls(
            endpoint,
            failure_rate_threshold=settings.failure_rate_threshold,
            window_size=settings.window_size,
            minimum_calls=settings.minimum_calls,
            window_seconds=settings.window_seconds,
            cooldown_seconds=settings.cooldown_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            max_cooldown_seconds=settings.max_cooldown_seconds,
            clock=clock,
        )

    @property
    def state(self) -> BreakerState:
        """Current state, applying a pending open -> half-open transition."""
        with self._lock:
            self._refresh_state()
            return self._state

    def snapshot(self) -> BreakerSnapshot:
        """Return a consistent view of the breaker."""
        with self._lock:
            self._refresh_state()
            self._evict_stale()
            failures = sum(1 for _, ok in self._outcomes if not ok)
            return BreakerSnapshot(
                endpoint=self.endpoint,
                state=self._state,
                calls_in_window=len(self._outcomes),
                failures_in_window=failures,
                consecutive_reopens=self._consecutive_reopens,
                current_cooldown_seconds=self._cooldown,
                last_transition_at=self._last_transition_at,
            )

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Run an async callable through the breaker.

        Args:
            func: Coroutine function performing the guarded call
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Whatever func returns

        Raises:
            CircuitOpenError: When the circuit refuses the call
            Exception: Anything raised by func, after recording the outcome
        """
        is_probe = self._acquire()
        try:
            result = await func(*args, **kwargs)
        except self._failure_exceptions:
            self._record_failure(is_probe)
            raise
        except BaseException:
            # Not a backend health signal; free the probe slot untouched.
            if is_probe:
                self._release_probe()
            raise
        self._record_success(is_probe)
        return result

    def reset(self) -> None:
        """Force the breaker closed and clear its window."""
        with self._lock:
            self._outcomes.clear()
            self._consecutive_reopens = 0
            self._cooldown = self._base_cooldown
            self._probe_in_flight = False
            self._transition(BreakerState.CLOSED)

    def _acquire(self) -> bool:
        """Admit or refuse a call; returns True when the call is the half-open probe."""
        with self._lock:
            self._refresh_state()
            if self._state is BreakerState.CLOSED:
                return False
            if self._state is BreakerState.HALF_OPEN and not self._probe_in_flight:
                self._probe_in_flight = True
                logger.info(f"{__name__}:_acquire - Probe admitted for {self.endpoint}")
                return True
            retry_after = None
            if self._state is BreakerState.OPEN:
                retry_after = max(0.0, self._opened_at + self._cooldown - self._clock())
        raise CircuitOpenError(self.endpoint, retry_after_seconds=retry_after)

    def _record_success(self, is_probe: bool) -> None:
        with self._lock:
            if is_probe:
                self._probe_in_flight = False
                self._outcomes.clear()
                self._consecutive_reopens = 0
                self._cooldown = self._base_cooldown
                self._transition(BreakerState.CLOSED)
                return
            self._outcomes.append((self._clock(), True))

    def _record_failure(self, is_probe: bool) -> None:
        with self._lock:
            if is_probe:
                self._probe_in_flight = False
                self._consecutive_reopens += 1
                self._cooldown = min(
                    self._base_cooldown * (self._backoff_multiplier ** self._consecutive_reopens),
                    self._max_cooldown,
                )
                self._open()
                return
            if self._state is not BreakerState.CLOSED:
                # Late result from a call admitted before the circuit opened.
                return
            self._outcomes.append((self._clock(), False))
            self._evict_stale()
            calls = len(self._outcomes)
            failures = sum(1 for _, ok in self._outcomes if not ok)
            if calls >= self._minimum_calls and failures / calls >= self._threshold:
                logger.warning(
                    f"{__name__}:_record_failure - Opening circuit for {self.endpoint} "
                    f"({failures}/{calls} failures)"
                )
                self._open()

    def _release_probe(self) -> None:
        with self._lock:
            self._probe_in_flight = False

    def _open(self) -> None:
        self._opened_at = self._clock()
        self._outcomes.clear()
        self._transition(BreakerState.OPEN)

    def _refresh_state(self) -> None:
        # Caller holds the lock.
        if (
            self._state is BreakerState.OPEN
            and self._clock() - self._opened_at >= self._cooldown
        ):
            self._transition(BreakerState.HALF_OPEN)

    def _evict_stale(self) -> None:
        horizon = self._clock() - self._window_seconds
        while self._outcomes and self._outcomes[0][0] < horizon:
            self._outcomes.popleft()

    def _transition(self, new_state: BreakerState) -> None:
        if new_state is self._state:
            return
        logger.info(
            f"{__name__}:_transition - {self.endpoint}: {self._state.value} -> {new_state.value}"
        )
        self._state = new_state
        self._last_transition_at = self._clock()


class CircuitBreakerRegistry:
    """Process-wide registry handing out one breaker per endpoint."""

    def __init__(
        self,
        settings: CircuitBreakerSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._lock = threading.Lock()
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, endpoint: str) -> CircuitBreaker:
        """
        Get or create the breaker for an endpoint.

        Args:
            endpoint: Logical endpoint name (model name)

        Returns:
            CircuitBreaker: The shared breaker instance
        """
        with self._lock:
            breaker = self._breakers.get(endpoint)
            if breaker is None:
                breaker = CircuitBreaker.from_settings(endpoint, self._settings, self._clock)
                self._breakers[endpoint] = breaker
            return breaker

    def snapshots(self) -> list[BreakerSnapshot]:
        """Snapshot every registered breaker."""
        with self._lock:
            breakers = list(self._breakers.values())
        return [breaker.snapshot() for breaker in breakers]
