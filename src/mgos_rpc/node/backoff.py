"""
Exponential Backoff Controller.

Produces increasing, jittered wait durations between socket write retries.
"""
import random

RETRY_MIN = 0.25  # seconds
RETRY_MAX = 60.0  # seconds
RETRY_FACTOR = 2.0


class Backoff:
    """
    Stateful backoff: each call to `duration()` advances one step until the
    cap is reached.

    Without jitter the n-th duration is `min * factor**n`, capped at `max`.
    With jitter a value is drawn uniformly between `min` and that bound.
    """
    def __init__(self, min: float = RETRY_MIN, max: float = RETRY_MAX,
                 factor: float = RETRY_FACTOR, jitter: bool = True):
        if min <= 0 or max < min:
            raise ValueError(f"invalid backoff bounds: min={min} max={max}")
        if factor < 1:
            raise ValueError(f"backoff factor must be >= 1, got {factor}")

        self.min = min
        self.max = max
        self.factor = factor
        self.jitter = jitter
        self.attempt = 0

    def duration(self) -> float:
        """Returns the wait before the next retry, in seconds."""
        bound = min(self.min * (self.factor ** self.attempt), self.max)
        # Stop growing once capped so the exponent cannot overflow.
        if bound < self.max:
            self.attempt += 1

        if self.jitter:
            return random.uniform(self.min, bound)
        return bound

    def reset(self):
        self.attempt = 0
