"""Rate limiting algorithm strategies.

Each algorithm implements `RateLimitAlgorithmStrategy` and can be swapped
without changing the admission check service.

Available Algorithms:
    - TokenBucketAlgorithm: Bursts up to capacity, continuous refill
    - SlidingWindowLogAlgorithm: Exact trailing-window request log
"""

from .base import RateLimitAlgorithmStrategy
from .sliding_window_log import SlidingWindowLogAlgorithm
from .token_bucket import TokenBucketAlgorithm

__all__ = [
    "RateLimitAlgorithmStrategy",
    "SlidingWindowLogAlgorithm",
    "TokenBucketAlgorithm",
]
