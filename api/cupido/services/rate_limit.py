import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from .. import config

logger = logging.getLogger(__name__)


@dataclass
class RateDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int
    bucket: str = ""


class SlidingWindowLimiter:
    """Per-bucket sliding window over request timestamps, kept in process memory."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def _prune(self, bucket: str, now: float, window_seconds: int) -> deque[float]:
        hits = self._hits[bucket]
        while hits and hits[0] <= now - window_seconds:
            hits.popleft()
        return hits

    def hit(self, bucket: str, limit: int, window_seconds: int) -> RateDecision:
        return self.hit_all([(bucket, limit)], window_seconds)

    def hit_all(self, buckets: list[tuple[str, int]], window_seconds: int) -> RateDecision:
        """Count one request against every bucket, or against none if any is full."""
        now = self._clock()
        with self._lock:
            windows = [(bucket, limit, self._prune(bucket, now, window_seconds)) for bucket, limit in buckets]
            for bucket, limit, hits in windows:
                if len(hits) >= limit:
                    wait = int(hits[0] + window_seconds - now)
                    return RateDecision(allowed=False, remaining=0, retry_after_seconds=max(1, wait), bucket=bucket)
            for _, _, hits in windows:
                hits.append(now)
            remaining = min(limit - len(hits) for _, limit, hits in windows)
            return RateDecision(allowed=True, remaining=remaining, retry_after_seconds=0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


limiter = SlidingWindowLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").strip()
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def caller_buckets(request: Request, action: str, limit: int) -> list[tuple[str, int]]:
    ip = client_ip(request)
    buckets = [(f"{action}:ip:{ip}", limit * max(1, config.RL_IP_LIMIT_MULTIPLIER))]
    participant = request.headers.get("x-participant-id", "").strip()
    if participant:
        buckets.append((f"{action}:participant:{participant[:64]}", limit))
    return buckets


def rate_limit_dependency(action: str, limit: int, window_seconds: int):
    def _check(request: Request) -> None:
        decision = limiter.hit_all(caller_buckets(request, action, limit), window_seconds)
        if decision.allowed:
            return
        logger.warning(
            "[RATE] rejected action=%s bucket=%s retry_after=%ss", action, decision.bucket, decision.retry_after_seconds
        )
        raise HTTPException(
            status_code=429,
            detail=f"Too many {action} requests. Retry in {decision.retry_after_seconds}s",
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

    return Depends(_check)
