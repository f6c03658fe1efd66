import logging
import threading
from collections import defaultdict
from typing import Any

logger = logging.getLogger("api.metrics")

_LOCK = threading.Lock()
_COUNTERS: dict[tuple, float] = defaultdict(float)
_LATENCIES: dict[tuple, list[float]] = defaultdict(list)
_MAX_SAMPLES = 1000


def _key(name: str, labels: dict[str, Any]) -> tuple:
    return (name,) + tuple(sorted((k, str(v)) for k, v in labels.items()))


def incr(name: str, value: float = 1, **labels: Any) -> None:
    key = _key(name, labels)
    with _LOCK:
        _COUNTERS[key] += value
    logger.debug("metric_incr name=%s labels=%s value=%s", name, labels, value)


def observe_ms(name: str, duration_ms: float, **labels: Any) -> None:
    key = _key(name, labels)
    with _LOCK:
        samples = _LATENCIES[key]
        samples.append(float(duration_ms))
        if len(samples) > _MAX_SAMPLES:
            del samples[: len(samples) - _MAX_SAMPLES]


def snapshot() -> dict:
    with _LOCK:
        counters = {"|".join(map(str, k)): v for k, v in _COUNTERS.items()}
        latencies = {}
        for k, samples in _LATENCIES.items():
            if not samples:
                continue
            ordered = sorted(samples)
            latencies["|".join(map(str, k))] = {
                "count": len(ordered),
                "p50_ms": ordered[len(ordered) // 2],
                "max_ms": ordered[-1],
            }
    return {"counters": counters, "latencies": latencies}


def reset() -> None:
    with _LOCK:
        _COUNTERS.clear()
        _LATENCIES.clear()
