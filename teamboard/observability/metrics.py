"""In-process counters and timers exposed in Prometheus text format."""

import threading
from collections import defaultdict
from time import perf_counter


class MetricsRegistry:
    def __init__(self, namespace: str = "teamboard") -> None:
        self.namespace = namespace
        self._lock = threading.Lock()
        self._counters: dict[str, float] = defaultdict(float)
        self._timers_sum: dict[str, float] = defaultdict(float)
        self._timers_count: dict[str, int] = defaultdict(int)

    def _key(self, name: str) -> str:
        return f"{self.namespace}_{name}" if self.namespace else name

    def inc(self, name: str, value: float = 1.0) -> None:
        with self._lock:
            self._counters[self._key(name)] += value

    def observe_ms(self, name: str, value_ms: float) -> None:
        with self._lock:
            key = self._key(name)
            self._timers_sum[key] += max(0.0, value_ms)
            self._timers_count[key] += 1

    def track_ms(self, name: str):
        registry = self

        class _Timer:
            def __enter__(self):
                self._start = perf_counter()
                return self

            def __exit__(self, exc_type, exc_val, exc_tb):
                registry.observe_ms(name, (perf_counter() - self._start) * 1000.0)

        return _Timer()

    def counter(self, name: str) -> float:
        with self._lock:
            return self._counters.get(self._key(name), 0.0)

    def render_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            for key in sorted(self._counters):
                lines.append(f"# TYPE {key} counter")
                lines.append(f"{key} {self._counters[key]:.6f}")
            for key in sorted(self._timers_sum):
                lines.append(f"# TYPE {key}_sum_ms gauge")
                lines.append(f"{key}_sum_ms {self._timers_sum[key]:.6f}")
                lines.append(f"# TYPE {key}_count counter")
                lines.append(f"{key}_count {self._timers_count[key]}")
        return "\n".join(lines) + "\n"
