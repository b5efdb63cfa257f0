import threading
from typing import Dict, List


class MetricsTracker:
    """
    In-process chat counters.

    Counts answered, refused and failed chats and keeps the latency of
    every chat for percentile queries. Nothing is written to disk.
    """

    def __init__(self):

        self._lock = threading.Lock()

        self.reset()

    def reset(self):

        with self._lock:

            self._metrics = {
                "total_requests": 0,
                "answered": 0,
                "refused": 0,
                "failed_requests": 0,
                "total_latency": 0.0,
                "avg_latency": 0.0,
                "latencies": [],
            }

    def record_chat(self, latency: float, refused: bool):

        with self._lock:

            self._metrics["total_requests"] += 1

            if refused:
                self._metrics["refused"] += 1
            else:
                self._metrics["answered"] += 1

            self._metrics["total_latency"] += latency

            self._metrics["avg_latency"] = (
                self._metrics["total_latency"]
                / self._metrics["total_requests"]
            )

            self._metrics["latencies"].append(latency)

    def record_failure(self):

        with self._lock:

            self._metrics["total_requests"] += 1

            self._metrics["failed_requests"] += 1

    def get_metrics(self) -> Dict:

        with self._lock:

            snapshot = dict(self._metrics)
            snapshot["latencies"] = list(self._metrics["latencies"])

        snapshot["p95_latency"] = self.get_latency_percentile(95)

        return snapshot

    def get_latency_percentile(self, percentile: float) -> float:

        with self._lock:
            latencies: List[float] = sorted(self._metrics["latencies"])

        if not latencies:
            return 0.0

        index = int(len(latencies) * percentile / 100)

        index = min(index, len(latencies) - 1)

        return latencies[index]


metrics_tracker = MetricsTracker()
