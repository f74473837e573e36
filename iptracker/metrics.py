from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

REQUESTS_TOTAL = Counter(
    "requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
TRACKER_HITS_TOTAL = Counter("tracker_hits_total", "Total hits recorded by trackers")
TRACKER_EVICTIONS_TOTAL = Counter("tracker_evictions_total", "Keys displaced from a top-N window")
TRACKER_RESETS_TOTAL = Counter("tracker_resets_total", "Total tracker resets")
TRACKER_DISTINCT_KEYS = Gauge("tracker_distinct_keys", "Distinct keys seen by the served tracker")


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REQUESTS_TOTAL",
    "TRACKER_HITS_TOTAL",
    "TRACKER_EVICTIONS_TOTAL",
    "TRACKER_RESETS_TOTAL",
    "TRACKER_DISTINCT_KEYS",
    "generate_latest",
]
