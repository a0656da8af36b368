from prometheus_client import Counter

alerts_emitted = Counter(
    "alerts_emitted_total", "Total alerts returned to clients.", ["code"]
)
upstream_requests = Counter(
    "upstream_requests_total",
    "Calls to external services by outcome.",
    ["service", "outcome"],
)
cache_hits = Counter("cache_hits_total", "Upstream cache lookups served from memory.")
cache_misses = Counter("cache_misses_total", "Upstream cache lookups that missed or expired.")
