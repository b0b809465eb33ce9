"""Custom Prometheus metrics for the Tour Resolver service.

Exposed at /metrics by the FastAPI instrumentator. Alert rules worth having:
- degradation_level > 0 for more than a few minutes
- terminal_fallbacks_total growing (landmarks returned without coordinates)
- source_calls_total{outcome="error"} rate per source
"""

from prometheus_client import Counter, Gauge, Histogram

# === Source Call Metrics ===

source_calls_total = Counter(
    "tour_source_calls_total",
    "Total external source calls by source and outcome",
    ["source", "outcome"],
)
"""
External call counter.

Labels:
- source: places, geocoding, language_model
- outcome: success, error, timeout
"""

source_latency_seconds = Histogram(
    "tour_source_latency_seconds",
    "External source call latency in seconds",
    ["source"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 7.0, 10.0, 15.0],
)

# === Retry Metrics ===

retries_total = Counter(
    "tour_retries_total",
    "Total retry attempts by source and outcome",
    ["source", "success"],
)
"""
Counts attempts after the first one.

Labels:
- source: retry policy key
- success: true when the retried attempt succeeded
"""

classified_errors_total = Counter(
    "tour_classified_errors_total",
    "Failures by error category",
    ["category"],
)

# === Degradation Metrics ===

degradation_level = Gauge(
    "tour_degradation_level",
    "Current degradation level (0 = full service, 4 = minimal service)",
)

degradation_transitions_total = Counter(
    "tour_degradation_transitions_total",
    "Degradation level changes",
    ["from_level", "to_level"],
)

service_health_success_rate = Gauge(
    "tour_service_success_rate",
    "Exponential moving average of call success per source",
    ["source"],
)

circuit_breaker_state = Gauge(
    "tour_circuit_breaker_open",
    "1 when the source circuit breaker is open, 0.5 half-open, 0 closed",
    ["source"],
)

# === Resolution Metrics ===

landmark_resolutions_total = Counter(
    "tour_landmark_resolutions_total",
    "Resolved landmarks by coordinate source",
    ["coordinate_source"],
)

terminal_fallbacks_total = Counter(
    "tour_terminal_fallbacks_total",
    "Landmarks that fell through every layer to the (0, 0) placeholder",
)

plausibility_penalties_total = Counter(
    "tour_plausibility_penalties_total",
    "Landmarks penalised for being too far from the city centre",
)

landmark_confidence = Histogram(
    "tour_landmark_confidence",
    "Confidence of resolved landmarks",
    buckets=[0.1, 0.3, 0.5, 0.6, 0.8, 0.9, 1.0],
)

tour_processing_seconds = Histogram(
    "tour_processing_seconds",
    "End-to-end tour resolution time in seconds",
    buckets=[1, 2, 5, 10, 20, 30, 60, 120],
)

tours_total = Counter(
    "tour_resolutions_total",
    "Tour resolution requests by status",
    ["status"],
)
"""
Labels:
- status: success, suggestion_failed, invalid_destination
"""

persistence_failures_total = Counter(
    "tour_persistence_failures_total",
    "Background persistence failures",
)
