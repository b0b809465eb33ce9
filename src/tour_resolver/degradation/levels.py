"""
Static degradation level table.

Level 0 runs every source with a generous timeout; each step down removes
sources and shortens the per-call budget. Only force_level() on the
controller overrides the computed level at runtime.
"""

from dataclasses import dataclass

from tour_resolver.models.enums import SourceName


@dataclass(frozen=True)
class DegradationPolicy:
    """What the service may do at one degradation level."""

    level: int
    name: str
    description: str
    enabled_sources: frozenset[str]
    timeout_ms: int
    quality_threshold: float

    def enables(self, source: str | SourceName) -> bool:
        key = source.value if isinstance(source, SourceName) else source
        return key in self.enabled_sources

    def as_dict(self) -> dict:
        return {
            "level": self.level,
            "name": self.name,
            "description": self.description,
            "enabled_sources": sorted(self.enabled_sources),
            "timeout_ms": self.timeout_ms,
            "quality_threshold": self.quality_threshold,
        }


def _sources(*names: SourceName) -> frozenset[str]:
    return frozenset(name.value for name in names)


DEGRADATION_LEVELS: tuple[DegradationPolicy, ...] = (
    DegradationPolicy(
        level=0,
        name="FULL_SERVICE",
        description="All services operational",
        enabled_sources=_sources(
            SourceName.PLACES, SourceName.GEOCODING, SourceName.LANGUAGE_MODEL, SourceName.CACHE
        ),
        timeout_ms=10000,
        quality_threshold=0.9,
    ),
    DegradationPolicy(
        level=1,
        name="REDUCED_QUALITY",
        description="Primary services only, shorter timeouts",
        enabled_sources=_sources(SourceName.PLACES, SourceName.GEOCODING, SourceName.LANGUAGE_MODEL),
        timeout_ms=7000,
        quality_threshold=0.7,
    ),
    DegradationPolicy(
        level=2,
        name="ESSENTIAL_ONLY",
        description="Map services only, no language model fallback",
        enabled_sources=_sources(SourceName.PLACES, SourceName.GEOCODING),
        timeout_ms=5000,
        quality_threshold=0.5,
    ),
    DegradationPolicy(
        level=3,
        name="CACHE_ONLY",
        description="Cached resolutions only",
        enabled_sources=_sources(SourceName.CACHE),
        timeout_ms=2000,
        quality_threshold=0.3,
    ),
    DegradationPolicy(
        level=4,
        name="MINIMAL_SERVICE",
        description="No external sources, name-only landmarks",
        enabled_sources=frozenset(),
        timeout_ms=1000,
        quality_threshold=0.1,
    ),
)

# (health below, or latency above) -> level; first match wins
LEVEL_THRESHOLDS: tuple[tuple[float, float, int], ...] = (
    (0.3, 15000, 4),
    (0.5, 10000, 3),
    (0.7, 7000, 2),
    (0.9, 5000, 1),
)


def compute_level(overall_health: float, avg_response_time_ms: float) -> int:
    """Map aggregate health and latency to a degradation level."""
    for min_health, max_latency, level in LEVEL_THRESHOLDS:
        if overall_health < min_health or avg_response_time_ms > max_latency:
            return level
    return 0
