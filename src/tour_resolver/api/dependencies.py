"""
FastAPI dependency injection for the Tour Resolver.

Everything holding shared state (HTTP pools, health, breakers, cache,
pending persistence tasks) is a per-process singleton via @lru_cache.
Tests replace them through app.dependency_overrides.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from tour_resolver.config import Settings, settings
from tour_resolver.degradation.cache import TTLCache
from tour_resolver.degradation.circuit_breaker import CircuitBreakerRegistry
from tour_resolver.degradation.controller import DegradationController
from tour_resolver.degradation.health_store import HealthStore, InMemoryHealthStore, RedisHealthStore
from tour_resolver.persistence.redis_client import RedisClient
from tour_resolver.persistence.repository import RedisTourRepository
from tour_resolver.resolution.cascade import CoordinateCascade, default_layers
from tour_resolver.resolution.orchestrator import TourOrchestrator
from tour_resolver.resolution.suggestions import LandmarkSuggestionService
from tour_resolver.retry.engine import RetryEngine
from tour_resolver.sources.gemini_client import GeminiClient
from tour_resolver.sources.geocoding_client import GeocodingClient
from tour_resolver.sources.places_client import PlacesClient
from tour_resolver.sources.prompt_builder import PromptBuilder
from tour_resolver.validation.schema import SuggestionSchemaValidator


@lru_cache()
def get_settings() -> Settings:
    return settings


# === Source clients ===


@lru_cache()
def get_places_client() -> PlacesClient:
    s = get_settings()
    return PlacesClient(
        base_url=s.PLACES_BASE_URL,
        api_key=s.GOOGLE_MAPS_API_KEY,
        max_results=s.PLACES_MAX_RESULTS,
        location_bias_radius_m=s.PLACES_LOCATION_BIAS_RADIUS_M,
        max_photo_references=s.MAX_PHOTO_REFERENCES,
        timeout=s.HTTP_TIMEOUT,
    )


@lru_cache()
def get_geocoding_client() -> GeocodingClient:
    s = get_settings()
    return GeocodingClient(base_url=s.GEOCODING_BASE_URL, api_key=s.GOOGLE_MAPS_API_KEY, timeout=s.HTTP_TIMEOUT)


@lru_cache()
def get_gemini_client() -> GeminiClient:
    s = get_settings()
    return GeminiClient(
        base_url=s.GEMINI_BASE_URL,
        api_key=s.GOOGLE_AI_API_KEY,
        model=s.GEMINI_MODEL,
        temperature=s.LLM_TEMPERATURE,
        max_output_tokens=s.LLM_MAX_TOKENS,
        timeout=s.HTTP_TIMEOUT,
    )


@lru_cache()
def get_prompt_builder() -> PromptBuilder:
    s = get_settings()
    return PromptBuilder(templates_dir=Path(s.PROMPT_TEMPLATES_DIR), suggestion_count=s.SUGGESTION_COUNT)


# === Resilience ===


@lru_cache()
def get_health_store() -> HealthStore:
    """
    In-memory by default; HEALTH_STORE_BACKEND=redis shares health across instances.
    """
    s = get_settings()
    if s.HEALTH_STORE_BACKEND.lower() == "redis":
        return RedisHealthStore(RedisClient.get_async_client(s), key_prefix=s.HEALTH_KEY_PREFIX)
    return InMemoryHealthStore()


@lru_cache()
def get_degradation_controller() -> DegradationController:
    s = get_settings()
    return DegradationController(
        health_store=get_health_store(),
        cache=TTLCache(default_ttl_s=s.CACHE_TTL_SECONDS),
        recovery_after_s=s.HEALTH_RECOVERY_SECONDS,
    )


@lru_cache()
def get_circuit_breakers() -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(enabled=get_settings().CIRCUIT_BREAKERS_ENABLED)


@lru_cache()
def get_retry_engine() -> RetryEngine:
    return RetryEngine()


# === Resolution ===


@lru_cache()
def get_cascade() -> CoordinateCascade:
    s = get_settings()
    layers = default_layers(
        get_places_client(),
        get_geocoding_client(),
        get_gemini_client(),
        get_prompt_builder(),
        coordinate_temperature=s.LLM_COORDINATE_TEMPERATURE,
    )
    return CoordinateCascade(
        layers,
        controller=get_degradation_controller(),
        retry_engine=get_retry_engine(),
        breakers=get_circuit_breakers(),
        plausibility_radius_km=s.PLAUSIBILITY_RADIUS_KM,
        plausibility_penalty=s.PLAUSIBILITY_PENALTY,
        cache_ttl_s=s.CACHE_TTL_SECONDS,
    )


@lru_cache()
def get_suggestion_service() -> LandmarkSuggestionService:
    s = get_settings()
    return LandmarkSuggestionService(
        gemini_client=get_gemini_client(),
        prompt_builder=get_prompt_builder(),
        retry_engine=get_retry_engine(),
        schema_validator=SuggestionSchemaValidator(s.SUGGESTION_SCHEMA_PATH),
        max_candidates=s.SUGGESTION_COUNT,
    )


@lru_cache()
def get_tour_repository() -> Optional[RedisTourRepository]:
    s = get_settings()
    if not s.PERSISTENCE_ENABLED:
        return None
    return RedisTourRepository(RedisClient.get_async_client(s), s)


@lru_cache()
def get_orchestrator() -> TourOrchestrator:
    return TourOrchestrator(
        suggestion_service=get_suggestion_service(),
        cascade=get_cascade(),
        geocoding_client=get_geocoding_client(),
        sink=get_tour_repository(),
    )


async def close_resources() -> None:
    """Drain background persistence and close HTTP and Redis pools."""
    if get_orchestrator.cache_info().currsize:
        await get_orchestrator().drain()
    for getter in (get_places_client, get_geocoding_client, get_gemini_client):
        if getter.cache_info().currsize:
            await getter().close()
    await RedisClient.close_async_pool()
    RedisClient.close_sync_pool()
