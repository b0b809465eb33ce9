"""
Unit tests for the Tour Resolver.

Test individual components in isolation:
- Retry (classifier, policies, engine)
- Degradation (levels, controller, health stores, cache, circuit breakers)
- Resolution (geo, suggestions, cascade, orchestrator)
- Source clients over httpx.MockTransport
- Validation, persistence and the HTTP API
"""
