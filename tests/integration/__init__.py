"""
Integration tests against live Google and Gemini APIs and a local Redis.

Skipped unless the matching API keys are set and the services are reachable.
"""
