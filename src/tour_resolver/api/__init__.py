"""
HTTP surface of the Tour Resolver.

- routes.py: tour, health and admin endpoints
- dependencies.py: per-process singletons (clients, controller, cascade, orchestrator)
- models.py: request/response models
- error_handlers.py: exception to HTTP status mapping
- middleware.py: request id tracing
"""

from tour_resolver.api import dependencies, error_handlers, models
from tour_resolver.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
