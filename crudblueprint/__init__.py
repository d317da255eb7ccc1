"""Building blocks for a JSON CRUD API: config, caching, list parameters, health checks and request filters."""

__version__ = "0.1.0"