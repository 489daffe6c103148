"""Service building blocks: request context, configuration, locks, caches, rate limiters and HTTP request types."""

__version__ = "0.1.0"