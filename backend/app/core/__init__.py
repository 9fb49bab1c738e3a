"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — diagnostic logging + shared formatters
    errors          — error taxonomy, error envelope & handlers
    middleware      — request id / timing
    health          — health check aggregation
"""
