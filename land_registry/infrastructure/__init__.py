"""
Infrastructure layer - adapters implementing application ports.

This layer contains:
- In-memory stubs for every persistence and messaging port
- PostgreSQL workflow repository (conditional updates)
- structlog configuration and correlation ids
- Prometheus workflow metrics

IMPORT RULES:
- CAN import from: domain, application
- Implements ports defined in application layer
"""
