"""
Application layer - workflow orchestration for the land registry core.

This layer contains:
- Workflow services (planning, survey, deed, quota, topology, cases)
- Port definitions (abstract interfaces for infrastructure)
- Request DTOs validated at the boundary

IMPORT RULES:
- CAN import from: domain, config
- CANNOT import from: infrastructure adapters or stubs (use ports instead)
- Observability and monitoring helpers are shared with infrastructure
"""
