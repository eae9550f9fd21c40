"""
Domain layer - pure business logic for land registry workflows.

IMPORT RULES:
- NO imports from application, infrastructure or bootstrap
- NO I/O; everything here is synchronous and re-entrant
"""
