"""
Land Registry Workflow - approval state machines for land administration.

Governs how planning schemes, survey plans, deeds and titles move from
submission through review, examination, sealing and registration, and
how post-registration amendments, transfers, disputes and objections
are progressed.

Guarantees:
- Every state change is checked against a static transition table
- Every accepted transition is recorded exactly once in the entity history
- Concurrent decisions on one entity never both succeed
- Notifications are best-effort and never undo a committed transition
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
