"""Test helpers for land registry tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    builders: Factories for schemes, sections, survey plans and titles
    sample_total: Read a prometheus counter back from a collector

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.metrics import sample_total

__all__ = ["FakeTimeAuthority", "sample_total"]
