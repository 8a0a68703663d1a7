"""
Test fixtures package for claims tests.

This package provides factory functions for creating test objects.

Usage:
    from fixtures import make_controller, make_tree, make_campaign

    def test_something():
        controller = make_controller()
        tree = make_tree()
        campaign = make_campaign(controller, tree)
"""

from .common import (
    METADATA_LOCATOR,
    SUBMITTER,
    T0,
    FixedClock,
    make_address,
    make_addresses,
    make_campaign,
    make_controller,
    make_tree,
)

__all__ = [
    "METADATA_LOCATOR",
    "SUBMITTER",
    "T0",
    "FixedClock",
    "make_address",
    "make_addresses",
    "make_campaign",
    "make_controller",
    "make_tree",
]
