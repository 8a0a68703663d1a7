"""
Campaign Registry

Per-campaign configuration, lifecycle transitions and claim flags.
"""

from .registry import Clock, CampaignRegistry, utc_now

__all__ = [
    "CampaignRegistry",
    "Clock",
    "utc_now",
]
