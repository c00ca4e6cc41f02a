"""
Journaling feature module.

- Entry and tangent records
- Overview generation
- Tangent discovery
"""

from unpack.features.journaling.models import Entry, Tangent, TangentCandidate
from unpack.features.journaling.overview import OVERVIEW_FALLBACK, OverviewGenerator
from unpack.features.journaling.tangents import TangentDiscoverer, fallback_tangents

__all__ = [
    "Entry",
    "Tangent",
    "TangentCandidate",
    "OVERVIEW_FALLBACK",
    "OverviewGenerator",
    "TangentDiscoverer",
    "fallback_tangents",
]
