"""
Capture feature module.

Takes a capture flow from page photos to a saved entry with its tangents.
"""

from unpack.features.capture.photos import PhotoSet
from unpack.features.capture.pipeline import (
    CaptureExtraction,
    CaptureOutcome,
    CaptureRoute,
    CaptureSession,
    NextStep,
    route_for_confidence,
)

__all__ = [
    "PhotoSet",
    "CaptureSession",
    "CaptureExtraction",
    "CaptureOutcome",
    "CaptureRoute",
    "NextStep",
    "route_for_confidence",
]
