"""
Extraction feature module.

Turns photographed journal pages into text with a confidence score.
"""

from unpack.features.extraction.ocr import (
    PAGE_SEPARATOR,
    ExtractionResult,
    PageImage,
    VisionExtractor,
    combine_extractions,
    page_confidence,
)

__all__ = [
    "PAGE_SEPARATOR",
    "ExtractionResult",
    "PageImage",
    "VisionExtractor",
    "combine_extractions",
    "page_confidence",
]
