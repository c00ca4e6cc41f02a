"""
Features Module - Self-contained feature units.

- extraction: handwriting extraction and confidence scoring
- journaling: entry records, overview generation, tangent discovery
- conversation: companion chat engine and responders
- capture: capture flow from photos to a saved entry
- database: journal store backends
"""
