"""Geography lookup services."""

from .index import GeographyIndex, build_index, normalize_record

__all__ = ["GeographyIndex", "build_index", "normalize_record"]
