"""Cross-cutting utilities."""

from .parsers import atoi_def, first_value, format_time, parse_float_def

__all__ = ["atoi_def", "first_value", "format_time", "parse_float_def"]
