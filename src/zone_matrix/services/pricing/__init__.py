"""Price matrix services."""

from .matrix import ImportResult, PriceMatrix, build_matrix, check_price, format_price

__all__ = ["ImportResult", "PriceMatrix", "build_matrix", "check_price", "format_price"]
