"""Helper modules for the order print server."""

__all__ = [
    "pdf_renderer",
    "receipt_renderer",
]
