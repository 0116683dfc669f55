"""Shared utilities for the backend."""
from utils.case import columns_to_camel, isoformat_or_none, row_to_camel
from utils.files import format_file_size
from utils.log import get_logger

__all__ = [
    "columns_to_camel",
    "format_file_size",
    "get_logger",
    "isoformat_or_none",
    "row_to_camel",
]
