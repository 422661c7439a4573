"""File readers and the bytes → parsed rows entry point."""

from __future__ import annotations

from ..models import ParseResult
from ..parser import parse_table
from .readers import SUPPORTED_EXTENSIONS, is_supported_file, read_table


def parse_spreadsheet(content: bytes, filename: str) -> ParseResult:
    """Read the first sheet of ``content`` and parse it into transaction rows."""

    return parse_table(read_table(content, filename))


__all__ = ["SUPPORTED_EXTENSIONS", "is_supported_file", "parse_spreadsheet", "read_table"]
