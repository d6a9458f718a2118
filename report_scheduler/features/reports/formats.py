"""Render format registry.

Maps user-facing format names onto the closed set of render formats and each
render format onto the report server token, file extension, and MIME type.
"""

from __future__ import annotations

from enum import StrEnum

from report_scheduler.core.exceptions import UnsupportedFormatError


class RenderFormat(StrEnum):
    """Render formats supported by the scheduler."""

    PDF = "pdf"
    EXCEL = "excel"


_NAME_ALIASES: dict[str, RenderFormat] = {
    "pdf": RenderFormat.PDF,
    "excel": RenderFormat.EXCEL,
    "xls": RenderFormat.EXCEL,
    "xlsx": RenderFormat.EXCEL,
}

_PROTOCOL_TOKENS: dict[RenderFormat, str] = {
    RenderFormat.PDF: "PDF",
    RenderFormat.EXCEL: "EXCELOPENXML",
}

_FILE_EXTENSIONS: dict[RenderFormat, str] = {
    RenderFormat.PDF: ".pdf",
    RenderFormat.EXCEL: ".xlsx",
}

_MIME_TYPES: dict[RenderFormat, str] = {
    RenderFormat.PDF: "application/pdf",
    RenderFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def parse_format(name: str | None) -> RenderFormat:
    """Parse a format name such as ``PDF`` or ``xlsx``.

    Args:
        name: Format name from task configuration (case-insensitive).

    Returns:
        The canonical render format.

    Raises:
        UnsupportedFormatError: If the name is empty or not recognized.
    """
    key = (name or "").strip().lower()
    try:
        return _NAME_ALIASES[key]
    except KeyError:
        raise UnsupportedFormatError(name) from None


def _lookup(table: dict[RenderFormat, str], render_format: RenderFormat, what: str) -> str:
    try:
        return table[render_format]
    except KeyError:
        msg = f"No {what} registered for render format {render_format!r}"
        raise LookupError(msg) from None


def to_protocol_token(render_format: RenderFormat) -> str:
    """Return the report server rendering extension name for a format."""
    return _lookup(_PROTOCOL_TOKENS, render_format, "protocol token")


def file_extension(render_format: RenderFormat) -> str:
    """Return the file extension (with leading dot) for a format."""
    return _lookup(_FILE_EXTENSIONS, render_format, "file extension")


def mime_type(render_format: RenderFormat) -> str:
    """Return the MIME type for a format."""
    return _lookup(_MIME_TYPES, render_format, "MIME type")


__all__ = [
    "RenderFormat",
    "file_extension",
    "mime_type",
    "parse_format",
    "to_protocol_token",
]
