"""
Statement Format Detection

Classifies an upload by extension and, for text content, by sniffing the
content. Pure: no I/O, same input always gives the same format.
"""
import os
import re
from typing import Optional, Union

from .base import StatementFormat
from .config.registry import LayoutRegistry

PIX_MARKER = 'PIX'
RECEIVED_MARKER = 'RECEBIDO'

# Column titles found in exported text statements (first column only)
HEADER_TITLES = {
    'DATA', 'DATE', 'DT', 'DESCRICAO', 'DESCRIÇÃO', 'HISTORICO', 'HISTÓRICO',
    'TIPO', 'VALOR', 'LANCAMENTO', 'LANÇAMENTO',
}

SEPARATOR_RE = re.compile(r"-{3,}")
FIELD_DATE_RE = re.compile(r"^(\d{2}[/-]\d{2}[/-]\d{4}|\d{4}-\d{2}-\d{2})$")

_default_registry: Optional[LayoutRegistry] = None


def _registry() -> LayoutRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = LayoutRegistry()
    return _default_registry


def split_fields(line: str) -> list:
    """Splits a delimited line on '|' when present, otherwise on TAB."""
    sep = '|' if '|' in line else '\t'
    return [f.strip() for f in line.split(sep)]


def is_header_or_separator(line: str) -> bool:
    if SEPARATOR_RE.search(line):
        return True
    fields = split_fields(line)
    return bool(fields) and fields[0].upper().rstrip(':') in HEADER_TITLES


def looks_delimited(text: str) -> bool:
    """
    True when at least one line splits into 4+ fields and starts with a date.
    """
    for raw in text.splitlines():
        line = raw.strip()
        if not line or ('|' not in line and '\t' not in line):
            continue
        if is_header_or_separator(line):
            continue
        fields = split_fields(line)
        if len(fields) >= 4 and FIELD_DATE_RE.match(fields[0]):
            return True
    return False


def has_fixed_width_marker(text: str, registry: Optional[LayoutRegistry] = None) -> bool:
    registry = registry or _registry()
    return any(marker in text for marker in registry.markers())


def detect_format(content: Union[str, bytes], filename: str,
                  registry: Optional[LayoutRegistry] = None) -> StatementFormat:
    """
    Detect the statement format.

    Priority (first match wins):
        1. .pdf extension -> PDF_TEXT
        2. .ret extension -> FIXED_WIDTH
        3. .txt extension -> content sniffing (fixed-width marker, then
           delimited shape), defaulting to FIXED_WIDTH
        4. fixed-width marker in text -> FIXED_WIDTH
        5. "PIX" and "RECEBIDO" in text -> FIXED_WIDTH
        6. UNKNOWN

    Args:
        content: Decoded text or raw bytes
        filename: Original file name (extension hint)
        registry: Layouts whose markers identify fixed-width files

    Returns:
        StatementFormat
    """
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower()
    is_text = isinstance(content, str)

    if ext == 'pdf':
        return StatementFormat.PDF_TEXT
    if ext == 'ret':
        return StatementFormat.FIXED_WIDTH
    if ext == 'txt':
        if is_text and not has_fixed_width_marker(content, registry) and looks_delimited(content):
            return StatementFormat.DELIMITED
        return StatementFormat.FIXED_WIDTH

    if not is_text:
        return StatementFormat.UNKNOWN

    if has_fixed_width_marker(content, registry):
        return StatementFormat.FIXED_WIDTH

    upper = content.upper()
    if PIX_MARKER in upper and RECEIVED_MARKER in upper:
        return StatementFormat.FIXED_WIDTH

    return StatementFormat.UNKNOWN
