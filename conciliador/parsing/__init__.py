"""
Statement Parsing Module

This module consolidates statement parsing:
- Format detection
- Fixed-width (CNAB240), delimited text and PDF parsers
- Pipeline orchestration with fallbacks
"""

# Base classes
from .base import BaseStatementParser, StatementFormat, StatementSource, parse_br_amount

# Configuration
from .config.layout import BANCO_INTER_CNAB240, ColumnDef, FixedWidthLayout
from .config.registry import LayoutRegistry

# Detection
from .detector import detect_format

# Errors
from .exceptions import FormatMismatchError, StatementParsingError, UnsupportedStatementError

# Sources
from .sources.cnab import CnabStatementParser
from .sources.delimited import DelimitedStatementParser
from .sources.pdf_text import PdfStatementParser

# Layout reconstruction
from .layout_text import TextRun, extract_pdf_lines, reconstruct_lines

# Pipeline
from .pipeline import StatementPipeline, parse_statement

__all__ = [
    # Base
    'BaseStatementParser',
    'StatementFormat',
    'StatementSource',
    'parse_br_amount',
    # Config
    'BANCO_INTER_CNAB240',
    'ColumnDef',
    'FixedWidthLayout',
    'LayoutRegistry',
    # Detection
    'detect_format',
    # Errors
    'FormatMismatchError',
    'StatementParsingError',
    'UnsupportedStatementError',
    # Sources
    'CnabStatementParser',
    'DelimitedStatementParser',
    'PdfStatementParser',
    # Layout reconstruction
    'TextRun',
    'extract_pdf_lines',
    'reconstruct_lines',
    # Pipeline
    'StatementPipeline',
    'parse_statement',
]
