"""
PDF Layout Reconstruction

PDFs have no line structure: a page is a bag of positioned word runs.
This module groups runs sharing a vertical position into visual lines.
"""
import io
from dataclasses import dataclass
from typing import Dict, Iterable, List

import pdfplumber

from conciliador.common.logging_config import get_logger
from .exceptions import FormatMismatchError

logger = get_logger(__name__)

DEFAULT_TOLERANCE = 2


@dataclass(frozen=True)
class TextRun:
    """A positioned piece of text: x0 (left), top (distance from page top)."""
    x: float
    top: float
    text: str


def reconstruct_lines(runs: Iterable[TextRun], tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    """
    Groups runs into lines ordered top-to-bottom; within a line runs are
    ordered left-to-right and joined with single spaces.

    Args:
        runs: Text runs of a single page
        tolerance: Vertical bucket size; runs in the same bucket share a line

    Returns:
        List of plain-text lines
    """
    lines: Dict[float, List[TextRun]] = {}
    for run in runs:
        if not run.text or not run.text.strip():
            continue
        top = int(run.top // tolerance) * tolerance
        lines.setdefault(top, []).append(run)

    result = []
    for top in sorted(lines.keys()):
        line_runs = sorted(lines[top], key=lambda r: r.x)
        result.append(" ".join(r.text.strip() for r in line_runs))
    return result


def page_runs(page) -> List[TextRun]:
    """Word runs of a pdfplumber page."""
    return [TextRun(x=w['x0'], top=w['top'], text=w['text']) for w in page.extract_words()]


def extract_pdf_lines(content: bytes, filename: str = None, tolerance: float = DEFAULT_TOLERANCE) -> List[str]:
    """
    Decodes a PDF and returns its reconstructed lines, pages concatenated in order.

    Raises:
        FormatMismatchError: if pdfplumber cannot read the document
    """
    all_lines: List[str] = []
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            for i, page in enumerate(pdf.pages):
                page_lines = reconstruct_lines(page_runs(page), tolerance)
                logger.debug("Page reconstructed.", page=i + 1, line_count=len(page_lines))
                all_lines.extend(page_lines)
    except FormatMismatchError:
        raise
    except Exception as e:
        # pdfminer raises a variety of syntax errors for non-PDF input
        logger.error(f"PDF Read Error: {e}", file_name=filename, error_type=type(e).__name__)
        raise FormatMismatchError(f"Não foi possível ler o PDF: {e}", filename=filename, parser='pdfplumber') from e
    return all_lines
