"""
Statement Pipeline

Orchestrates parsing: detects the format, dispatches to the matching parser
strategy and applies the fallback chain for files it cannot classify.
"""
from typing import List, Optional, Union

from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankReconciliation
from .base import BaseStatementParser, StatementFormat, StatementSource
from .config.registry import LayoutRegistry
from .detector import detect_format, looks_delimited
from .exceptions import FormatMismatchError, UnsupportedStatementError
from .sources.cnab import CnabStatementParser
from .sources.delimited import DelimitedStatementParser
from .sources.pdf_text import PdfStatementParser

logger = get_logger(__name__)


class StatementPipeline:
    """
    Main orchestrator for statement parsing.

    Handles:
    - Format detection (extension + content sniffing)
    - Dispatch to the first parser strategy that accepts the upload
    - Fallback chain for unknown formats:
        binary -> PDF parser
        text   -> fixed-width parser, then delimited parser
    """

    def __init__(self, parsers: Optional[List[BaseStatementParser]] = None,
                 registry: Optional[LayoutRegistry] = None):
        """
        Initialize pipeline with parser strategies in priority order.

        Args:
            parsers: Strategies to try; defaults to PDF, fixed-width, delimited
            registry: Fixed-width layouts used by detection and the CNAB parser
        """
        self.registry = registry or LayoutRegistry()
        self.parsers = parsers or [
            PdfStatementParser(),
            CnabStatementParser(self.registry),
            DelimitedStatementParser(),
        ]

    def parser_for(self, fmt: StatementFormat) -> Optional[BaseStatementParser]:
        return next((p for p in self.parsers if p.format is fmt), None)

    def process(self, content: Union[str, bytes], filename: str, uploaded_by: str = '') -> BankReconciliation:
        """
        Parse an uploaded statement.

        Args:
            content: Decoded text, or raw bytes for binary files (PDF)
            filename: Original file name
            uploaded_by: Uploader identity (stored for provenance only)

        Returns:
            BankReconciliation

        Raises:
            StatementParsingError: when no parser can read the content
        """
        source = StatementSource(content=content, filename=filename, uploaded_by=uploaded_by)
        return self.process_source(source)

    def process_source(self, source: StatementSource) -> BankReconciliation:
        fmt = detect_format(source.content, source.filename, self.registry)
        logger.info(f"Format detected: {fmt.value}", file_name=source.filename, format=fmt.value)

        parser = next((p for p in self.parsers if p.detect(source, self.registry)), None)
        if parser is None:
            return self._process_unknown(source)

        logger.debug(f"Using parser: {parser.__class__.__name__}", parser=parser.__class__.__name__)
        result = parser.parse(source)
        if parser.format is StatementFormat.FIXED_WIDTH and result.total_transactions == 0 \
                and looks_delimited(source.content):
            # Extension or PIX markers claimed the file, but it is a delimited export
            logger.info("Fixed-width parse found nothing; content is delimited.", file_name=source.filename)
            return self._parse_with(StatementFormat.DELIMITED, source) or result
        return result

    def _process_unknown(self, source: StatementSource) -> BankReconciliation:
        if source.is_binary:
            logger.info("Unknown binary upload; trying PDF parser.", file_name=source.filename)
            result = self._parse_with(StatementFormat.PDF_TEXT, source)
            if result is None:
                raise UnsupportedStatementError("Nenhum parser disponível para conteúdo binário.",
                                                filename=source.filename)
            return result

        try:
            result = self._parse_with(StatementFormat.FIXED_WIDTH, source)
        except FormatMismatchError as e:
            logger.warning(f"Fixed-width parser rejected the file: {e.message}", file_name=source.filename)
            result = None

        if result is not None and result.total_transactions > 0:
            return result

        logger.info("Falling back to delimited parser.", file_name=source.filename)
        fallback = self._parse_with(StatementFormat.DELIMITED, source)
        if fallback is None:
            if result is None:
                raise UnsupportedStatementError("Nenhum parser aceitou o arquivo.", filename=source.filename)
            return result
        return fallback

    def _parse_with(self, fmt: StatementFormat, source: StatementSource) -> Optional[BankReconciliation]:
        parser = self.parser_for(fmt)
        if parser is None:
            return None
        return parser.parse(source)


def parse_statement(content: Union[str, bytes], filename: str, uploaded_by: str = '') -> BankReconciliation:
    """Convenience entry point using the default pipeline."""
    return StatementPipeline().process(content, filename, uploaded_by)
