# Source parsers
from .cnab import CnabStatementParser
from .delimited import DelimitedStatementParser
from .pdf_text import PdfStatementParser

__all__ = ['CnabStatementParser', 'DelimitedStatementParser', 'PdfStatementParser']
