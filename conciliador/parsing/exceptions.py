"""
Exceptions raised when a statement cannot be parsed at all.

Line-level problems never raise: parsers log and skip the line.
"""


class StatementParsingError(Exception):
    """
    Base error for statements that are unreadable as a whole.

    Carries:
    - The filename that failed
    - The parser that rejected it (if any)
    - A sample of the content, for operator diagnostics
    """

    def __init__(self, message: str, filename: str = None, parser: str = None, sample_text: str = None):
        self.filename = filename
        self.parser = parser
        self.sample_text = sample_text

        details = []
        if filename:
            details.append(f"Arquivo: {filename}")
        if parser:
            details.append(f"Parser: {parser}")
        if sample_text:
            details.append(f"Amostra: {sample_text[:200]}...")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)
        self.message = message


class FormatMismatchError(StatementParsingError):
    """
    Content does not fit the parser it was handed to
    (binary given to a text parser, a PDF that cannot be opened, ...).
    """


class UnsupportedStatementError(StatementParsingError):
    """Raised by the pipeline when every applicable parser rejected the file."""
