"""
Conciliador: bank statement parsing and bill reconciliation.
"""
from .parsing.pipeline import StatementPipeline, parse_statement
from .core.matcher import BillMatcher, match_debit_with_bills

__version__ = "1.0.0"

__all__ = ['StatementPipeline', 'parse_statement', 'BillMatcher', 'match_debit_with_bills']
