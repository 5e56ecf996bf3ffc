# Configuration submodule
from .layout import BANCO_INTER_CNAB240, ColumnDef, FixedWidthLayout
from .registry import LayoutRegistry

__all__ = ['BANCO_INTER_CNAB240', 'ColumnDef', 'FixedWidthLayout', 'LayoutRegistry']
