"""
Layout Registry

Holds the built-in fixed-width layouts plus any extra layouts loaded from
JSON files (directory given by CONCILIADOR_LAYOUTS_DIR).
"""
import os
import re
import json
from typing import List, Optional
from conciliador.common.logging_config import get_logger
from .layout import BANCO_INTER_CNAB240, ColumnDef, FixedWidthLayout

logger = get_logger(__name__)


class LayoutRegistry:
    """
    Registry for fixed-width statement layouts.

    Layouts are tried in registration order; JSON layouts are appended after
    the built-in ones.
    """

    def __init__(self, layouts_dir: Optional[str] = None, include_builtin: bool = True):
        """
        Initialize registry.

        Args:
            layouts_dir: Directory containing .json layout files. Defaults to
                the CONCILIADOR_LAYOUTS_DIR environment variable.
            include_builtin: Register the Banco Inter CNAB240 layout first.
        """
        self.layouts_dir = layouts_dir if layouts_dir is not None else os.getenv('CONCILIADOR_LAYOUTS_DIR')
        self.layouts: List[FixedWidthLayout] = [BANCO_INTER_CNAB240] if include_builtin else []
        self._load_layouts()

    def _load_layouts(self) -> None:
        """Scans the directory and loads all .json layouts."""
        if not self.layouts_dir:
            return
        if not os.path.isdir(self.layouts_dir):
            logger.warning(f"Layouts directory not found: {self.layouts_dir}")
            return

        for fname in sorted(os.listdir(self.layouts_dir)):
            if fname.endswith(".json"):
                fpath = os.path.join(self.layouts_dir, fname)
                try:
                    with open(fpath, 'r', encoding='utf-8') as f:
                        self.register(self._parse_layout(json.load(f)))
                    logger.debug(f"Loaded layout: {fname}")
                except (OSError, ValueError, TypeError, KeyError) as e:
                    logger.error(f"Error loading layout {fname}: {e}", layout_file=fname)

    def _parse_layout(self, data: dict) -> FixedWidthLayout:
        """Converts dict to FixedWidthLayout object."""
        layout_data = data.copy()
        header_columns = [ColumnDef(**c) for c in layout_data.pop('header_columns', [])]
        detail_columns = [ColumnDef(**c) for c in layout_data.pop('detail_columns', [])]
        layout = FixedWidthLayout(header_columns=header_columns, detail_columns=detail_columns, **layout_data)
        try:
            re.compile(layout.detail_pattern)
        except re.error as e:
            raise ValueError(f"Invalid detail_pattern: {e}")
        return layout

    def register(self, layout: FixedWidthLayout) -> None:
        self.layouts.append(layout)

    def detect(self, text: str) -> Optional[FixedWidthLayout]:
        """
        Detect the layout whose detail prefix or keywords appear in the text.

        Returns:
            First matching FixedWidthLayout, or None if no match
        """
        for layout in self.layouts:
            if layout.detail_prefix in text or any(k in text for k in layout.keywords):
                logger.debug(f"Detected layout: {layout.name}")
                return layout
        return None

    def get_by_bank_id(self, bank_id: str) -> Optional[FixedWidthLayout]:
        for layout in self.layouts:
            if layout.bank_id == bank_id:
                return layout
        return None

    def get_by_name(self, name: str) -> Optional[FixedWidthLayout]:
        for layout in self.layouts:
            if layout.name == name:
                return layout
        return None

    def list_layouts(self) -> List[str]:
        """List all available layout names."""
        return [l.name for l in self.layouts]

    def markers(self) -> List[str]:
        """Every substring that identifies some registered fixed-width export."""
        found = []
        for layout in self.layouts:
            for marker in [layout.detail_prefix, *layout.keywords]:
                if marker and marker not in found:
                    found.append(marker)
        return found
