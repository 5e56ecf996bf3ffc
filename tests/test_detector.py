"""
Unit tests for detect_format and the content sniffing helpers.
"""
import pytest

from conciliador.parsing.base import StatementFormat
from conciliador.parsing.config.layout import FixedWidthLayout
from conciliador.parsing.config.registry import LayoutRegistry
from conciliador.parsing.detector import (
    detect_format, has_fixed_width_marker, is_header_or_separator, looks_delimited, split_fields,
)

DELIMITED = "Data|Descrição|Tipo|Valor\n25/01/2026|PIX RECEBIDO|C|1000,00\n"


# =============================================================================
# TEST: extension rules
# =============================================================================

class TestExtension:

    def test_pdf_extension(self):
        assert detect_format(b"%PDF-1.4 ...", "extrato.PDF") is StatementFormat.PDF_TEXT

    def test_pdf_extension_wins_over_content(self):
        assert detect_format("0770001300 ...", "extrato.pdf") is StatementFormat.PDF_TEXT

    def test_ret_extension(self):
        assert detect_format("anything", "EXTRATO.RET") is StatementFormat.FIXED_WIDTH

    def test_txt_with_delimited_content(self):
        assert detect_format(DELIMITED, "extrato.txt") is StatementFormat.DELIMITED

    def test_txt_with_fixed_width_marker(self, cnab_statement):
        assert detect_format(cnab_statement, "extrato.txt") is StatementFormat.FIXED_WIDTH

    def test_txt_defaults_to_fixed_width(self):
        assert detect_format("texto livre sem colunas", "notas.txt") is StatementFormat.FIXED_WIDTH


# =============================================================================
# TEST: content rules
# =============================================================================

class TestContent:

    def test_fixed_width_marker_without_extension(self, cnab_statement):
        assert detect_format(cnab_statement, "download") is StatementFormat.FIXED_WIDTH

    @pytest.mark.parametrize("text", [
        "Pix recebido de CLIENTE",
        "PIX ... valor RECEBIDO",
    ])
    def test_pix_received_markers(self, text):
        assert detect_format(text, "arquivo.dat") is StatementFormat.FIXED_WIDTH

    def test_pix_alone_is_not_enough(self):
        assert detect_format("PIX ENVIADO", "arquivo.dat") is StatementFormat.UNKNOWN

    def test_binary_without_known_extension(self):
        assert detect_format(b"\x00\x01\x02", "arquivo.bin") is StatementFormat.UNKNOWN

    def test_unrecognised_text(self):
        assert detect_format("hello world", "readme") is StatementFormat.UNKNOWN

    def test_same_input_same_answer(self):
        results = {detect_format(DELIMITED, "a.txt") for _ in range(3)}
        assert results == {StatementFormat.DELIMITED}

    def test_custom_registry_marker(self):
        registry = LayoutRegistry(include_builtin=False)
        registry.register(FixedWidthLayout(
            name="Outro Banco", bank_id="999", bank_name="Outro Banco", detail_prefix="9990001300",
        ))

        assert detect_format("9990001300 ...", "x", registry) is StatementFormat.FIXED_WIDTH
        assert detect_format("0770001300 ...", "x", registry) is StatementFormat.UNKNOWN


# =============================================================================
# TEST: helpers
# =============================================================================

class TestHelpers:

    def test_split_fields_pipe(self):
        assert split_fields("a | b|c") == ["a", "b", "c"]

    def test_split_fields_tab(self):
        assert split_fields("a\tb\tc") == ["a", "b", "c"]

    @pytest.mark.parametrize("line", [
        "Data|Descrição|Tipo|Valor",
        "DATA\tHISTORICO\tTIPO\tVALOR",
        "----------|------|---",
        "valor: | x",
    ])
    def test_header_or_separator(self, line):
        assert is_header_or_separator(line) is True

    def test_data_line_is_not_header(self):
        assert is_header_or_separator("25/01/2026|PIX|C|1,00") is False

    def test_looks_delimited(self):
        assert looks_delimited(DELIMITED) is True
        assert looks_delimited("Data|Descrição|Tipo|Valor\n---|---") is False
        assert looks_delimited("25/01/2026|PIX|C") is False

    def test_has_fixed_width_marker(self, cnab_statement):
        assert has_fixed_width_marker(cnab_statement) is True
        assert has_fixed_width_marker(DELIMITED) is False
