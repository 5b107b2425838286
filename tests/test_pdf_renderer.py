"""
Unit tests for the WeasyPrint PDF renderer.
"""

import pytest
from unittest.mock import patch

from core.exceptions import RenderError
from modules.pdf_renderer import PdfRenderer


class TestPdfRenderer:

    @patch("modules.pdf_renderer.HTML")
    def test_fresh_document_per_render(self, mock_html, tmp_path):
        renderer = PdfRenderer()

        renderer.render("<p>one</p>", tmp_path / "a.pdf")
        renderer.render("<p>two</p>", tmp_path / "b.pdf")

        assert [c.kwargs["string"] for c in mock_html.call_args_list] == ["<p>one</p>", "<p>two</p>"]
        assert mock_html.return_value.write_pdf.call_count == 2

    @patch("modules.pdf_renderer.HTML")
    def test_writes_to_output_path(self, mock_html, tmp_path):
        path = PdfRenderer().render("<p/>", str(tmp_path / "order-T1.pdf"))

        assert path == tmp_path / "order-T1.pdf"
        mock_html.return_value.write_pdf.assert_called_once_with(target=str(path))

    @patch("modules.pdf_renderer.HTML")
    def test_failure_wrapped(self, mock_html, tmp_path):
        mock_html.return_value.write_pdf.side_effect = ValueError("bad css")

        with pytest.raises(RenderError) as exc_info:
            PdfRenderer().render("<p/>", tmp_path / "order-T1.pdf", order_id="T1")

        assert exc_info.value.order_id == "T1"
        assert exc_info.value.reason == "bad css"
        assert isinstance(exc_info.value.__cause__, ValueError)
