"""HTML to PDF rendering with WeasyPrint."""

from __future__ import annotations

from pathlib import Path

from weasyprint import HTML

from core.exceptions import RenderError


class PdfRenderer:
    """Render receipt markup to a PDF file. Each call builds a fresh document."""

    def render(self, html: str, output_path: str | Path, order_id: str = "") -> Path:
        """
        Write html to output_path as a PDF.

        Every call parses a new WeasyPrint document, the same isolation a
        freshly launched headless browser gives, and nothing is shared
        between concurrent renders.

        Raises:
            RenderError: If WeasyPrint fails for any reason
        """
        path = Path(output_path)
        try:
            HTML(string=html).write_pdf(target=str(path))
        except Exception as exc:
            raise RenderError(order_id or path.stem, str(exc)) from exc
        return path
