# app/core/cert_pdf.py
import io
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from pypdf import PdfReader, PdfWriter

from app.core.cert_qr import decode_data_url
from app.core.config import settings
from app.core.errors import RenderError
from app.schemas.certificate import CertificateData

logger = logging.getLogger(__name__)


def _make_overlay_pdf(data: CertificateData, institution: str, page_size=letter) -> bytes:
    """Creates a transparent overlay PDF with text + QR only."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=page_size)
    w, h = page_size

    c.setFont("Times-Bold", 14)
    c.drawCentredString(w / 2, h - 30 * mm, institution.upper())

    c.setFont("Times-Bold", 30)
    c.drawCentredString(w / 2, h - 60 * mm, "CONSTANCIA")

    y = h - 85 * mm
    period = ""
    if data.start_date and data.end_date:
        period = f"del {data.start_date} al {data.end_date}"
    lines = [
        "Se otorga la presente constancia a",
        (data.nombre or "").strip().upper(),
        "por haber concluido satisfactoriamente el curso",
        f"“{(data.curso or '').strip()}”",
        f"con una duración de {data.horas} horas",
        period,
    ]
    for i, line in enumerate(lines):
        if not line:
            continue
        bold = i in (1, 3)  # student + course
        c.setFont("Times-Bold" if bold else "Times-Roman", 18 if bold else 13)
        c.drawCentredString(w / 2, y - i * 11 * mm, line)

    c.setFont("Times-Roman", 10)
    if data.emision:
        c.drawString(22 * mm, 40 * mm, f"Fecha de emisión: {data.emision}")
    if data.vencimiento:
        c.drawString(22 * mm, 34 * mm, f"Vigencia: {data.vencimiento}")
    c.drawString(22 * mm, 28 * mm, f"CUV: {data.cuv or ''}")

    if data.qr_code_data_url:
        qr_size = 30 * mm
        qr_img = ImageReader(io.BytesIO(decode_data_url(data.qr_code_data_url)))
        c.drawImage(qr_img, w - 22 * mm - qr_size, 26 * mm, qr_size, qr_size, mask="auto")
        c.setFont("Times-Roman", 8)
        c.drawRightString(w - 22 * mm, 22 * mm, "Escanea para verificar")

    c.save()
    return buf.getvalue()


class CertificateRenderer:
    """
    Long-lived PDF renderer.

    The template PDF is read once, on first use, and kept until close().
    Every document is built inside its own scope (_document) whose buffers
    are released when the document is done, whatever happens.
    """

    def __init__(self, template_pdf_path: Optional[str] = None, institution: Optional[str] = None):
        self.template_pdf_path = template_pdf_path
        self.institution = institution or settings.CERT_INSTITUTION_NAME
        self._template: Optional[bytes] = None
        self._loaded = False
        self._closed = False
        self._lock = threading.Lock()

    def _load_template(self) -> Optional[bytes]:
        with self._lock:
            if self._closed:
                raise RenderError("Renderer is closed")
            if not self._loaded:
                if self.template_pdf_path:
                    path = Path(self.template_pdf_path)
                    if not path.is_file():
                        raise RenderError(f"Certificate template not found: {path}")
                    self._template = path.read_bytes()
                    logger.info("Certificate template loaded from %s", path)
                self._loaded = True
            return self._template

    @contextmanager
    def _document(self) -> Iterator[io.BytesIO]:
        out = io.BytesIO()
        try:
            yield out
        finally:
            out.close()

    def _render_one(self, data: CertificateData, template: Optional[bytes]) -> bytes:
        with self._document() as out:
            if template is None:
                out.write(_make_overlay_pdf(data, self.institution))
                return out.getvalue()

            template_page = PdfReader(io.BytesIO(template)).pages[0]

            # Use the template page size so overlay matches perfectly
            w = float(template_page.mediabox.width)
            h = float(template_page.mediabox.height)
            overlay_bytes = _make_overlay_pdf(data, self.institution, page_size=(w, h))
            template_page.merge_page(PdfReader(io.BytesIO(overlay_bytes)).pages[0])

            writer = PdfWriter()
            writer.add_page(template_page)
            writer.write(out)
            return out.getvalue()

    def render(self, data: CertificateData) -> bytes:
        return self.render_batch([data])[0]

    def render_batch(self, items: list[CertificateData]) -> list[bytes]:
        """One PDF per item, same order. Any failure fails the whole call."""
        template = self._load_template()
        try:
            return [self._render_one(data, template) for data in items]
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Error generando PDF: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._template = None
            self._loaded = False
            self._closed = True


_renderer: Optional[CertificateRenderer] = None


def get_renderer() -> CertificateRenderer:
    """Process-wide renderer, created on first use."""
    global _renderer
    if _renderer is None:
        _renderer = CertificateRenderer(settings.CERT_TEMPLATE_PDF_PATH)
    return _renderer


def close_renderer() -> None:
    global _renderer
    if _renderer is not None:
        _renderer.close()
        _renderer = None
