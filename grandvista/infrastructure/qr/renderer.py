import io
import logging
import time

import qrcode
from qrcode.image.svg import SvgPathImage
from PIL import Image, ImageDraw, ImageFont

from ...db.models.enums import QRFormat
from ...application.ports.qr_renderer import QRRenderer

logger = logging.getLogger(__name__)

# A4 at 150 dpi
PDF_PAGE_SIZE = (1240, 1754)
PDF_RESOLUTION = 150.0
PDF_QR_SIZE = 640
# Fixed document dates keep a re-rendered PDF identical to the first one
PDF_TIMESTAMP = time.gmtime(0)


class QRCodeRenderer(QRRenderer):
    """Renders a URL as PNG, SVG or a branded one-page PDF.

    Output is a pure function of (url, format), so a lost file can always be
    rebuilt from the database row.
    """

    def __init__(self, brand_name: str = "Grand Vista Hotel", subtitle: str = "Scan to view our digital menu",
                 box_size: int = 10, border: int = 4):
        self.brand_name = brand_name
        self.subtitle = subtitle
        self.box_size = box_size
        self.border = border

    def _build(self, url: str) -> qrcode.QRCode:
        qr = qrcode.QRCode(box_size=self.box_size, border=self.border)
        qr.add_data(url)
        qr.make(fit=True)
        return qr

    def render(self, url: str, format: QRFormat) -> bytes:
        if format == QRFormat.PNG:
            return self.render_png(url)
        if format == QRFormat.SVG:
            return self.render_svg(url)
        if format == QRFormat.PDF:
            return self.render_pdf(url)
        raise ValueError(f"Unsupported QR format: {format}")

    def _png_image(self, url: str) -> Image.Image:
        return self._build(url).make_image(fill_color="black", back_color="white").convert("RGB")

    def render_png(self, url: str) -> bytes:
        bio = io.BytesIO()
        self._png_image(url).save(bio, format="PNG", optimize=True)
        return bio.getvalue()

    def render_svg(self, url: str) -> bytes:
        bio = io.BytesIO()
        self._build(url).make_image(image_factory=SvgPathImage).save(bio)
        return bio.getvalue()

    def render_pdf(self, url: str) -> bytes:
        page = Image.new("RGB", PDF_PAGE_SIZE, "white")
        draw = ImageDraw.Draw(page)
        width, _ = PDF_PAGE_SIZE

        y = 150
        y = self._draw_centered(draw, self.brand_name, y, size=72, fill="black", width=width) + 40
        y = self._draw_centered(draw, self.subtitle, y, size=40, fill="black", width=width) + 80

        qr_img = self._png_image(url).resize((PDF_QR_SIZE, PDF_QR_SIZE), Image.NEAREST)
        page.paste(qr_img, ((width - PDF_QR_SIZE) // 2, y))
        y += PDF_QR_SIZE + 80

        self._draw_centered(draw, url, y, size=28, fill="#666666", width=width)

        bio = io.BytesIO()
        page.save(bio, format="PDF", resolution=PDF_RESOLUTION, title=self.brand_name,
                  creationDate=PDF_TIMESTAMP, modDate=PDF_TIMESTAMP)
        return bio.getvalue()

    def _draw_centered(self, draw: ImageDraw.ImageDraw, text: str, y: int, size: int, fill: str, width: int) -> int:
        font = ImageFont.load_default(size=size)
        text_width = draw.textlength(text, font=font)
        draw.text(((width - text_width) / 2, y), text, font=font, fill=fill)
        return y + size
