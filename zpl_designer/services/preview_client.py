import logging
from typing import Optional

import requests

from zpl_designer.api.models.schemas import LabelDefinition
from zpl_designer.core import config
from zpl_designer.core.errors import PreviewError
from zpl_designer.services.units import DOTS_PER_MM
from zpl_designer.services.zpl_generator import generate_zpl

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


class LabelaryClient:
    """Rasterizes compiled ZPL through a Labelary-compatible HTTP service."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or config.LABELARY_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else config.LABELARY_TIMEOUT

    def label_url(self, width_mm: float, height_mm: float) -> str:
        width_in = width_mm / MM_PER_INCH
        height_in = max(1.0, height_mm / MM_PER_INCH)
        return f"{self.base_url}/printers/{DOTS_PER_MM}dpmm/labels/{width_in:.2f}x{height_in:.2f}/0/"

    def render_png(self, zpl: str, width_mm: float, height_mm: float) -> bytes:
        url = self.label_url(width_mm, height_mm)
        try:
            response = requests.post(
                url,
                data=zpl.encode('utf-8'),
                headers={'Accept': 'image/png'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Preview request failed: {e}")
            raise PreviewError(f"Rendering service unreachable: {e}") from e

        if not response.ok:
            logger.error(f"Rendering service error {response.status_code}: {response.text}")
            raise PreviewError(f"Rendering service returned {response.status_code}: {response.text}")
        return response.content

    def render_label(self, label: LabelDefinition, mock_items: int = 3) -> bytes:
        """Compile ``label`` in mock mode and return the rendered PNG."""
        zpl = generate_zpl(label, mock_items=mock_items, use_mock_data=True)
        height_mm = label.header.height + label.body.height * mock_items + label.footer.height
        return self.render_png(zpl, label.canvas_width, height_mm)
