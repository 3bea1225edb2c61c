"""Compile label definitions into ZPL II.

Template mode (``use_mock_data=False``) renders a single body row whose dynamic
fields are ``[binding]`` markers for the print-time engine. Mock mode renders
``mock_items`` body rows with substituted values for visual previews only.
"""
import logging
from typing import Mapping, Optional, Sequence

from zpl_designer.api.models.schemas import (
    BarcodeType,
    ElementType,
    LabelDefinition,
    PlacedElement,
)
from zpl_designer.services.mock_data import DEFAULT_PROVIDER, MockDataProvider
from zpl_designer.services.units import (
    millimeters_to_dots,
    pixels_to_dots,
    points_to_dots,
    round_half_up,
)
from zpl_designer.utils.helpers import truncate

logger = logging.getLogger(__name__)

ORIENTATIONS = {0: "N", 90: "R", 180: "I", 270: "B"}

BOX_BORDER_DOTS = 2
PLACEHOLDER_BORDER_DOTS = 1
PLACEHOLDER_FONT_DOTS = 15
DEFAULT_FONT_SIZE_PT = 12
DEFAULT_QR_WIDTH_PX = 50
DEFAULT_BARCODE_HEIGHT_PX = 50
DEFAULT_IMAGE_SIZE_PX = 60
QR_PX_PER_MAGNIFICATION = 25
QR_MAX_MAGNIFICATION = 10


def get_orientation(rotation: Optional[int] = 0) -> str:
    """Map degrees clockwise to a ZPL field orientation letter"""
    return ORIENTATIONS.get(rotation or 0, "N")


class ZPLGenerator:
    def __init__(self, data_provider: MockDataProvider = DEFAULT_PROVIDER):
        self.data_provider = data_provider

    def generate_element(
        self,
        element: PlacedElement,
        use_mock_data: bool = False,
        offset_y_mm: float = 0,
        row: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Return the newline-terminated ZPL fragment for one element."""
        x_dots = pixels_to_dots(element.x)
        y_dots = millimeters_to_dots(offset_y_mm) + pixels_to_dots(element.y)
        command = f"^FO{x_dots},{y_dots}"

        if element.type is ElementType.BOX:
            command += self.generate_box(element)
        elif element.type is ElementType.BARCODE:
            content = self.data_provider.resolve_element(element, use_mock_data, row)
            command += self.generate_barcode(element, content)
        elif element.type is ElementType.IMAGE:
            command += self.generate_image(element, x_dots, y_dots)
        else:
            content = self.data_provider.resolve_element(element, use_mock_data, row)
            command += self.generate_text(element, content, use_mock_data)

        return command + "\n"

    @staticmethod
    def generate_box(element: PlacedElement) -> str:
        width_dots = pixels_to_dots(element.width or 0)
        height_dots = pixels_to_dots(element.height or 0)
        return f"^GB{width_dots},{height_dots},{BOX_BORDER_DOTS}^FS"

    @staticmethod
    def generate_barcode(element: PlacedElement, content: str) -> str:
        if element.barcode_type is BarcodeType.QR:
            # ^BQo,model,magnification; model 2 is the enhanced symbology
            width_px = element.width or DEFAULT_QR_WIDTH_PX
            magnification = max(1, min(QR_MAX_MAGNIFICATION, round_half_up(width_px / QR_PX_PER_MAGNIFICATION)))
            return f"^BQN,2,{magnification}^FDQA,{content}^FS"

        orientation = get_orientation(element.rotation)
        height_dots = pixels_to_dots(element.height or DEFAULT_BARCODE_HEIGHT_PX)
        interpretation = "Y" if element.show_label else "N"
        return f"^BC{orientation},{height_dots},{interpretation},N,N^FD{content}^FS"

    @staticmethod
    def generate_image(element: PlacedElement, x_dots: int, y_dots: int) -> str:
        bitmap = element.zpl_image
        if bitmap is not None and bitmap.hex:
            return f"^GFA,{bitmap.total_bytes},{bitmap.total_bytes},{bitmap.bytes_per_row},{bitmap.hex}^FS"

        # Outline plus an [IMG:key] marker so consumers without the asset still see the intent
        width_dots = pixels_to_dots(element.width or DEFAULT_IMAGE_SIZE_PX)
        height_dots = pixels_to_dots(element.height or DEFAULT_IMAGE_SIZE_PX)
        return (
            f"^GB{width_dots},{height_dots},{PLACEHOLDER_BORDER_DOTS}^FS"
            f"^FO{x_dots},{y_dots}^A0N,{PLACEHOLDER_FONT_DOTS},{PLACEHOLDER_FONT_DOTS}"
            f"^FD[IMG:{element.image_key or 'NONE'}]^FS"
        )

    @staticmethod
    def generate_text(element: PlacedElement, content: str, use_mock_data: bool) -> str:
        orientation = get_orientation(element.rotation)
        font_dots = points_to_dots(element.font_size or DEFAULT_FONT_SIZE_PT)

        # Template markers are never truncated, the binding name must survive intact
        is_marker = element.is_dynamic and not use_mock_data
        if element.max_chars and not is_marker:
            content = truncate(content, element.max_chars)

        return f"^A0{orientation},{font_dots},{font_dots}^FD{content}^FS"

    def _generate_section(
        self,
        elements: Sequence[PlacedElement],
        use_mock_data: bool,
        offset_y_mm: float,
        row: Optional[Mapping[str, str]] = None,
    ) -> str:
        zpl = ""
        for element in elements:
            try:
                zpl += self.generate_element(element, use_mock_data, offset_y_mm, row)
            except (TypeError, ValueError, ArithmeticError) as e:
                logger.warning(f"Skipping element {element.id}: {e}")
        return zpl

    def generate_document(
        self,
        label: LabelDefinition,
        mock_items: int = 3,
        use_mock_data: bool = False,
    ) -> str:
        """Compile a whole label; template mode always renders exactly one body row."""
        header, body, footer = label.header, label.body, label.footer
        rows = mock_items if use_mock_data else 1

        total_height_mm = header.height + body.height * rows + footer.height
        zpl = "^XA\n^CI28\n"
        zpl += f"^LL{millimeters_to_dots(total_height_mm)}\n"
        zpl += f"^PW{millimeters_to_dots(label.canvas_width)}\n"

        zpl += self._generate_section(header.elements, use_mock_data, 0)

        for index in range(rows):
            row_offset_mm = header.height + index * body.height
            row = self.data_provider.row(index) if use_mock_data else None
            zpl += self._generate_section(body.elements, use_mock_data, row_offset_mm, row)

        footer_offset_mm = header.height + rows * body.height
        zpl += self._generate_section(footer.elements, use_mock_data, footer_offset_mm)

        zpl += "^XZ"
        logger.debug(
            f"Compiled label: {rows} body row(s), {total_height_mm}mm, mock={use_mock_data}"
        )
        return zpl


_default_generator = ZPLGenerator()


def generate_element_zpl(
    element: PlacedElement,
    use_mock_data: bool = False,
    offset_y_mm: float = 0,
    row: Optional[Mapping[str, str]] = None,
) -> str:
    return _default_generator.generate_element(element, use_mock_data, offset_y_mm, row)


def generate_zpl(label: LabelDefinition, mock_items: int = 3, use_mock_data: bool = False) -> str:
    return _default_generator.generate_document(label, mock_items, use_mock_data)
