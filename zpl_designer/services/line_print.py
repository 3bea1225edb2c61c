"""Fixed-width text rendering of a label for printers without graphics.

Elements are projected onto character columns and grouped into lines by their
vertical position. Barcodes and images have no character form and are dropped.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from zpl_designer.api.models.schemas import ElementType, LabelDefinition, PlacedElement
from zpl_designer.services.mock_data import DEFAULT_PROVIDER, MockDataProvider
from zpl_designer.services.units import pixels_to_millimeters

logger = logging.getLogger(__name__)

# 80mm receipt paper fits 48 columns in the default font
REFERENCE_PAPER_WIDTH_MM = 80
REFERENCE_COLUMNS = 48
COLS_PER_MM = REFERENCE_COLUMNS / REFERENCE_PAPER_WIDTH_MM

LINE_THRESHOLD_PX = 15  # about one text line (4mm)
RULE_MAX_HEIGHT_PX = 5
RULE_MIN_WIDTH_PX = 20


@dataclass
class LineItem:
    y: float
    col: int
    content: str


@dataclass
class Line:
    y: float
    items: List[LineItem] = field(default_factory=list)


def column_for(px: float) -> int:
    return math.floor(pixels_to_millimeters(px) * COLS_PER_MM)


class LinePrintRenderer:
    def __init__(self, data_provider: MockDataProvider = DEFAULT_PROVIDER):
        self.data_provider = data_provider

    def resolve_item(
        self,
        element: PlacedElement,
        use_mock_data: bool,
        row: Optional[Mapping[str, str]] = None,
    ) -> Optional[LineItem]:
        content = ""
        if element.type is ElementType.BOX:
            width = element.width or 0
            if (element.height or 0) < RULE_MAX_HEIGHT_PX and width > RULE_MIN_WIDTH_PX:
                content = "-" * max(1, column_for(width))
        elif element.type is ElementType.TEXT:
            content = self.data_provider.resolve_element(element, use_mock_data, row)
        else:
            return None

        if not content:
            return None
        return LineItem(y=element.y, col=column_for(element.x), content=content)

    @staticmethod
    def group_lines(items: Sequence[LineItem]) -> List[Line]:
        """Cluster items whose y positions lie within the line threshold.

        Items are visited top to bottom and join the nearest open line.
        """
        lines: List[Line] = []
        for item in sorted(items, key=lambda i: i.y):
            candidates = [line for line in lines if abs(line.y - item.y) < LINE_THRESHOLD_PX]
            if candidates:
                nearest = min(candidates, key=lambda line: abs(line.y - item.y))
                nearest.items.append(item)
            else:
                lines.append(Line(y=item.y, items=[item]))
        return lines

    @staticmethod
    def render_line(line: Line) -> str:
        text = ""
        cursor = 0
        for item in sorted(line.items, key=lambda i: i.col):
            if item.col > cursor:
                text += " " * (item.col - cursor)
                cursor = item.col
            elif item.col < cursor:
                # overlapping fields still get a separator
                text += " "
                cursor += 1
            text += item.content
            cursor += len(item.content)
        return text

    def render_section(
        self,
        elements: Sequence[PlacedElement],
        use_mock_data: bool,
        row: Optional[Mapping[str, str]] = None,
    ) -> str:
        items = [self.resolve_item(element, use_mock_data, row) for element in elements]
        lines = self.group_lines([item for item in items if item is not None])
        return "".join(self.render_line(line) + "\n" for line in lines)

    def render(self, label: LabelDefinition, mock_items: int = 3, use_mock_data: bool = False) -> str:
        width_mm = label.canvas_width
        output = "=== LINE PRINT MODE (FIXED WIDTH PREVIEW) ===\n"
        output += f"Paper Width: {width_mm:g}mm (Approx {math.floor(width_mm * COLS_PER_MM)} chars)\n\n"

        output += "--- HEADER ---\n"
        output += self.render_section(label.header.elements, use_mock_data) + "\n"

        output += "--- BODY ---\n"
        rows = mock_items if use_mock_data else 1
        for index in range(rows):
            row = self.data_provider.row(index) if use_mock_data else None
            output += self.render_section(label.body.elements, use_mock_data, row)
        output += "\n"

        output += "--- FOOTER ---\n"
        output += self.render_section(label.footer.elements, use_mock_data) + "\n"

        logger.debug(f"Rendered line print: {rows} body row(s), mock={use_mock_data}")
        return output


_default_renderer = LinePrintRenderer()


def generate_line_print(label: LabelDefinition, mock_items: int = 3, use_mock_data: bool = False) -> str:
    return _default_renderer.render(label, mock_items, use_mock_data)
