from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel


class ElementType(str, Enum):
    TEXT = "text"
    BOX = "box"
    BARCODE = "barcode"
    IMAGE = "image"


class BarcodeType(str, Enum):
    CODE128 = "code128"
    QR = "qr"


class SectionName(str, Enum):
    HEADER = "header"
    BODY = "body"
    FOOTER = "footer"


class EmbeddedBitmap(BaseModel):
    hex: str = Field(..., description="Uppercase hex payload, rows padded to whole bytes")
    total_bytes: int = Field(..., ge=0, description="Total payload size in bytes")
    bytes_per_row: int = Field(..., ge=0, description="Bytes per bitmap row")

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True


class PlacedElement(BaseModel):
    id: str = Field(..., description="Element id, unique across the whole label")
    type: ElementType = Field(ElementType.TEXT, description="Element kind")
    x: float = Field(0, description="Left edge in editor pixels, section-local")
    y: float = Field(0, description="Top edge in editor pixels, section-local")
    width: Optional[float] = Field(None, description="Width in editor pixels")
    height: Optional[float] = Field(None, description="Height in editor pixels")
    content: Optional[str] = Field(None, description="Literal content")
    is_dynamic: bool = Field(False, description="Resolve content from data_source")
    data_source: Optional[str] = Field(None, description="Symbolic binding name")
    image_key: Optional[str] = Field(None, description="Named image preset")
    font_size: Optional[float] = Field(None, description="Font size in points")
    font_bold: Optional[bool] = None
    rotation: Optional[int] = Field(None, description="0, 90, 180 or 270 degrees")
    max_chars: Optional[int] = Field(None, ge=0, description="Truncate resolved text to this length")
    barcode_type: Optional[BarcodeType] = None
    show_label: Optional[bool] = Field(None, description="Print the human readable line")
    zpl_image: Optional[EmbeddedBitmap] = Field(None, description="Pre-encoded monochrome bitmap")
    image_base64: Optional[str] = Field(None, description="Displayable preview image (data URL)")

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "k3j9x0a1b",
                "type": "text",
                "x": 10,
                "y": 2,
                "isDynamic": True,
                "dataSource": "Line.ProductCode",
                "fontSize": 12,
                "maxChars": 20
            }
        }

    @model_validator(mode="after")
    def check_image_source(self) -> "PlacedElement":
        if self.image_key and self.zpl_image is not None:
            raise ValueError("An image element uses either imageKey or zplImage, not both")
        return self


class Section(BaseModel):
    height: float = Field(..., description="Section height in millimeters")
    elements: List[PlacedElement] = Field(default_factory=list)

    class Config:
        frozen = True


class LabelDefinition(BaseModel):
    header: Section = Field(default_factory=lambda: Section(height=40))
    body: Section = Field(default_factory=lambda: Section(height=10))
    footer: Section = Field(default_factory=lambda: Section(height=20))
    canvas_width: float = Field(104, description="Print width in millimeters (max 104)")

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "header": {"height": 40, "elements": [
                    {"id": "1", "type": "text", "x": 10, "y": 10, "content": "HEADER LOGO"}
                ]},
                "body": {"height": 10, "elements": [
                    {"id": "2", "type": "text", "x": 10, "y": 2, "isDynamic": True,
                     "dataSource": "Line.ProductCode"}
                ]},
                "footer": {"height": 20, "elements": [
                    {"id": "3", "type": "text", "x": 10, "y": 5, "isDynamic": True,
                     "dataSource": "Invoice.Total"}
                ]},
                "canvasWidth": 104
            }
        }

    def section(self, name: SectionName) -> Section:
        return getattr(self, SectionName(name).value)


class CompileOptions(BaseModel):
    mock_items: int = Field(3, ge=1, description="Body rows to render in mock mode")
    use_mock_data: bool = Field(False, description="Substitute mock values instead of [binding] markers")


class CompileRequest(BaseModel):
    label: LabelDefinition
    options: Optional[CompileOptions] = None


class ElementCompileRequest(BaseModel):
    element: PlacedElement
    use_mock_data: bool = False
    offset_mm: float = Field(0, description="Vertical offset of the element's section in millimeters")


class PreviewRequest(BaseModel):
    label: LabelDefinition
    mock_items: int = Field(3, ge=1)


class ImageEncodingResult(BaseModel):
    hex_payload: str = Field(..., description="Uppercase hex bitmap")
    total_bytes: int
    bytes_per_row: int
    width: int
    height: int
    preview_image: str = Field(..., description="PNG data URL of the scaled image")

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True

    def to_bitmap(self) -> EmbeddedBitmap:
        return EmbeddedBitmap(
            hex=self.hex_payload,
            total_bytes=self.total_bytes,
            bytes_per_row=self.bytes_per_row,
        )


class DataSource(BaseModel):
    id: str
    name: str


class ToolDrop(BaseModel):
    """A toolbox item dropped onto a section."""

    kind: Literal["tool-drop"] = "tool-drop"
    tool_type: ElementType
    target_section: SectionName


class ElementMove(BaseModel):
    """An existing element dragged by a screen-space delta."""

    kind: Literal["element-move"] = "element-move"
    element_id: str
    source_section: SectionName
    target_section: SectionName
    delta_x: float = Field(0, description="Horizontal drag distance in screen pixels")
    delta_y: float = Field(0, description="Vertical drag distance in screen pixels")


DragEvent = Annotated[Union[ToolDrop, ElementMove], Field(discriminator="kind")]


class AddElementRequest(BaseModel):
    label: LabelDefinition
    section: SectionName
    element: PlacedElement


class DragRequest(BaseModel):
    label: LabelDefinition
    event: DragEvent
    zoom: float = Field(1.25, description="Canvas zoom the drag delta was measured at")
