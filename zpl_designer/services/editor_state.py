"""Editor-side state container for label definitions.

The compiler only ever sees immutable ``LabelDefinition`` snapshots. This
store owns the mutable editing session: each mutating command replaces the
snapshot and records the previous one so it can be undone.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from zpl_designer.api.models.schemas import (
    ElementMove,
    ElementType,
    ImageEncodingResult,
    LabelDefinition,
    PlacedElement,
    SectionName,
    ToolDrop,
)
from zpl_designer.core.errors import DuplicateElementIdError, ElementNotFoundError
from zpl_designer.services.units import ScreenPx, clamp_zoom, round_half_up, screen_to_logical

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
SNAP_SIZE = 10
DEFAULT_ZOOM = 1.25
MIN_SECTION_HEIGHT_MM = 1
MAX_SECTION_HEIGHT_MM = 500
MIN_CANVAS_WIDTH_MM = 10
MAX_CANVAS_WIDTH_MM = 104
DROP_POSITION_PX = 10


def generate_id() -> str:
    return uuid.uuid4().hex[:9]


def snap(value: float) -> float:
    return round_half_up(value / SNAP_SIZE) * SNAP_SIZE


@dataclass(frozen=True)
class HistoryEntry:
    command: str
    snapshot: LabelDefinition


class LabelStore:
    def __init__(self, label: Optional[LabelDefinition] = None, history_limit: int = HISTORY_LIMIT):
        self.label = label or LabelDefinition()
        self.history_limit = history_limit
        self.selected_element_id: Optional[str] = None
        self.selected_section: Optional[SectionName] = None
        self.zoom = DEFAULT_ZOOM
        self._past: List[HistoryEntry] = []
        self._future: List[HistoryEntry] = []

    # -- history -------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def history(self) -> List[str]:
        """Names of the undoable commands, oldest first."""
        return [entry.command for entry in self._past]

    def _commit(self, command: str, label: LabelDefinition) -> None:
        self._past.append(HistoryEntry(command, self.label))
        if len(self._past) > self.history_limit:
            del self._past[0]
        self._future.clear()
        self.label = label
        logger.debug(f"Applied {command}")

    def undo(self) -> bool:
        if not self._past:
            return False
        entry = self._past.pop()
        self._future.append(HistoryEntry(entry.command, self.label))
        self.label = entry.snapshot
        self._drop_stale_selection()
        return True

    def redo(self) -> bool:
        if not self._future:
            return False
        entry = self._future.pop()
        self._past.append(HistoryEntry(entry.command, self.label))
        self.label = entry.snapshot
        self._drop_stale_selection()
        return True

    def _drop_stale_selection(self) -> None:
        if self.selected_element_id and self.find_element(self.selected_element_id) is None:
            self.select_element(None, None)

    # -- lookups -------------------------------------------------------------

    def find_element(self, element_id: str) -> Optional[Tuple[SectionName, PlacedElement]]:
        for name in SectionName:
            for element in self.label.section(name).elements:
                if element.id == element_id:
                    return name, element
        return None

    def get_element(self, section: SectionName, element_id: str) -> PlacedElement:
        for element in self.label.section(section).elements:
            if element.id == element_id:
                return element
        raise ElementNotFoundError(element_id, SectionName(section).value)

    def _with_section(self, label: LabelDefinition, section: SectionName, **changes: Any) -> LabelDefinition:
        name = SectionName(section).value
        updated = label.section(section).model_copy(update=changes)
        return label.model_copy(update={name: updated})

    def _with_element_added(self, label: LabelDefinition, section: SectionName, element: PlacedElement) -> LabelDefinition:
        elements = list(label.section(section).elements) + [element]
        return self._with_section(label, section, elements=elements)

    def _with_element_removed(self, label: LabelDefinition, section: SectionName, element_id: str) -> LabelDefinition:
        elements = [el for el in label.section(section).elements if el.id != element_id]
        return self._with_section(label, section, elements=elements)

    # -- commands ------------------------------------------------------------

    def add_element(self, section: SectionName, element: PlacedElement) -> None:
        existing = self.find_element(element.id)
        if existing is not None:
            raise DuplicateElementIdError(element.id, existing[0].value)
        self._commit("add_element", self._with_element_added(self.label, section, element))

    def update_element(self, section: SectionName, element_id: str, **updates: Any) -> PlacedElement:
        """Apply field updates (snake_case names) and re-validate the element."""
        current = self.get_element(section, element_id)
        if "id" in updates and updates["id"] != element_id and self.find_element(updates["id"]):
            raise DuplicateElementIdError(updates["id"], SectionName(section).value)
        updated = PlacedElement.model_validate({**current.model_dump(), **updates})
        elements = [updated if el.id == element_id else el for el in self.label.section(section).elements]
        self._commit("update_element", self._with_section(self.label, section, elements=elements))
        return updated

    def remove_element(self, section: SectionName, element_id: str) -> None:
        self.get_element(section, element_id)
        self._commit("remove_element", self._with_element_removed(self.label, section, element_id))
        if self.selected_element_id == element_id:
            self.select_element(None, None)

    def set_image_key(self, section: SectionName, element_id: str, image_key: Optional[str]) -> PlacedElement:
        """Select a named image preset; a preset replaces any uploaded bitmap."""
        if image_key:
            return self.update_element(section, element_id, image_key=image_key, image_base64=None, zpl_image=None)
        return self.update_element(section, element_id, image_key=image_key)

    def set_image_bitmap(self, section: SectionName, element_id: str, result: ImageEncodingResult) -> PlacedElement:
        """Attach an encoded upload; the element takes the scaled image's size."""
        return self.update_element(
            section,
            element_id,
            image_base64=result.preview_image,
            zpl_image=result.to_bitmap().model_dump(),
            image_key=None,
            width=result.width,
            height=result.height,
        )

    def select_element(self, element_id: Optional[str], section: Optional[SectionName]) -> None:
        self.selected_element_id = element_id
        self.selected_section = SectionName(section) if section else None

    def set_section_height(self, section: SectionName, height: float) -> None:
        height = max(MIN_SECTION_HEIGHT_MM, min(MAX_SECTION_HEIGHT_MM, height))
        self._commit("set_section_height", self._with_section(self.label, section, height=height))

    def set_canvas_width(self, width: float) -> None:
        width = max(MIN_CANVAS_WIDTH_MM, min(MAX_CANVAS_WIDTH_MM, width))
        self._commit("set_canvas_width", self.label.model_copy(update={"canvas_width": width}))

    def set_zoom(self, zoom: float) -> None:
        self.zoom = clamp_zoom(zoom)

    def clear_canvas(self) -> None:
        self._commit("clear_canvas", LabelDefinition(canvas_width=self.label.canvas_width))
        self.select_element(None, None)

    def set_template(self, label: LabelDefinition) -> None:
        self._commit("set_template", label)
        self.select_element(None, None)

    def snapshot(self) -> LabelDefinition:
        return self.label

    # -- drag and drop -------------------------------------------------------

    def handle_drag(self, event: Union[ToolDrop, ElementMove]) -> PlacedElement:
        if isinstance(event, ToolDrop):
            return self._drop_tool(event)
        return self._move_element(event)

    def _drop_tool(self, event: ToolDrop) -> PlacedElement:
        tool = ElementType(event.tool_type)
        element = PlacedElement(
            id=generate_id(),
            type=tool,
            x=DROP_POSITION_PX,
            y=DROP_POSITION_PX,
            is_dynamic=False,
            content="New Text" if tool is ElementType.TEXT else None,
            width=100 if tool is ElementType.BOX else None,
            height=50 if tool is ElementType.BOX else None,
            font_size=12,
        )
        self.add_element(event.target_section, element)
        return element

    def _move_element(self, event: ElementMove) -> PlacedElement:
        element = self.get_element(event.source_section, event.element_id)
        dx = screen_to_logical(ScreenPx(event.delta_x), self.zoom)
        dy = screen_to_logical(ScreenPx(event.delta_y), self.zoom)
        new_x = snap(max(0, element.x + dx))

        if SectionName(event.source_section) is SectionName(event.target_section):
            new_y = snap(max(0, element.y + dy))
            return self.update_element(event.source_section, element.id, x=new_x, y=new_y)

        moved = element.model_copy(update={"x": new_x, "y": DROP_POSITION_PX})
        label = self._with_element_removed(self.label, event.source_section, element.id)
        label = self._with_element_added(label, event.target_section, moved)
        self._commit("move_element", label)
        return moved
