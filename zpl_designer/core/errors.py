class ZPLDesignerError(Exception):
    """Base class for label designer failures."""


class EncodingError(ZPLDesignerError):
    """Raised when an image cannot be decoded or rasterized."""


class PreviewError(ZPLDesignerError):
    """Raised when the rendering service does not return a preview image."""


class DuplicateElementIdError(ZPLDesignerError):
    def __init__(self, element_id: str, section: str):
        super().__init__(f"Element id '{element_id}' already exists in section '{section}'")
        self.element_id = element_id
        self.section = section


class ElementNotFoundError(ZPLDesignerError):
    def __init__(self, element_id: str, section: str):
        super().__init__(f"Element '{element_id}' not found in section '{section}'")
        self.element_id = element_id
        self.section = section
