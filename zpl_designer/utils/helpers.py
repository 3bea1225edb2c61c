import base64
from datetime import datetime
from typing import Optional


def to_data_url(data: bytes, media_type: str = "image/png") -> str:
    """Encode raw bytes as a data URL the editor can display directly"""
    return f"data:{media_type};base64,{base64.b64encode(data).decode('utf-8')}"


def truncate(text: str, limit: Optional[int], suffix: str = "...") -> str:
    if limit is None or len(text) <= limit:
        return text
    return text[:limit] + suffix


def timestamp() -> str:
    return datetime.now().isoformat()
