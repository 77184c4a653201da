"""Request bodies accepted by the web API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from .entry_models import PlaylistItem


class GenerateRequest(BaseModel):
    """Body of ``POST /api/m3u/download``."""

    entries: List[PlaylistItem]
    filename: Optional[str] = None
