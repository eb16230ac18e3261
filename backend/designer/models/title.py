"""
Pydantic models for channel titles.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class TitleLocation(str, Enum):
    STRUCTURED = "structured"  # a "meta" node inside the channel's elements
    RAW = "raw"  # a key of the channel's raw record


class TitleState(BaseModel):
    """
    Where a channel's title was found, so a save writes it back to the same place.

    ``present`` is False when the channel stored no title at all; an empty
    title is then not materialized on save.
    """

    location: TitleLocation = TitleLocation.STRUCTURED
    value: str = ""
    raw_key: str = "subject"
    present: bool = False
    # Fields of the original meta node other than type/title (locales, ...)
    meta: Dict[str, Any] = Field(default_factory=dict)
