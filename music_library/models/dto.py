#!/usr/bin/env python
"""
Pydantic DTOs for the song catalog.

Field aliases follow the wire names used by the HTTP API and the enrichment
service (``group``, ``song``, ``releaseDate``, ``text``, ``link``); Python code
uses the attribute names.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SongDetailDTO(_WireModel):
    """Mutable attributes of a song; also the enrichment response shape."""

    release_date: str = Field(default="", alias="releaseDate")
    text: str = ""
    link: str = ""


class SongIdentityDTO(_WireModel):
    """Creation payload. Anything besides ``group``/``song`` is ignored."""

    author: str = Field(default="", alias="group")
    title: str = Field(default="", alias="song")


class SongDTO(_WireModel):
    author: str = Field(alias="group")
    title: str = Field(alias="song")
    release_date: str = Field(default="", alias="releaseDate")
    text: str = ""
    link: str = ""

    @classmethod
    def from_parts(cls, identity: SongIdentityDTO, detail: SongDetailDTO) -> "SongDTO":
        return cls(
            author=identity.author,
            title=identity.title,
            release_date=detail.release_date,
            text=detail.text,
            link=detail.link,
        )

    @property
    def detail(self) -> SongDetailDTO:
        return SongDetailDTO(release_date=self.release_date, text=self.text, link=self.link)

    def to_wire(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class FilterSpec(_WireModel):
    """Sparse exact-match filter. An empty string leaves the field unconstrained."""

    author: str = ""
    title: str = ""
    release_date: str = ""
    text: str = ""
    link: str = ""

    def is_empty(self) -> bool:
        return not any((self.author, self.title, self.release_date, self.text, self.link))


class PaginationWindow(BaseModel):
    offset: Optional[int] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)


__all__ = ["SongDetailDTO", "SongIdentityDTO", "SongDTO", "FilterSpec", "PaginationWindow"]
