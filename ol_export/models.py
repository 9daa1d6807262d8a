"""
Pydantic models for the dump payloads and the exported ndJSON objects.
"""

from dataclasses import dataclass
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class AuthorPayload(BaseModel):
    """JSON payload of an author row; only the display name is used."""
    model_config = ConfigDict(strict=True)

    name: str = Field(..., description="Display name of the author")


class AuthorKey(BaseModel):
    """Reference to an author inside an edition payload."""
    model_config = ConfigDict(strict=True)

    key: str = Field(..., description="Author identifier path, e.g. /authors/OL45A")


class EditionIdentifiers(BaseModel):
    """External identifiers of an edition."""
    model_config = ConfigDict(strict=True)

    goodreads: Optional[List[str]] = Field(None, description="Goodreads identifiers")


class EditionPayload(BaseModel):
    """JSON payload of an edition row."""
    model_config = ConfigDict(strict=True)

    title: str = Field(..., description="Title of the edition")
    publishers: Optional[List[str]] = Field(None, description="Publisher names")
    physical_format: Optional[str] = Field(None, description="Physical format (paperback, ...)")
    subtitle: Optional[str] = Field(None, description="Subtitle")
    number_of_pages: Optional[int] = Field(None, ge=0, description="Page count")
    publish_date: Optional[str] = Field(None, description="Free-text publish date")
    authors: Optional[List[AuthorKey]] = Field(None, description="Author references")
    identifiers: Optional[EditionIdentifiers] = Field(None, description="External identifiers")
    subjects: Optional[List[str]] = Field(None, description="Subject headings")


class BookRecord(BaseModel):
    """Exported edition. Empty lists are stored as None so they are omitted."""
    type: Literal["book"] = "book"
    id: str
    name: str
    authors: Optional[List[str]] = None
    publish_year: Optional[int] = None
    number_of_pages: Optional[int] = None
    subjects: Optional[List[str]] = None
    goodreads: Optional[List[str]] = None

    @classmethod
    def build(
        cls,
        id: str,
        name: str,
        authors: List[str],
        publish_year: Optional[int],
        number_of_pages: Optional[int],
        subjects: List[str],
        goodreads: List[str],
    ) -> "BookRecord":
        return cls(
            id=id,
            name=name,
            authors=authors or None,
            publish_year=publish_year,
            number_of_pages=number_of_pages,
            subjects=subjects or None,
            goodreads=goodreads or None,
        )


class AuthorRecord(BaseModel):
    """Exported author."""
    type: Literal["author"] = "author"
    id: str
    name: str


OutputObject = Annotated[Union[BookRecord, AuthorRecord], Field(discriminator="type")]

OUTPUT_ADAPTER = TypeAdapter(OutputObject)


def dump_output_line(obj: Union[BookRecord, AuthorRecord]) -> bytes:
    """Serialize an output object as one compact, newline-terminated JSON line."""
    return OUTPUT_ADAPTER.dump_json(obj, exclude_none=True) + b"\n"


@dataclass
class PassStats:
    """Record counts for one pass over the dump or the index."""
    processed: int = 0
    kept: int = 0
    skipped: int = 0

    def kept_percentage(self) -> float:
        if self.processed == 0:
            return 0.0
        return (self.kept / self.processed) * 100
