"""
Staff Directory Extractor - Pydantic Data Schemas

Result models (EntryList, FieldResult), the FieldSpec that locates a
labelled value in a detail page, and the YAML run configuration.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .pipeline.fetchers.static import DEFAULT_UA
from .pipeline.navigation import DEFAULT_NAV_KEYWORDS


DEFAULT_VALUE_OPEN = '<span class="text">'
DEFAULT_VALUE_CLOSE = "</span>"


def _validate_http_urls(urls: List[str]) -> List[str]:
    out = []
    for u in urls:
        u = (u or "").strip()
        if not u.startswith(("http://", "https://")):
            raise ValueError(f"URL must be a valid HTTP/HTTPS URL: {u!r}")
        out.append(u)
    return out


class ExtractionStrategy(str, Enum):
    """How markup is scanned."""
    PATTERN = "pattern"  # regex over raw markup
    DOM = "dom"          # selectolax tree walk


class FieldSpec(BaseModel):
    """
    Where a named value lives in a detail page.

    The value is the text between ``value_open`` and ``value_close`` that
    follows ``marker`` anywhere later in the document. YAML entries may give
    ``field_class`` instead of ``marker``; it expands to
    ``<div class="field {field_class}">``.
    """
    name: str = Field(..., description="Key in the FieldResult mapping")
    marker: str = Field(..., description="Literal markup that anchors the search")
    value_open: str = Field(default=DEFAULT_VALUE_OPEN, description="Opening tag of the value span")
    value_close: str = Field(default=DEFAULT_VALUE_CLOSE, description="Closing tag of the value span")
    label: Optional[str] = Field(default=None, description="Display label; defaults to name")

    @model_validator(mode="before")
    @classmethod
    def expand_field_class(cls, data):
        if isinstance(data, dict) and "field_class" in data:
            data = dict(data)
            css_class = str(data.pop("field_class") or "").strip()
            if not css_class:
                raise ValueError("field_class cannot be empty")
            data.setdefault("marker", f'<div class="field {css_class}">')
        return data

    @field_validator("name", "marker", "value_open", "value_close")
    @classmethod
    def validate_non_empty_strings(cls, v):
        """Ensure pattern parts are not empty."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @classmethod
    def for_field_class(cls, name: str, css_class: str, label: Optional[str] = None) -> "FieldSpec":
        return cls(name=name, field_class=css_class, label=label)

    @property
    def display_label(self) -> str:
        return self.label or self.name


def default_field_specs() -> List[FieldSpec]:
    """Name / room / office hours as marked up on the HTL staff detail pages."""
    return [
        FieldSpec.for_field_class("name", "Lehrername", label="Name"),
        FieldSpec.for_field_class("room", "Raum", label="Room"),
        FieldSpec.for_field_class("office_hours", "SprStunde", label="Office hours"),
    ]


class EntryList(BaseModel):
    """Ordered, deduplicated directory entries from one list page."""
    entries: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None

    @field_validator("entries")
    @classmethod
    def validate_unique(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("entries must not contain duplicates")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)


class FieldResult(BaseModel):
    """Field name -> extracted value; unmatched fields map to ''."""
    values: Dict[str, str] = Field(default_factory=dict)
    source_url: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any(v for v in self.values.values())

    def __getitem__(self, name: str) -> str:
        return self.values[name]


class ListPagesConfig(BaseModel):
    urls: List[str] = Field(default_factory=list)
    max_count: int = Field(default=5, gt=0, description="Maximum entries reported per page")
    nav_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_NAV_KEYWORDS))
    require_comma: bool = True
    min_length: int = Field(default=6, ge=0)
    strategy: ExtractionStrategy = ExtractionStrategy.PATTERN

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v):
        return _validate_http_urls(v)


class DetailPagesConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    urls: List[str] = Field(default_factory=list)
    field_specs: List[FieldSpec] = Field(default_factory=default_field_specs, alias="fields")
    clean: bool = Field(default=False, description="Trim and entity-decode field values")
    strategy: ExtractionStrategy = ExtractionStrategy.PATTERN

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v):
        return _validate_http_urls(v)

    @field_validator("field_specs")
    @classmethod
    def validate_unique_names(cls, v):
        names = [f.name for f in v]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate field names: {', '.join(dupes)}")
        return v


class FetchConfig(BaseModel):
    timeout_s: float = Field(default=15.0, gt=0)
    user_agent: str = DEFAULT_UA
    respect_robots: bool = True


class OpsConfig(BaseModel):
    ops_json: bool = False


class ScraperConfig(BaseModel):
    """Top-level YAML configuration."""
    list_pages: ListPagesConfig = Field(default_factory=ListPagesConfig)
    detail_pages: DetailPagesConfig = Field(default_factory=DetailPagesConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    ops: OpsConfig = Field(default_factory=OpsConfig)
