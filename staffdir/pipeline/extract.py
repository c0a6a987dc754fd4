"""
Extract capability - one interface over both pipelines.

    extractor.extract(html, source_url=None) -> EntryList | FieldResult

AnchorListExtractor turns a list page into an EntryList, FieldExtractor
turns a detail page into a FieldResult. Both are stateless after
construction, so one instance can serve any number of pages.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ..schemas import (
    DetailPagesConfig,
    EntryList,
    ExtractionStrategy,
    FieldResult,
    FieldSpec,
    ListPagesConfig,
    default_field_specs,
)
from .anchors import (
    DEFAULT_MAX_COUNT,
    DEFAULT_MIN_LENGTH,
    CandidateFilter,
    extract_anchor_texts,
    extract_anchor_texts_dom,
    filter_candidates,
)
from .entities import DEFAULT_ENTITY_TABLE
from .fields import extract_fields, extract_fields_dom
from .navigation import DEFAULT_NAV_KEYWORDS


ExtractionResult = Union[EntryList, FieldResult]


class Extractor(Protocol):
    kind: str

    def extract(self, html: str, source_url: Optional[str] = None) -> ExtractionResult:
        ...


class AnchorListExtractor:
    """Link labels -> filtered EntryList."""

    kind = "list"

    def __init__(
        self,
        *,
        max_count: int = DEFAULT_MAX_COUNT,
        nav_keywords: Iterable[str] = DEFAULT_NAV_KEYWORDS,
        require_comma: bool = True,
        min_length: int = DEFAULT_MIN_LENGTH,
        entity_table: Mapping[str, str] | Sequence[Tuple[str, str]] = DEFAULT_ENTITY_TABLE,
        extra_filters: Sequence[CandidateFilter] = (),
        strategy: ExtractionStrategy = ExtractionStrategy.PATTERN,
    ) -> None:
        self.max_count = int(max_count)
        self.nav_keywords = tuple(nav_keywords)
        self.require_comma = bool(require_comma)
        self.min_length = int(min_length)
        self.entity_table = entity_table
        self.extra_filters = tuple(extra_filters)
        self.strategy = ExtractionStrategy(strategy)

    @classmethod
    def from_config(cls, cfg: ListPagesConfig, extra_filters: Sequence[CandidateFilter] = ()) -> "AnchorListExtractor":
        return cls(
            max_count=cfg.max_count,
            nav_keywords=cfg.nav_keywords,
            require_comma=cfg.require_comma,
            min_length=cfg.min_length,
            extra_filters=extra_filters,
            strategy=cfg.strategy,
        )

    def anchor_texts(self, html: str) -> List[str]:
        if self.strategy is ExtractionStrategy.DOM:
            return extract_anchor_texts_dom(html)
        return extract_anchor_texts(html)

    def extract(self, html: str, source_url: Optional[str] = None) -> EntryList:
        entries = filter_candidates(
            self.anchor_texts(html),
            self.max_count,
            self.nav_keywords,
            require_comma=self.require_comma,
            min_length=self.min_length,
            entity_table=self.entity_table,
            extra_filters=self.extra_filters,
        )
        return EntryList(entries=entries, source_url=source_url)


class FieldExtractor:
    """Labelled spans -> FieldResult, one value per FieldSpec."""

    kind = "detail"

    def __init__(
        self,
        specs: Optional[Sequence[FieldSpec]] = None,
        *,
        clean: bool = False,
        strategy: ExtractionStrategy = ExtractionStrategy.PATTERN,
    ) -> None:
        self.specs: List[FieldSpec] = list(specs) if specs is not None else default_field_specs()
        self.clean = bool(clean)
        self.strategy = ExtractionStrategy(strategy)

    @classmethod
    def from_config(cls, cfg: DetailPagesConfig) -> "FieldExtractor":
        return cls(cfg.field_specs, clean=cfg.clean, strategy=cfg.strategy)

    def with_spec(self, spec: FieldSpec) -> "FieldExtractor":
        """Return a new extractor with ``spec`` appended (or replacing one of the same name)."""
        specs = [s for s in self.specs if s.name != spec.name] + [spec]
        return FieldExtractor(specs, clean=self.clean, strategy=self.strategy)

    def extract(self, html: str, source_url: Optional[str] = None) -> FieldResult:
        if self.strategy is ExtractionStrategy.DOM:
            values = extract_fields_dom(html, self.specs, clean=self.clean)
        else:
            values = extract_fields(html, self.specs, clean=self.clean)
        return FieldResult(values=values, source_url=source_url)
