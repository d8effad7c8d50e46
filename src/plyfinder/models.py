"""Typed records shared by the catalog loader, the scorer and the fallback tiers."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

# Fields that make up the record's free text (category and keywords excluded)
TEXT_FIELDS = (
    'name', 'brand', 'sub_brand', 'size', 'thickness', 'type',
    'selling_price', 'market_price',
)


@dataclass(frozen=True)
class ProductRecord:
    """One catalog row. Missing columns are empty strings, never None."""

    name: str = ''
    brand: str = ''
    sub_brand: str = ''
    size: str = ''
    thickness: str = ''
    type: str = ''           # domain code, case-significant ("MR", "BWP")
    selling_price: str = ''  # value + unit, e.g. "45 per sqft"
    market_price: str = ''
    category: str = ''       # partition (sheet) the row came from
    meta_keywords: Tuple[str, ...] = ()

    @property
    def full_text(self) -> str:
        """Lowercased concatenation of every non-empty text field."""
        values = (getattr(self, f) for f in TEXT_FIELDS)
        return ' '.join(v for v in values if v).lower()

    def to_dict(self) -> Dict[str, str]:
        """Display shape handed to the response generator and the UI."""
        return {
            'name': self.name,
            'brand': self.brand,
            'sub_brand': self.sub_brand,
            'thickness': self.thickness,
            'type': self.type,
            'size': self.size,
            'selling_price': self.selling_price,
            'market_price': self.market_price,
            'category': self.category,
        }


@dataclass(frozen=True)
class CatalogPartition:
    """A named group of records (one workbook sheet)."""

    name: str
    records: Tuple[ProductRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ProductRecord]:
        return iter(self.records)


@dataclass(frozen=True)
class NormalizedQuery:
    """
    Canonical form of a raw query.

    tokens        -- lowercased search tokens, in first-seen order
    phrase        -- the query after term substitution, case preserved
    segments      -- comma-delimited parts of ``phrase`` (empty if no comma)
    exact_tokens  -- domain codes as typed, UPPER and Title (mr -> mr, MR, Mr)
    thickness     -- canonical thickness tokens ("12mm")
    brands        -- canonical brand aliases mentioned ("greenply")
    """

    tokens: Tuple[str, ...] = ()
    phrase: str = ''
    segments: Tuple[str, ...] = ()
    exact_tokens: Tuple[str, ...] = ()
    thickness: Tuple[str, ...] = ()
    brands: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.tokens and not self.exact_tokens

    @property
    def has_segments(self) -> bool:
        return len(self.segments) > 1


@dataclass(frozen=True)
class ScoredCandidate:
    record: ProductRecord
    score: int
    matched_fields: Tuple[str, ...] = field(default=())
