"""
Catalog loading: workbook sheets (or a flat CSV) -> typed partitions.

Loading Approach:
    - The primary source is tried first, the secondary only if the primary
      cannot be read or yields zero rows
    - A source ending in .csv is a single table; anything else is read as a
      workbook where every sheet becomes one partition (sheet name = category)
    - Headers are matched case- and punctuation-insensitively to the record
      schema ("Sub Brand", "SubBrand", "sub_brand" -> sub_brand); a missing
      column leaves the field as an empty string
    - Prices combine value and unit columns ("45" + "per sqft")
    - Meta keywords arrive as a JSON list in a cell; a broken cell is logged
      and the record simply gets no keywords

Snapshots:
    Loading builds a fresh tuple of partitions and swaps it in under a lock.
    Readers take the tuple once per search, so a reload never shows them a
    half-built catalog.
"""

import json
import logging
import os
import re
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from plyfinder.errors import DataUnavailableError, MalformedFieldError
from plyfinder.models import CatalogPartition, ProductRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column detection
# ---------------------------------------------------------------------------

# Canonical field -> accepted header spellings (after _normalize_header)
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    'name': ('name', 'productname', 'product', 'itemname', 'item', 'title'),
    'brand': ('brand', 'brandname', 'manufacturer', 'make'),
    'sub_brand': ('subbrand', 'subbrandname', 'series', 'productline'),
    'size': ('size', 'dimension', 'dimensions'),
    'thickness': ('thickness', 'thick'),
    'type': ('type', 'grade', 'producttype'),
    'selling_price': ('sellingprice', 'sp', 'price'),
    'sp_unit': ('spunit', 'sellingpriceunit'),
    'market_price': ('marketprice', 'mp', 'mrp'),
    'mp_unit': ('mpunit', 'marketpriceunit'),
    'meta_keywords': ('metakeywords', 'keywords', 'synonyms'),
}

_RECORD_TEXT_FIELDS = ('name', 'brand', 'sub_brand', 'size', 'thickness', 'type')


def _normalize_header(header: Any) -> str:
    return re.sub(r'[^a-z0-9]', '', str(header).lower())


def detect_columns(columns: Iterable[Any]) -> Dict[str, Any]:
    """
    Map canonical fields to the actual header names present.

    Examples:
        ['Name', 'Brand', 'SubBrand'] -> {'name': 'Name', 'brand': 'Brand', 'sub_brand': 'SubBrand'}
        ['Product Name', 'SPUnit']    -> {'name': 'Product Name', 'sp_unit': 'SPUnit'}
    """
    normalized = {}
    for col in columns:
        key = _normalize_header(col)
        if key and key not in normalized:  # first occurrence wins
            normalized[key] = col

    result = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                result[field_name] = normalized[alias]
                break
    return result


# ---------------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------------

def _cell_text(value: Any) -> str:
    """Render a cell as stripped text; NaN/None -> '', 12.0 -> '12'."""
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ''
    try:
        if pd.isna(value):
            return ''
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return '' if text.lower() in ('nan', 'none') else text


def parse_meta_keywords(raw: Any) -> Tuple[str, ...]:
    """
    Strictly parse a meta-keyword cell.

    Accepts a JSON list ('["greenply", "grinply"]'), a JSON string, or an
    already-parsed list. Raises MalformedFieldError for anything else.
    """
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(str(k).strip() for k in raw if str(k).strip())
    text = _cell_text(raw)
    if not text:
        return ()
    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise MalformedFieldError(f"Meta keywords are not valid JSON: {text[:60]!r}") from e
    if isinstance(parsed, list):
        return tuple(str(k).strip() for k in parsed if str(k).strip())
    if isinstance(parsed, str):
        return (parsed.strip(),) if parsed.strip() else ()
    raise MalformedFieldError(f"Meta keywords must be a list, got {type(parsed).__name__}")


def coerce_meta_keywords(raw: Any, context: str = '') -> Tuple[str, ...]:
    """Lenient wrapper: a malformed cell is logged and yields no keywords."""
    try:
        return parse_meta_keywords(raw)
    except MalformedFieldError as e:
        logger.warning("Skipping meta keywords%s: %s", f" for {context}" if context else '', e)
        return ()


def _join_price(value: str, unit: str) -> str:
    return f'{value} {unit}'.strip() if value else ''


def row_to_record(row: Mapping[str, Any], columns: Mapping[str, Any], category: str) -> Optional[ProductRecord]:
    """Build a record from one row; returns None for a blank row."""
    def get(field_name: str) -> str:
        col = columns.get(field_name)
        return _cell_text(row.get(col)) if col is not None else ''

    values = {f: get(f) for f in _RECORD_TEXT_FIELDS}
    if not any(values.values()):
        return None

    meta_col = columns.get('meta_keywords')
    meta = coerce_meta_keywords(row.get(meta_col), context=values['name']) if meta_col is not None else ()

    return ProductRecord(
        selling_price=_join_price(get('selling_price'), get('sp_unit')),
        market_price=_join_price(get('market_price'), get('mp_unit')),
        category=category,
        meta_keywords=meta,
        **values,
    )


def frame_to_partition(df: pd.DataFrame, name: str) -> CatalogPartition:
    """Convert one sheet/table into a partition, dropping blank rows."""
    if df is None or df.empty:
        return CatalogPartition(name=name)
    columns = detect_columns(df.columns)
    records = []
    for row in df.to_dict('records'):
        record = row_to_record(row, columns, name)
        if record is not None:
            records.append(record)
    return CatalogPartition(name=name, records=tuple(records))


# ---------------------------------------------------------------------------
# Source readers
# ---------------------------------------------------------------------------

def _source_name(source: Any) -> str:
    return str(getattr(source, 'name', source))


def read_catalog_source(source: Any) -> Tuple[CatalogPartition, ...]:
    """
    Read one source into partitions.

    Handles both .xlsx workbooks (every sheet) and .csv files (one table
    named after the file). Raises DataUnavailableError when the source
    holds no usable rows; I/O and parser errors propagate.
    """
    file_name = _source_name(source)
    if file_name.lower().endswith('.csv'):
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
        stem = os.path.splitext(os.path.basename(file_name))[0] or 'Sheet 1'
        partitions = [frame_to_partition(df, stem)]
    else:
        sheets = pd.read_excel(source, sheet_name=None, dtype=str, keep_default_na=False, engine='openpyxl')
        partitions = [frame_to_partition(df, str(sheet_name)) for sheet_name, df in sheets.items()]

    partitions = [p for p in partitions if len(p) > 0]
    if not partitions:
        raise DataUnavailableError(f"No catalog rows in {file_name}")
    return tuple(partitions)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class CatalogStore:
    """Holds the current catalog snapshot; read-only between loads."""

    def __init__(self, primary_source: Any = None, secondary_source: Any = None):
        self.primary_source = primary_source
        self.secondary_source = secondary_source
        self._partitions: Tuple[CatalogPartition, ...] = ()
        self._loaded = False
        self._lock = threading.Lock()

    # --- Builders ---
    @classmethod
    def from_records(cls, records: Iterable[ProductRecord], partition: str = 'Catalog') -> 'CatalogStore':
        """In-memory catalog with a single partition."""
        records = tuple(records)
        store = cls()
        store._swap((CatalogPartition(name=partition, records=records),) if records else ())
        return store

    @classmethod
    def from_frames(cls, frames: Mapping[str, pd.DataFrame]) -> 'CatalogStore':
        """In-memory catalog from sheet name -> DataFrame."""
        store = cls()
        partitions = [frame_to_partition(df, str(name)) for name, df in frames.items()]
        store._swap(tuple(p for p in partitions if len(p) > 0))
        return store

    # --- Loading ---
    def load(self, primary_source: Any = None, secondary_source: Any = None) -> List[CatalogPartition]:
        """
        Load the catalog, primary source first.

        Never raises: when every source fails the store is emptied and an
        empty list is returned.
        """
        primary = primary_source if primary_source is not None else self.primary_source
        secondary = secondary_source if secondary_source is not None else self.secondary_source

        for label, source in (('primary', primary), ('secondary', secondary)):
            if source is None:
                continue
            try:
                partitions = read_catalog_source(source)
            except DataUnavailableError as e:
                logger.warning("%s catalog source unusable: %s", label.capitalize(), e)
                continue
            except Exception as e:
                logger.warning("%s catalog source %s failed to load: %s",
                               label.capitalize(), _source_name(source), e)
                continue

            self._swap(partitions)
            logger.info(
                "Loaded %d records in %d partitions from %s",
                sum(len(p) for p in partitions), len(partitions), _source_name(source),
            )
            return list(partitions)

        logger.warning("Catalog unavailable from all sources; searches will return nothing")
        self._swap(())
        return []

    def ensure_loaded(self) -> None:
        """Load once from the configured sources, on first use."""
        if not self._loaded:
            self.load()

    def _swap(self, partitions: Sequence[CatalogPartition]) -> None:
        with self._lock:
            self._partitions = tuple(partitions)
            self._loaded = True

    # --- Reading ---
    def snapshot(self) -> Tuple[CatalogPartition, ...]:
        """The current partitions; safe to iterate while a reload happens."""
        return self._partitions

    @property
    def is_empty(self) -> bool:
        return not any(len(p) for p in self._partitions)

    @property
    def total_records(self) -> int:
        return sum(len(p) for p in self._partitions)
