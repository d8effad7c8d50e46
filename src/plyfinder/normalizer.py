"""
Query normalization for the plywood catalog search.

Normalization Approach:
    - Queries arrive already translated by an upstream step, but product terms
      often survive in Devanagari ("प्लाइवुड 12 एमएम") or in a phonetic
      spelling, so known terms are substituted with their catalog spelling
    - Non-Latin digits are mapped to 0-9 so thickness values line up
    - Thickness is canonicalized to "<N>mm" ("12 mm", "twelve mm" -> "12mm")
    - Tokens are lowercased, stopword-filtered and need 3+ characters, except
      domain codes (MR, BWP, ...) and thickness values
    - Comma-separated parts ("green ply, 12mm, MR") are kept as segments:
      the direct-phrase fallback treats every segment as one constraint

Domain codes:
    The catalog's type column is case-significant ("MR" is a grade, "mr" is
    noise), so every domain code found in the query is also emitted in its
    typed, UPPER and Title forms for the case-sensitive match in scoring.
"""

import logging
import re
import unicodedata
from functools import lru_cache
from typing import Dict, Iterable, List, Tuple

from plyfinder.models import NormalizedQuery

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Case-significant classification codes found in the catalog "Type" column
DOMAIN_CODES = ('mr', 'bwp', 'bwr', 'commercial', 'marine')

STOPWORDS = frozenset({
    'a', 'an', 'the', 'i', 'want', 'need', 'looking', 'for', 'me', 'please',
    'can', 'you', 'show', 'get', 'find', 'price', 'cost', 'rate', 'and',
    'with', 'by', 'of', 'is', 'are', 'do', 'have', 'any', 'some', 'what',
    'which', 'give', 'tell', 'about', 'in', 'to', 'my', 'it', 'this', 'that',
})

MIN_TOKEN_LENGTH = 3

THICKNESS_PATTERN = re.compile(r'^\d+(?:\.\d+)?mm$')

# Devanagari spellings of catalog terms -> canonical Latin terms
TRANSLITERATION_TABLE: Dict[str, str] = {
    # Plywood
    'प्लाइवूड': 'plywood',
    'प्लाइवुड': 'plywood',
    'प्लाईवुड': 'plywood',
    'प्लावुड': 'plywood',
    'प्लाई': 'ply',
    'प्लाइ': 'ply',
    # Units
    'एमएम': 'mm',
    'एमेम': 'mm',
    'मिमी': 'mm',
    'मिलीमीटर': 'mm',
    'इंच': 'inch',
    'फीट': 'feet',
    # Brands
    'ग्रीनप्लाई': 'greenply',
    'ग्रीनप्ली': 'greenply',
    'सेंचुरीप्लाई': 'centuryply',
    'सेंचुरी': 'century',
    # Grades
    'बीडब्ल्यूपी': 'BWP',
    'बीडब्लूपी': 'BWP',
    'बीडब्लूआर': 'BWR',
    'एमआर': 'MR',
}

# Longest terms first so "सेंचुरीप्लाई" wins over "सेंचुरी"
_TRANSLITERATION_PATTERN = re.compile(
    '|'.join(re.escape(t) for t in sorted(TRANSLITERATION_TABLE, key=len, reverse=True))
)

# Brand mentions -> canonical brand as spelled (compacted) in the catalog
BRAND_ALIASES: Dict[str, str] = {
    'greenply': 'greenply', 'green ply': 'greenply', 'green plywood': 'greenply',
    'green': 'greenply',
    'centuryply': 'centuryply', 'century ply': 'centuryply',
    'century plywood': 'centuryply', 'century': 'centuryply',
}

_BRAND_PATTERN = re.compile(
    r'\b(?:' + '|'.join(re.escape(a) for a in sorted(BRAND_ALIASES, key=len, reverse=True)) + r')\b'
)

# Common speech-to-text confusions -> catalog words they usually stand for
SPEECH_CONFUSIONS: Dict[str, Tuple[str, ...]] = {
    'dwell': ('gold', 'green'),
    'dell': ('gold', 'green'),
    'dual': ('gold', 'green'),
    'pore': ('ply', 'bwp', 'board'),
    'poor': ('ply', 'bwp', 'board'),
    'pour': ('ply', 'bwp', 'board'),
}

NUMBER_WORDS: Dict[str, str] = {
    'three': '3', 'four': '4', 'five': '5', 'six': '6', 'eight': '8',
    'nine': '9', 'ten': '10', 'twelve': '12', 'fifteen': '15',
    'sixteen': '16', 'eighteen': '18', 'nineteen': '19',
    'twentyfive': '25', 'twenty five': '25', 'twenty-five': '25',
}

_THICKNESS_PHRASE = re.compile(
    r'(?<![\d.])\b(\d+(?:\.\d+)?|' + '|'.join(re.escape(w) for w in sorted(NUMBER_WORDS, key=len, reverse=True)) + r')'
    r'\s*(?:mm|millimet(?:er|re)s?)\b',
    re.IGNORECASE,
)

_TOKEN_SPLIT = re.compile(r'[^\w.\-]+')
_THICKNESS_TOKEN = re.compile(r'(?<![\w.])\d+(?:\.\d+)?mm\b')
_WHITESPACE = re.compile(r'\s+')


# ---------------------------------------------------------------------------
# Term substitution
# ---------------------------------------------------------------------------

def normalize_digits(text: str) -> str:
    """
    Map any non-ASCII decimal digit to its 0-9 equivalent.

    Examples:
        '१२mm' -> '12mm'
        '১৯ mm' -> '19 mm'
    """
    out = []
    for ch in text:
        if ch.isdigit() and not ch.isascii():
            try:
                out.append(str(unicodedata.digit(ch)))
                continue
            except ValueError:
                pass
        out.append(ch)
    return ''.join(out)


@lru_cache(maxsize=4096)
def substitute_terms(text: str) -> str:
    """Replace transliterated product terms and non-Latin digits."""
    if not text:
        return ''
    s = _TRANSLITERATION_PATTERN.sub(lambda m: f' {TRANSLITERATION_TABLE[m.group(0)]} ', text)
    s = normalize_digits(s)
    # Padding turns "12एमएम" into "12 mm"; canonical_thickness() joins it back
    return _WHITESPACE.sub(' ', s).strip()


def canonical_thickness(text: str) -> str:
    """
    Rewrite thickness mentions as "<N>mm".

    Examples:
        '12 mm'          -> '12mm'
        'twelve mm'      -> '12mm'
        '19 millimeters' -> '19mm'
        '1.5 mm'         -> '1.5mm'
    """
    def _replace(m):
        value = m.group(1).lower()
        return f'{NUMBER_WORDS.get(value, value)}mm'
    return _THICKNESS_PHRASE.sub(_replace, text)


def compact(text: str) -> str:
    """Lowercase and drop whitespace ("Green Ply" -> "greenply")."""
    return _WHITESPACE.sub('', str(text or '')).lower()


def is_domain_code(text: str) -> bool:
    return str(text or '').strip().lower() in DOMAIN_CODES


def is_thickness(text: str) -> bool:
    return bool(THICKNESS_PATTERN.match(str(text or '').strip().lower()))


def domain_code_forms(code: str) -> Tuple[str, ...]:
    """Case forms a domain code is compared in: as typed, UPPER, Title."""
    forms = []
    for form in (code, code.upper(), code.title()):
        if form not in forms:
            forms.append(form)
    return tuple(forms)


def _dedupe(items: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class QueryNormalizer:
    """Turns raw query text into a ``NormalizedQuery``."""

    def __init__(
        self,
        stopwords: Iterable[str] = STOPWORDS,
        domain_codes: Iterable[str] = DOMAIN_CODES,
        min_token_length: int = MIN_TOKEN_LENGTH,
    ):
        self.stopwords = frozenset(stopwords)
        self.domain_codes = tuple(domain_codes)
        self.min_token_length = min_token_length

    def normalize(self, raw_query: str) -> NormalizedQuery:
        if not isinstance(raw_query, str) or not raw_query.strip():
            return NormalizedQuery()

        phrase = canonical_thickness(substitute_terms(raw_query))
        lowered = phrase.lower()

        segments: Tuple[str, ...] = ()
        if ',' in phrase:
            segments = tuple(s.strip() for s in phrase.split(',') if s.strip())

        thickness = _dedupe(m.group(0) for m in _THICKNESS_TOKEN.finditer(lowered))
        brands = _dedupe(BRAND_ALIASES[m.group(0)] for m in _BRAND_PATTERN.finditer(lowered))

        exact: List[str] = []
        codes: List[str] = []
        for code in self.domain_codes:
            for m in re.finditer(r'\b' + re.escape(code) + r'\b', phrase, re.IGNORECASE):
                codes.append(code)
                exact.extend(domain_code_forms(m.group(0)))

        tokens: List[str] = []
        # Whole comma segments ("green ply") and adjacent pairs ("green ply 12mm")
        if len(segments) > 1:
            lowered_segments = [s.lower() for s in segments]
            for seg in lowered_segments:
                if ' ' in seg:
                    tokens.append(seg)
            for left, right in zip(lowered_segments, lowered_segments[1:]):
                tokens.append(f'{left} {right}')

        words = [w.strip('-.') for w in _TOKEN_SPLIT.split(lowered)]
        for word in words:
            if not word or word in self.stopwords:
                continue
            if word in self.domain_codes or is_thickness(word):
                tokens.append(word)
            elif len(word) >= self.min_token_length:
                tokens.append(word)
            for extra in SPEECH_CONFUSIONS.get(word, ()):
                tokens.append(extra)

        tokens.extend(brands)
        tokens.extend(thickness)
        tokens.extend(codes)

        query = NormalizedQuery(
            tokens=_dedupe(tokens),
            phrase=phrase,
            segments=segments,
            exact_tokens=_dedupe(exact),
            thickness=thickness,
            brands=brands,
        )
        logger.debug("Normalized %r -> tokens=%s exact=%s", raw_query, query.tokens, query.exact_tokens)
        return query
