from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable

from .models import Candidate

logger = logging.getLogger(__name__)

_TOKEN_SPLIT_RE = re.compile(r"\s+")
_NON_CODE_RE = re.compile(r"[^A-Za-z0-9-]")
_NON_DATE_RE = re.compile(r"[^\d/.\-]")
_DIGIT_RE = re.compile(r"\d")
# sentence punctuation OCR leaves around a token
_EDGE_PUNCT = ".,;:!?()[]{}-"

_DATE_RES = [
    # 31/12/2024, 12-31-24, 31.12.2024
    re.compile(r"^\d{1,2}([/.\-])\d{1,2}\1\d{2,4}$"),
    # 2024/12/31, 2024-12-31, 24.12.31
    re.compile(r"^\d{2,4}([/.\-])\d{1,2}\1\d{1,2}$"),
]

# (year, month, day) slices for compact dates
_COMPACT_DATE_LAYOUTS: dict[int, tuple[tuple[slice, slice, slice], ...]] = {
    6: (
        (slice(0, 2), slice(2, 4), slice(4, 6)),  # YYMMDD
        (slice(4, 6), slice(2, 4), slice(0, 2)),  # DDMMYY
        (slice(4, 6), slice(0, 2), slice(2, 4)),  # MMDDYY
    ),
    8: (
        (slice(0, 4), slice(4, 6), slice(6, 8)),  # YYYYMMDD
        (slice(4, 8), slice(2, 4), slice(0, 2)),  # DDMMYYYY
        (slice(4, 8), slice(0, 2), slice(2, 4)),  # MMDDYYYY
    ),
}

# $19.99, 19,99, 19,99$, $1,299.00
_PRICE_RE = re.compile(r"^\$?\d+(?:,\d{3})*[.,]\d{2}\$?$")
_PHONE_RE = re.compile(r"^\d{3}-?\d{3}-?\d{4}$")
_POSTAL_RE = re.compile(r"^[A-Za-z]\d[A-Za-z]-?\d[A-Za-z]\d$")

_LETTERS_DIGITS_RE = re.compile(r"^[A-Za-z]{1,3}\d{4,}$")
_ALL_DIGITS_RE = re.compile(r"^\d+$")
_NUMERIC_WITH_SEPARATORS_RE = re.compile(r"^\d+[-\s]*\d*$")


def normalize_token(token: str) -> str:
    """Keep letters, digits and hyphens: 'AB-12/34!' -> 'AB-1234'."""
    return _NON_CODE_RE.sub("", token)


def split_tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(text or "") if t]


def _digit_count(s: str) -> int:
    return len(_DIGIT_RE.findall(s))


def _reads_as_date(digits: str) -> bool:
    for year_s, month_s, day_s in _COMPACT_DATE_LAYOUTS.get(len(digits), ()):
        year = int(digits[year_s])
        if len(digits) == 6:
            year += 2000
        elif not 1900 <= year <= 2099:
            continue
        try:
            date(year, int(digits[month_s]), int(digits[day_s]))
        except ValueError:
            continue
        return True
    return False


def is_date(token: str) -> bool:
    """True for expiry/best-before style tokens.

    Separated forms (31/12/2024, 2024-12-31, 31.12.24) match on shape alone;
    6 and 8 digit runs only when they read as a real calendar date.
    """
    clean = _NON_DATE_RE.sub("", token.strip(_EDGE_PUNCT)).strip("/.-")
    if any(r.match(clean) for r in _DATE_RES):
        return True
    if _ALL_DIGITS_RE.match(clean):
        return _reads_as_date(clean)
    return False


def is_price(token: str) -> bool:
    return bool(_PRICE_RE.match(token.strip(_EDGE_PUNCT)))


def is_disqualified(token: str) -> bool:
    """Rejection filter: dates, prices, phone numbers, postal codes and noise."""
    clean = normalize_token(token)
    if is_date(token):
        return True
    if len(clean) < 4:
        return True
    if not _DIGIT_RE.search(clean):
        return True
    if is_price(token):
        return True
    if _PHONE_RE.match(clean):
        return True
    if _POSTAL_RE.match(clean):
        return True
    return False


def qualifies(token: str) -> bool:
    if is_disqualified(token):
        return False
    clean = normalize_token(token)
    return _digit_count(clean) >= 4 or bool(_LETTERS_DIGITS_RE.match(clean))


def score_token(token: str) -> int:
    clean = normalize_token(token)
    score = 0

    if token[:3].upper() == "UGS":
        score += 1000
    if _ALL_DIGITS_RE.match(clean) and len(clean) >= 6:
        score += 500
    if _LETTERS_DIGITS_RE.match(clean):
        score += 400
    if _ALL_DIGITS_RE.match(clean) and 4 <= len(clean) <= 5:
        score += 300

    if len(clean) >= 6:
        score += 100
    if len(clean) >= 8:
        score += 50

    score += _digit_count(clean) * 10
    # hyphens and other separators
    score -= sum(1 for ch in clean if not ch.isalnum()) * 20
    return score


def rank_candidates(text: str) -> list[Candidate]:
    """Qualifying tokens, best first. Ties keep their order in the text."""
    candidates = [
        Candidate(original=tok, normalized=normalize_token(tok), score=score_token(tok))
        for tok in split_tokens(text)
        if qualifies(tok)
    ]
    # sorted() is stable
    return sorted(candidates, key=lambda c: -c.score)


@dataclass(frozen=True)
class LabelRule:
    """A printed label that marks the code following it as authoritative."""

    label: str
    pattern: re.Pattern
    bare: re.Pattern
    extract: Callable[[re.Match], str | None]

    def apply(self, text: str) -> str | None:
        m = self.pattern.search(text)
        if not m:
            return None
        return self.extract(m)


def _ugs_code(m: re.Match) -> str | None:
    run = m.group(1)
    if len(run) < 4:
        return None
    return run.lstrip("0") or run


def _model_code(m: re.Match) -> str | None:
    code = normalize_token(m.group(1))
    return code if _digit_count(code) >= 4 else None


# Evaluated in order; the first rule that yields a code wins.
LABEL_RULES: list[LabelRule] = [
    LabelRule(
        label="UGS",
        pattern=re.compile(r"UGS\D*(\d+)", re.IGNORECASE),
        bare=re.compile(r"^UGS\W*$", re.IGNORECASE),
        extract=_ugs_code,
    ),
    LabelRule(
        label="Modèle",
        pattern=re.compile(r"^(?:MOD[EÈ]LE|MODEL|MOD\.)\W*([A-Za-z0-9-]*\d[A-Za-z0-9-]*)", re.IGNORECASE),
        bare=re.compile(r"^(?:MOD[EÈ]LE|MODEL|MOD\.)\W*$", re.IGNORECASE),
        extract=_model_code,
    ),
]


def match_label(token: str) -> str | None:
    for rule in LABEL_RULES:
        code = rule.apply(token)
        if code:
            return code
    return None


def _labelled_code(tokens: list[str], ranked: list[Candidate]) -> str | None:
    for rule in LABEL_RULES:
        for c in ranked:
            code = rule.apply(c.original)
            if code:
                logger.debug("label %s matched candidate %r -> %s", rule.label, c.original, code)
                return code

        # "UGS:" printed as its own token, code in the next one
        for label_tok, value_tok in zip(tokens, tokens[1:]):
            if not rule.bare.match(label_tok) or is_disqualified(value_tok):
                continue
            code = rule.apply(label_tok + value_tok)
            if code:
                logger.debug("label %s matched %r %r -> %s", rule.label, label_tok, value_tok, code)
                return code
    return None


def extract_identifier(text: str) -> str | None:
    """Pick the product code most likely printed in *text*.

    Returns None when nothing in the text looks like a code.
    """
    tokens = split_tokens(text)
    ranked = rank_candidates(text)
    logger.debug("candidates: %s", [(c.normalized, c.score) for c in ranked])

    labelled = _labelled_code(tokens, ranked)
    if labelled:
        return labelled

    if not ranked:
        return None

    best = ranked[0].normalized
    if _NUMERIC_WITH_SEPARATORS_RE.match(best):
        best = re.sub(r"\D", "", best)
    return best
