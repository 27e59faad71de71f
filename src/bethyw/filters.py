"""
Derivation of import filters from command-line values.

All functions here are pure: they take already-split argument values and
return the filter the parsers expect. Empty sets and the (0, 0) year range
mean "no filtering".
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from bethyw.config import YEAR_CUTOFF, YEAR_SENTINEL
from bethyw.core.errors import UnknownKeyError, ValidationError
from bethyw.datasets import (
    DATASETS,
    InputFileSource,
    StringFilterSet,
    YearFilterTuple,
    get_dataset,
)

ALL_SENTINEL = "all"
NO_YEAR_FILTER: YearFilterTuple = (0, 0)


# ---------------------------------------------------------------------------
# String helpers
# ---------------------------------------------------------------------------

def insensitive_equals(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def split_arg_values(values: Optional[Iterable[str]]) -> List[str]:
    """
    Flatten repeated and comma-separated argument values, e.g.
    ["W06000001,W06000002", "W06000010"] -> three codes. Blanks are dropped.
    """
    out: List[str] = []
    for value in values or []:
        out.extend(part.strip() for part in str(value).split(",") if part.strip())
    return out


def _contains_all(values: List[str]) -> bool:
    return any(insensitive_equals(v, ALL_SENTINEL) for v in values)


# ---------------------------------------------------------------------------
# Filter membership
# ---------------------------------------------------------------------------

def area_filter_contains(areas_filter: Optional[StringFilterSet], code: str) -> bool:
    """Exact, case-sensitive match. No filter (or an empty one) accepts all."""
    if not areas_filter:
        return True
    return code in areas_filter


def measure_filter_contains(measures_filter: Optional[StringFilterSet], code: str) -> bool:
    """Case-insensitive match. No filter (or an empty one) accepts all."""
    if not measures_filter:
        return True
    code = code.lower()
    return any(m.lower() == code for m in measures_filter)


def year_filter_contains(years_filter: Optional[YearFilterTuple], year: int) -> bool:
    """Inclusive range check. None or (0, 0) accepts every year."""
    if years_filter is None:
        return True
    start, end = years_filter
    if start == 0 and end == 0:
        return True
    return start <= year <= end


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def validate_year(year: str) -> int:
    """
    Turn a year string into an int.

    "0" is the "no year" sentinel and always returns 0. Anything else must be
    exactly four digits and before YEAR_CUTOFF.
    """
    text = str(year)
    if text == YEAR_SENTINEL:
        return 0

    if len(text) != 4 or not all("0" <= ch <= "9" for ch in text):
        raise ValidationError("Invalid input for years argument")

    value = int(text)
    if value >= YEAR_CUTOFF:
        raise ValidationError("Invalid input for years argument")
    return value


def parse_years_arg(value: Optional[str]) -> YearFilterTuple:
    """
    Parse "YYYY" or "YYYY-ZZZZ" into an inclusive (start, end) pair.
    Missing or empty input, and "0", give (0, 0).
    """
    if value is None:
        return NO_YEAR_FILTER
    text = str(value).strip()
    if not text:
        return NO_YEAR_FILTER

    if "-" not in text:
        year = validate_year(text)
        return (year, year)

    first, second = text.split("-", 1)
    return (validate_year(first), validate_year(second))


def parse_areas_arg(values: Optional[Iterable[str]]) -> StringFilterSet:
    """Area codes to import, or an empty set for all ("all" in any case)."""
    codes = split_arg_values(values)
    if _contains_all(codes):
        return set()
    return set(codes)


def parse_measures_arg(values: Optional[Iterable[str]]) -> StringFilterSet:
    """Measure codes to import (lower-cased), or an empty set for all."""
    codes = split_arg_values(values)
    if _contains_all(codes):
        return set()
    return {c.lower() for c in codes}


def parse_datasets_arg(values: Optional[Iterable[str]]) -> List[InputFileSource]:
    """
    Resolve dataset codes against DATASETS. No value or "all" selects every
    dataset, in registry order.
    """
    codes = split_arg_values(values)
    if not codes or _contains_all(codes):
        return list(DATASETS)

    selected: List[InputFileSource] = []
    for code in codes:
        dataset = get_dataset(code)
        if dataset is None:
            raise UnknownKeyError(f"No dataset matches key: {code}")
        if dataset not in selected:
            selected.append(dataset)
    return selected
