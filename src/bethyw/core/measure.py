from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from bethyw.core.errors import NotFoundError, ValidationError

NO_DATA_MARKER = "<no data>"
SUMMARY_HEADERS = ("Average", "Diff.", "% Diff.")


@dataclass
class Measure:
    """
    A single statistical indicator for one area, holding a value per year.

    The codename is lower-cased on construction and is the key under which an
    Area stores the measure. The label is the human-readable name and may be
    changed freely without affecting the codename.

    Two measures are equal when codename, label and every reading match.
    """
    codename: str
    label: str
    readings: Dict[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.codename = str(self.codename).lower()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def set_label(self, label: str) -> None:
        self.label = label

    def get_value(self, year: int) -> float:
        try:
            return self.readings[int(year)]
        except KeyError:
            raise NotFoundError(f"No value found for year {year}") from None

    def set_value(self, year: int, value: float) -> None:
        """Insert a value for year, replacing any existing one. NaN and infinities are rejected."""
        value = float(value)
        if not math.isfinite(value):
            raise ValidationError(f"Reading for year {year} is not a finite number: {value}")
        self.readings[int(year)] = value

    def __len__(self) -> int:
        return len(self.readings)

    def items(self) -> Iterator[Tuple[int, float]]:
        """Yield (year, value) pairs in chronological order."""
        for year in sorted(self.readings):
            yield year, self.readings[year]

    def copy(self) -> "Measure":
        return Measure(self.codename, self.label, dict(self.readings))

    # ------------------------------------------------------------------
    # Derived statistics
    # ------------------------------------------------------------------

    def get_average(self) -> float:
        if not self.readings:
            return 0.0
        return sum(self.readings.values()) / len(self.readings)

    def get_difference(self) -> float:
        """Value in the last year minus value in the first year (0 if no data)."""
        if not self.readings:
            return 0.0
        first = self.readings[min(self.readings)]
        last = self.readings[max(self.readings)]
        return last - first

    def get_difference_as_percentage(self) -> float:
        """
        Difference between first and last year as a percentage of the first.

        Returns 0 whenever the difference itself is 0. A zero first-year value
        with a non-zero difference gives a signed infinity.
        """
        diff = self.get_difference()
        if diff == 0:
            return 0.0
        first = self.readings[min(self.readings)]
        if first == 0:
            return math.copysign(math.inf, diff)
        return diff / first * 100

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def merge(self, other: "Measure") -> None:
        """Fold other's readings into this one. Other wins on shared years."""
        self.readings.update(other.readings)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, float]:
        return {str(year): value for year, value in self.items()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":"))

    def _table_columns(self) -> List[Tuple[str, str]]:
        columns = [(str(year), f"{value:.6f}") for year, value in self.items()]
        summary = (
            self.get_average(),
            self.get_difference(),
            self.get_difference_as_percentage(),
        )
        columns.extend((header, f"{value:.6f}") for header, value in zip(SUMMARY_HEADERS, summary))
        return columns

    def __str__(self) -> str:
        title = f"{self.label} ({self.codename})"
        if not self.readings:
            return f"{title}\n{NO_DATA_MARKER}"

        headers: List[str] = []
        values: List[str] = []
        for header, value in self._table_columns():
            width = max(len(header), len(value))
            headers.append(header.rjust(width))
            values.append(value.rjust(width))

        return "\n".join([title, " ".join(headers), " ".join(values)])
