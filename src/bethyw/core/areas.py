from __future__ import annotations

import io
import json
import logging
import math
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from bethyw.config import DEFAULT_VALUE_KEY
from bethyw.core.area import Area
from bethyw.core.errors import (
    BethYwError,
    ConfigError,
    NotFoundError,
    ParseError,
    ValidationError,
)
from bethyw.core.measure import Measure
from bethyw.datasets import (
    MIN_COLUMNS,
    SourceColumn,
    SourceColumnMapping,
    SourceDataType,
    StringFilterSet,
    YearFilterTuple,
)
from bethyw.filters import (
    area_filter_contains,
    measure_filter_contains,
    validate_year,
    year_filter_contains,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stream / line helpers
# ---------------------------------------------------------------------------

def split_first_field(line: str) -> Tuple[str, str]:
    """
    Split a CSV line at its first comma: "a,b,c" -> ("a", "b,c").
    A line without a comma is a single field: "a" -> ("a", "").

    Quoting and escaping are not supported; a comma inside a value splits it.
    """
    field, sep, rest = line.partition(",")
    return field, rest if sep else ""


def read_stream(stream: Any) -> str:
    """
    Read a whole stream into a string, rejecting streams that are closed,
    unreadable, or have no content. Bytes are decoded as UTF-8.
    """
    if stream is None or getattr(stream, "closed", False):
        raise ParseError("Stream is not open")

    readable = getattr(stream, "readable", None)
    if callable(readable) and not readable():
        raise ParseError("Stream is not readable")

    try:
        data = stream.read()
    except (OSError, ValueError) as exc:
        raise ParseError(f"Failed to read stream: {exc}") from exc

    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Stream is not valid UTF-8: {exc}") from exc
    elif isinstance(data, str):
        data = data.lstrip("\ufeff")
    else:
        raise ParseError(f"Unexpected stream content type: {type(data)}")

    if not data.strip():
        raise ParseError("Stream has no content")
    return data


def _require_columns(cols: SourceColumnMapping, data_type: SourceDataType) -> None:
    needed = MIN_COLUMNS[data_type]
    if len(cols) < needed:
        raise ConfigError(
            f"Not enough columns for {data_type.value}: expected at least {needed}, got {len(cols)}"
        )


def _measure_identity(
    cols: SourceColumnMapping,
    record: Optional[Dict[str, Any]] = None,
) -> Tuple[str, str]:
    """
    Resolve (code, label) for a measure. Multi-measure sources name the
    columns holding them; single-measure sources give the literal values.
    """
    if record is not None and SourceColumn.MEASURE_CODE in cols:
        code = str(record[cols[SourceColumn.MEASURE_CODE]])
        label_key = cols.get(SourceColumn.MEASURE_NAME, cols[SourceColumn.MEASURE_CODE])
        return code, str(record[label_key])

    if SourceColumn.SINGLE_MEASURE_CODE in cols:
        code = cols[SourceColumn.SINGLE_MEASURE_CODE]
        return code, cols.get(SourceColumn.SINGLE_MEASURE_NAME, code)

    raise ConfigError("Column mapping names neither a measure column nor a single measure")


def _finite_reading(raw: Any, where: str) -> float:
    """Coerce raw to a float reading. NaN and infinities are not readings."""
    value = float(raw)
    if not math.isfinite(value):
        raise ParseError(f"{where}: reading {raw!r} is not a finite number")
    return value


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------

class Areas:
    """
    All imported data: Area instances keyed by local authority code.

    Areas also owns the parsers that turn StatsWales files into Area and
    Measure objects (see populate()), and renders everything as tables
    (str()) or JSON (to_json()), always in ascending code order.
    """

    def __init__(self) -> None:
        self.areas: Dict[str, Area] = {}

    # ------------------------------------------------------------------
    # Container
    # ------------------------------------------------------------------

    def set_area(self, local_authority_code: str, area: Area) -> None:
        """
        Add a copy of area. If one already exists for the code the two are
        merged, with the incoming Area's names and readings taking precedence.

        Raises ValidationError when local_authority_code is not the Area's own code.
        """
        if area.local_authority_code != local_authority_code:
            raise ValidationError(
                f"Area {area.local_authority_code} cannot be stored under code {local_authority_code}"
            )
        existing = self.areas.get(local_authority_code)
        if existing is None:
            self.areas[local_authority_code] = area.copy()
        else:
            existing.merge(area)

    def get_area(self, local_authority_code: str) -> Area:
        try:
            return self.areas[local_authority_code]
        except KeyError:
            raise NotFoundError(f"No area found matching {local_authority_code}") from None

    def __len__(self) -> int:
        return len(self.areas)

    def __contains__(self, local_authority_code: object) -> bool:
        return local_authority_code in self.areas

    def __iter__(self) -> Iterator[Area]:
        for code in sorted(self.areas):
            yield self.areas[code]

    def _get_or_create(self, local_authority_code: str) -> Area:
        area = self.areas.get(local_authority_code)
        if area is None:
            area = Area(local_authority_code)
            self.areas[local_authority_code] = area
        return area

    # ------------------------------------------------------------------
    # Parsers
    # ------------------------------------------------------------------

    def populate_from_authority_code_csv(
        self,
        stream: Any,
        cols: SourceColumnMapping,
        areas_filter: Optional[StringFilterSet] = None,
    ) -> None:
        """
        Import areas.csv: a header line, then "code,English name,Welsh name"
        per line. Only codes in a non-empty areas_filter are imported.
        """
        _require_columns(cols, SourceDataType.AUTHORITY_CODE_CSV)
        text = read_stream(stream)

        lines = text.splitlines()
        imported = 0
        # First line holds the column names
        for line_no, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue
            if line.count(",") < 2:
                raise ParseError(f"Line {line_no}: expected 3 fields, got {line.count(',') + 1}")

            code, rest = split_first_field(line)
            name_eng, rest = split_first_field(rest)
            name_cym, _ = split_first_field(rest)
            code = code.strip()

            if not area_filter_contains(areas_filter, code):
                continue

            area = Area(code)
            area.set_name("eng", name_eng.strip())
            area.set_name("cym", name_cym.strip())
            self.set_area(code, area)
            imported += 1

        logger.debug("Imported %s areas from authority code CSV", imported)

    def populate_from_welsh_stats_json(
        self,
        stream: Any,
        cols: SourceColumnMapping,
        areas_filter: Optional[StringFilterSet] = None,
        measures_filter: Optional[StringFilterSet] = None,
        years_filter: Optional[YearFilterTuple] = None,
    ) -> None:
        """
        Import a StatsWales OData JSON document.

        Rows live under the top-level "value" key, one flat record per area,
        measure and year. Areas not seen before are created with their English
        name (the files carry no Welsh names). Years are stored as strings and
        validated like the --years argument.
        """
        _require_columns(cols, SourceDataType.WELSH_STATS_JSON)
        text = read_stream(stream)

        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Malformed JSON: {exc}") from exc

        records = document.get("value") if isinstance(document, dict) else None
        if not isinstance(records, list):
            raise ParseError("JSON document has no 'value' array")

        code_key = cols[SourceColumn.AUTH_CODE]
        name_key = cols.get(SourceColumn.AUTH_NAME_ENG)
        year_key = cols[SourceColumn.YEAR]
        value_key = cols.get(SourceColumn.VALUE, DEFAULT_VALUE_KEY)

        imported = 0
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise ParseError(f"Record {index} is not a JSON object")

            try:
                code = str(record[code_key])
                if not area_filter_contains(areas_filter, code):
                    continue

                if code not in self.areas:
                    area = self._get_or_create(code)
                    if name_key is not None:
                        area.set_name("eng", str(record[name_key]))

                measure_code, measure_label = _measure_identity(cols, record)
                if not measure_filter_contains(measures_filter, measure_code):
                    continue

                year = validate_year(str(record[year_key]))
                measure = Measure(measure_code, measure_label)
                if year_filter_contains(years_filter, year):
                    measure.set_value(year, _finite_reading(record[value_key], f"Record {index}"))
                    imported += 1
            except BethYwError:
                raise
            except KeyError as exc:
                raise ParseError(f"Record {index} is missing key {exc}") from exc
            except (TypeError, ValueError) as exc:
                raise ParseError(f"Record {index} has a non-numeric value: {exc}") from exc

            self.areas[code].set_measure(measure.codename, measure)

        logger.debug("Imported %s readings from %s JSON records", imported, len(records))

    def populate_from_authority_by_year_csv(
        self,
        stream: Any,
        cols: SourceColumnMapping,
        areas_filter: Optional[StringFilterSet] = None,
        measures_filter: Optional[StringFilterSet] = None,
        years_filter: Optional[YearFilterTuple] = None,
    ) -> None:
        """
        Import a wide CSV holding a single measure: the first column is the
        authority code, every other column header is a year. Empty cells mean
        "no reading" and are skipped. The files carry no area names.
        """
        _require_columns(cols, SourceDataType.AUTHORITY_BY_YEAR_CSV)
        text = read_stream(stream)

        measure_code, measure_label = _measure_identity(cols)
        if not measure_filter_contains(measures_filter, measure_code):
            logger.debug("Measure %s excluded by filter, skipping file", measure_code)
            return

        lines = text.splitlines()
        width = lines[0].count(",")
        for line_no, line in enumerate(lines[1:], start=2):
            if line.strip() and line.count(",") != width:
                raise ParseError(
                    f"Line {line_no}: expected {width + 1} fields, got {line.count(',') + 1}"
                )

        try:
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                index_col=False,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise ParseError(f"Malformed CSV: {exc}") from exc

        if len(df.columns) < 2:
            raise ParseError("CSV needs an authority code column and at least one year column")

        code_col = df.columns[0]
        if str(code_col).strip() != cols.get(SourceColumn.AUTH_CODE, code_col):
            logger.warning(
                "First column is %r, expected %r; treating it as the authority code.",
                code_col,
                cols.get(SourceColumn.AUTH_CODE),
            )

        years: List[Tuple[int, int]] = []
        for position, label in enumerate(df.columns[1:], start=1):
            label = str(label).strip()
            if label.startswith("Unnamed:"):
                logger.warning("Skipping CSV column %s with no header", position)
                continue
            years.append((position, validate_year(label)))

        imported = 0
        for row_no, row in enumerate(df.itertuples(index=False, name=None), start=2):
            code = str(row[0]).strip()
            if not code or not area_filter_contains(areas_filter, code):
                continue

            measure = Measure(measure_code, measure_label)
            for position, year in years:
                cell = row[position]
                if pd.isna(cell) or not str(cell).strip():
                    continue
                if not year_filter_contains(years_filter, year):
                    continue
                try:
                    value = _finite_reading(str(cell).strip(), f"Line {row_no}")
                except ParseError:
                    raise
                except ValueError as exc:
                    raise ParseError(
                        f"Line {row_no}: non-numeric value {cell!r} for year {year}"
                    ) from exc
                measure.set_value(year, value)
                imported += 1

            self._get_or_create(code).set_measure(measure.codename, measure)

        logger.debug("Imported %s readings from authority-by-year CSV", imported)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def populate(
        self,
        stream: Any,
        data_type: SourceDataType,
        cols: SourceColumnMapping,
        areas_filter: Optional[StringFilterSet] = None,
        measures_filter: Optional[StringFilterSet] = None,
        years_filter: Optional[YearFilterTuple] = None,
    ) -> None:
        """
        Parse a stream of the given data_type using the column mapping cols,
        importing only what the filters accept.

        Called without any filter this is the plain areas.csv import and
        only SourceDataType.AUTHORITY_CODE_CSV is accepted.

        Raises ParseError for unusable streams, malformed content or an
        unexpected data type, ConfigError when cols is too small, and
        ValidationError for bad year values.
        """
        if areas_filter is None and measures_filter is None and years_filter is None:
            if data_type is not SourceDataType.AUTHORITY_CODE_CSV:
                raise ParseError("Areas.populate: Unexpected data type")
            self.populate_from_authority_code_csv(stream, cols)
            return

        if data_type is SourceDataType.AUTHORITY_CODE_CSV:
            self.populate_from_authority_code_csv(stream, cols, areas_filter)
        elif data_type is SourceDataType.AUTHORITY_BY_YEAR_CSV:
            self.populate_from_authority_by_year_csv(
                stream, cols, areas_filter, measures_filter, years_filter
            )
        elif data_type is SourceDataType.WELSH_STATS_JSON:
            self.populate_from_welsh_stats_json(
                stream, cols, areas_filter, measures_filter, years_filter
            )
        else:
            raise ParseError("Areas.populate: Unexpected data type")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {code: self.areas[code].to_dict() for code in sorted(self.areas)}

    def to_json(self, indent: Optional[int] = None) -> str:
        if indent is None:
            return json.dumps(
                self.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":")
            )
        return json.dumps(self.to_dict(), ensure_ascii=False, allow_nan=False, indent=indent)

    def __str__(self) -> str:
        return "\n\n".join(str(area) for area in self)
