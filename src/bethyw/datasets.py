"""
Definitions of the StatsWales source files bethyw knows how to import.

Each InputFileSource names its file, the parser that understands its layout,
and the column mapping from logical roles (SourceColumn) to the literal
column/key names used in that file. Layouts are fixed here; nothing is
inferred from the data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Set, Tuple


class SourceDataType(Enum):
    AUTHORITY_CODE_CSV = "AuthorityCodeCSV"
    AUTHORITY_BY_YEAR_CSV = "AuthorityByYearCSV"
    WELSH_STATS_JSON = "WelshStatsJSON"


class SourceColumn(Enum):
    AUTH_CODE = "auth_code"
    AUTH_NAME_ENG = "auth_name_eng"
    AUTH_NAME_CYM = "auth_name_cym"
    MEASURE_CODE = "measure_code"
    MEASURE_NAME = "measure_name"
    SINGLE_MEASURE_CODE = "single_measure_code"
    SINGLE_MEASURE_NAME = "single_measure_name"
    YEAR = "year"
    VALUE = "value"


SourceColumnMapping = Dict[SourceColumn, str]
StringFilterSet = Set[str]
YearFilterTuple = Tuple[int, int]

# Smallest column mapping each parser can work with
MIN_COLUMNS: Dict[SourceDataType, int] = {
    SourceDataType.AUTHORITY_CODE_CSV: 3,
    SourceDataType.AUTHORITY_BY_YEAR_CSV: 3,
    SourceDataType.WELSH_STATS_JSON: 6,
}


@dataclass(frozen=True)
class InputFileSource:
    code: str
    name: str
    file: str
    parser: SourceDataType
    cols: SourceColumnMapping = field(default_factory=dict)

    @property
    def statswales_code(self) -> str:
        """Dataset identifier on the StatsWales API (the file stem)."""
        return self.file.rsplit(".", 1)[0]


# ---------------------------------------------------------------------------
# areas.csv: Local authority code,Name (eng),Name (cym)
# ---------------------------------------------------------------------------

AREAS = InputFileSource(
    code="areas",
    name="Areas",
    file="areas.csv",
    parser=SourceDataType.AUTHORITY_CODE_CSV,
    cols={
        SourceColumn.AUTH_CODE: "Local authority code",
        SourceColumn.AUTH_NAME_ENG: "Name (eng)",
        SourceColumn.AUTH_NAME_CYM: "Name (cym)",
    },
)

# ---------------------------------------------------------------------------
# Datasets, in import order
# ---------------------------------------------------------------------------

DATASETS: List[InputFileSource] = [
    InputFileSource(
        code="popden",
        name="Population density",
        file="popu1009.json",
        parser=SourceDataType.WELSH_STATS_JSON,
        cols={
            SourceColumn.AUTH_CODE: "Localauthority_Code",
            SourceColumn.AUTH_NAME_ENG: "Localauthority_ItemName_ENG",
            SourceColumn.MEASURE_CODE: "Measure_Code",
            SourceColumn.MEASURE_NAME: "Measure_ItemName_ENG",
            SourceColumn.YEAR: "Year_Code",
            SourceColumn.VALUE: "Data",
        },
    ),
    InputFileSource(
        code="biz",
        name="Active Businesses",
        file="econ0080.json",
        parser=SourceDataType.WELSH_STATS_JSON,
        cols={
            SourceColumn.AUTH_CODE: "Area_Code",
            SourceColumn.AUTH_NAME_ENG: "Area_ItemName_ENG",
            SourceColumn.MEASURE_CODE: "Variable_Code",
            SourceColumn.MEASURE_NAME: "Variable_ItemName_ENG",
            SourceColumn.YEAR: "Year_Code",
            SourceColumn.VALUE: "Data",
        },
    ),
    InputFileSource(
        code="aqi",
        name="Air Quality Indicators",
        file="envi0201.json",
        parser=SourceDataType.WELSH_STATS_JSON,
        cols={
            SourceColumn.AUTH_CODE: "Area_Code",
            SourceColumn.AUTH_NAME_ENG: "Area_ItemName_ENG",
            SourceColumn.MEASURE_CODE: "Pollutant_ItemName_ENG",
            SourceColumn.MEASURE_NAME: "Pollutant_ItemName_ENG",
            SourceColumn.YEAR: "Year_Code",
            SourceColumn.VALUE: "Data",
        },
    ),
    InputFileSource(
        code="trains",
        name="Rail passenger journeys",
        file="tran0152.json",
        parser=SourceDataType.WELSH_STATS_JSON,
        cols={
            SourceColumn.AUTH_CODE: "LocalAuthority_Code",
            SourceColumn.AUTH_NAME_ENG: "LocalAuthority_ItemName_ENG",
            SourceColumn.YEAR: "Year_Code",
            SourceColumn.VALUE: "Data",
            SourceColumn.SINGLE_MEASURE_CODE: "rail",
            SourceColumn.SINGLE_MEASURE_NAME: "Rail passenger journeys",
        },
    ),
    InputFileSource(
        code="complete-popden",
        name="Population density",
        file="complete-popu1009-popden.csv",
        parser=SourceDataType.AUTHORITY_BY_YEAR_CSV,
        cols={
            SourceColumn.AUTH_CODE: "AuthorityCode",
            SourceColumn.SINGLE_MEASURE_CODE: "dens",
            SourceColumn.SINGLE_MEASURE_NAME: "Population density",
        },
    ),
    InputFileSource(
        code="complete-pop",
        name="Population",
        file="complete-popu1009-pop.csv",
        parser=SourceDataType.AUTHORITY_BY_YEAR_CSV,
        cols={
            SourceColumn.AUTH_CODE: "AuthorityCode",
            SourceColumn.SINGLE_MEASURE_CODE: "pop",
            SourceColumn.SINGLE_MEASURE_NAME: "Population",
        },
    ),
    InputFileSource(
        code="complete-area",
        name="Land area",
        file="complete-popu1009-area.csv",
        parser=SourceDataType.AUTHORITY_BY_YEAR_CSV,
        cols={
            SourceColumn.AUTH_CODE: "AuthorityCode",
            SourceColumn.SINGLE_MEASURE_CODE: "area",
            SourceColumn.SINGLE_MEASURE_NAME: "Land area",
        },
    ),
]


def get_dataset(code: str) -> InputFileSource | None:
    for dataset in DATASETS:
        if dataset.code == code:
            return dataset
    return None
