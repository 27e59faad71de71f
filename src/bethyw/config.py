from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Directory holding areas.csv and the dataset files
DATASETS_DIR = Path(os.getenv("BETHYW_DATA_DIR", "").strip() or PROJECT_ROOT / "datasets")

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Beth Yw? Welsh Government data parser"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Data rules
# ---------------------------------------------------------------------------

# Years at or after this value are rejected by year validation.
YEAR_CUTOFF = 2021

# Literal year string meaning "no year / no filter".
YEAR_SENTINEL = "0"

# Key holding the numeric reading in StatsWales JSON records.
DEFAULT_VALUE_KEY = "Data"

# ---------------------------------------------------------------------------
# StatsWales OData API
#
# JSON datasets can be fetched directly instead of read from --dir:
#   http://open.statswales.gov.wales/en-gb/dataset/<code>
# where <code> is the file stem, e.g. popu1009 for popu1009.json.
# Responses are paged; each page carries the next URL under "odata.nextLink".
# ---------------------------------------------------------------------------

STATSWALES_BASE_URL = os.getenv(
    "BETHYW_STATSWALES_URL",
    "http://open.statswales.gov.wales/en-gb/dataset",
).strip().rstrip("/")

HTTP_TIMEOUT_SECONDS = int(os.getenv("BETHYW_HTTP_TIMEOUT", "90"))

# Hard cap on followed pages, in case nextLink loops
STATSWALES_MAX_PAGES = int(os.getenv("BETHYW_MAX_PAGES", "500"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("BETHYW_LOG_LEVEL", "").strip().upper()
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
