"""
Command-line entry point: parse arguments, import the requested datasets
into an Areas instance, and print it as tables or JSON.

    bethyw --dir datasets -d popden -a W06000011 -y 2010-2015 --json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from bethyw.config import APP_NAME, APP_VERSION, DATASETS_DIR, LOG_FORMAT, LOG_LEVEL
from bethyw.core.areas import Areas
from bethyw.core.errors import BethYwError, DatasetImportError
from bethyw.datasets import (
    AREAS,
    InputFileSource,
    SourceDataType,
    StringFilterSet,
    YearFilterTuple,
)
from bethyw.filters import (
    parse_areas_arg,
    parse_datasets_arg,
    parse_measures_arg,
    parse_years_arg,
)
from bethyw.input import InputFile, InputSource, StatsWalesSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bethyw",
        description=(
            f"{APP_NAME} {APP_VERSION}\n\n"
            "This program is designed to parse official Welsh Government statistics data files."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--dir",
        default=str(DATASETS_DIR),
        help="Directory for input data passed in as files (default: %(default)s)",
    )
    parser.add_argument(
        "-d", "--datasets",
        action="append",
        help=(
            "The dataset(s) to import and analyse as a comma-separated list of codes "
            "(omit or set to 'all' to import and analyse all datasets)"
        ),
    )
    parser.add_argument(
        "-a", "--areas",
        action="append",
        help=(
            "The areas(s) to import and analyse as a comma-separated list of authority codes "
            "(omit or set to 'all' to import and analyse all areas)"
        ),
    )
    parser.add_argument(
        "-m", "--measures",
        action="append",
        help=(
            "Select a subset of measures from the dataset(s) "
            "(omit or set to 'all' to import and analyse all measures)"
        ),
    )
    parser.add_argument(
        "-y", "--years",
        default="0",
        help="Focus on a particular year (YYYY) or inclusive range of years (YYYY-ZZZZ)",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Print the output as JSON instead of tables.",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output (implies --json).",
    )
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Fetch JSON datasets from the StatsWales API instead of --dir.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v for info, -vv for debug).",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, LOG_LEVEL, logging.WARNING) if LOG_LEVEL else logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _source_for(dataset: InputFileSource, data_dir: Path, remote: bool) -> InputSource:
    if remote and dataset.parser is SourceDataType.WELSH_STATS_JSON:
        return StatsWalesSource(dataset.statswales_code)
    return InputFile(data_dir / dataset.file)


def load_areas(
    areas: Areas,
    data_dir: str | Path,
    areas_filter: StringFilterSet,
) -> None:
    """Import areas.csv from data_dir, giving every area its English and Welsh names."""
    source = InputFile(Path(data_dir) / AREAS.file)
    logger.info("Importing %s from %s", AREAS.name, source.get_source())
    try:
        with source.open() as stream:
            areas.populate(stream, AREAS.parser, AREAS.cols, areas_filter, None, None)
    except BethYwError as exc:
        raise DatasetImportError(f"Error importing dataset {AREAS.code}: {exc}") from exc


def load_datasets(
    areas: Areas,
    data_dir: str | Path,
    datasets_to_import: Sequence[InputFileSource],
    areas_filter: StringFilterSet,
    measures_filter: StringFilterSet,
    years_filter: YearFilterTuple,
    remote: bool = False,
) -> None:
    """
    Import each dataset in turn. The first dataset that fails stops the run:
    its error is wrapped in DatasetImportError naming the dataset.
    """
    data_dir = Path(data_dir)
    for dataset in datasets_to_import:
        source = _source_for(dataset, data_dir, remote)
        logger.info("Importing %s (%s) from %s", dataset.name, dataset.code, source.get_source())
        try:
            with source.open() as stream:
                areas.populate(
                    stream,
                    dataset.parser,
                    dataset.cols,
                    areas_filter,
                    measures_filter,
                    years_filter,
                )
        except BethYwError as exc:
            raise DatasetImportError(f"Error importing dataset {dataset.code}: {exc}") from exc
        logger.info("Now holding %s areas", len(areas))


def run(argv: Optional[List[str]] = None) -> int:
    """Run bethyw and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        datasets_to_import = parse_datasets_arg(args.datasets)
        areas_filter = parse_areas_arg(args.areas)
        measures_filter = parse_measures_arg(args.measures)
        years_filter = parse_years_arg(args.years)
    except BethYwError as exc:
        print(exc, file=sys.stderr)
        return 1

    data = Areas()
    try:
        load_areas(data, args.dir, areas_filter)
        load_datasets(
            data,
            args.dir,
            datasets_to_import,
            areas_filter,
            measures_filter,
            years_filter,
            remote=args.remote,
        )
    except DatasetImportError as exc:
        print("Error importing dataset:", file=sys.stderr)
        print(exc, file=sys.stderr)
        if exc.__cause__ is not None and exc.__cause__.__cause__ is not None:
            print(f"Caused by: {exc.__cause__.__cause__}", file=sys.stderr)
        return 1

    if args.json or args.pretty:
        print(data.to_json(indent=2 if args.pretty else None))
    else:
        print(data)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
