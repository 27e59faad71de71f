"""
bethyw
======

Parser and viewer for Welsh Government (StatsWales) statistics datasets.

This package contains:
- core: the Areas / Area / Measure data model and the file parsers
- datasets: the known source files and their column mappings
- filters: area, measure, year and dataset filters derived from CLI values
- input: local file and StatsWales API input sources
- cli: the bethyw command
"""
__version__ = "0.1.0"
