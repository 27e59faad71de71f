"""
Core data model and ingestion.

This package contains:
- measure: a single indicator with a value per year and derived statistics
- area: a local authority with multilingual names and its measures
- areas: the container of all areas, the format parsers, and rendering
- errors: the exception hierarchy shared by the whole package
"""
