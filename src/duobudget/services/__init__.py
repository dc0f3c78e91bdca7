"""Service module exports."""

from . import category_resolver, import_headers, import_report, import_rows, importers

__all__ = [
    "category_resolver",
    "import_headers",
    "import_report",
    "import_rows",
    "importers",
]
