"""
Package assembly for cbzdrop.

Turns an ordered list of page images into one or more EPUB packages that
each stay under a byte budget.

Public API:
    split_assets — Greedy contiguous split into PackagePlans
    PackageBuilder — Atomic EPUB writer for one plan
    build_package — Convenience wrapper returning the written path
"""

from .errors import PackagingError
from .models import PartIndex, PackagePlan, BuiltPackage
from .splitter import MEGABYTE, group_assets, split_assets
from .naming import (
    UNKNOWN_AUTHOR,
    resolve_base_title,
    resolve_title,
    resolve_author,
    sanitize_filename,
    truncate_utf8,
    package_filename,
)
from .builder import EPUB_MEDIA_TYPE, PackageBuilder, build_package

__all__ = [
    # Errors
    "PackagingError",
    # Models
    "PartIndex",
    "PackagePlan",
    "BuiltPackage",
    # Splitting
    "MEGABYTE",
    "group_assets",
    "split_assets",
    # Naming
    "UNKNOWN_AUTHOR",
    "resolve_base_title",
    "resolve_title",
    "resolve_author",
    "sanitize_filename",
    "truncate_utf8",
    "package_filename",
    # Building
    "EPUB_MEDIA_TYPE",
    "PackageBuilder",
    "build_package",
]
