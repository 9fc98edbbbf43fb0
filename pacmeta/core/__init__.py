"""Core modules for pacmeta"""

from .package import (
    Architecture,
    FormatError,
    License,
    OptDependency,
    PackageRecord,
    Packager,
    decode_record,
    encode_record,
)
from .query import (
    LocalRepository,
    NotFoundError,
    PackageCache,
    PackageLocator,
    RepositoryAbsent,
    SyncRepository,
    resolve_package,
    resolve_package_in,
)

__all__ = [
    'Architecture', 'FormatError', 'License', 'OptDependency', 'PackageRecord',
    'Packager', 'decode_record', 'encode_record',
    'LocalRepository', 'NotFoundError', 'PackageCache', 'PackageLocator',
    'RepositoryAbsent', 'SyncRepository', 'resolve_package', 'resolve_package_in',
]
