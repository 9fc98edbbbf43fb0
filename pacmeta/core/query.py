"""
Package lookup in pacman databases.

A repository is either a sync database (compressed tar archive holding one
<name>-<version>-<release>/desc member per package) or the local database
directory (one <name>-<version>-<release>/ subdirectory per installed
package). Decoded records are kept in a PackageCache for the lifetime of
the PackageLocator that owns it.
"""

import errno
import logging
import threading
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .compression import archive_errors, open_archive
from .package import PackageRecord, decode_record

logger = logging.getLogger(__name__)

DESC_FILE = "desc"

# (entry name, reader returning the entry's desc bytes)
Entry = Tuple[str, Callable[[], bytes]]


class NotFoundError(LookupError):
    """No repository holds the requested package."""

    def __init__(self, name: str):
        super().__init__(f"could not find package: {name}")
        self.name = name


class RepositoryAbsent(FileNotFoundError):
    """The repository source does not exist on disk."""

    def __init__(self, path: Path):
        super().__init__(errno.ENOENT, "repository does not exist", str(path))


def split_entry_name(entry_name: str) -> Tuple[str, str, str]:
    """Split a database entry name into name, version and release.

    Args:
        entry_name: String like "xz-5.8.1-1" or "python-docs-3.13.1-1"

    Returns:
        Tuple of (name, version, release); version and release are empty
        if the entry name has no such suffix
    """
    parts = entry_name.rsplit('-', 2)
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    return entry_name, '', ''


# =============================================================================
# Repositories
# =============================================================================

class Repository:
    """A named source of package descriptions."""

    kind = ''

    def __init__(self, name: str, path: Union[str, Path]):
        self.name = name
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {str(self.path)!r})"

    def entries(self):
        """Context manager yielding an iterator of (entry name, reader) pairs.

        Raises:
            RepositoryAbsent: If the source does not exist
            OSError: If the source cannot be read
        """
        raise NotImplementedError

    def is_candidate(self, entry_name: str, name: str) -> bool:
        """Check whether an entry may hold the package called name."""
        raise NotImplementedError


class SyncRepository(Repository):
    """A sync database: <repo>.db, a compressed tar archive.

    Entries are matched by name prefix, so looking up "xz" also decodes
    entries such as "xz-utils-1.0-1"; the record's own NAME decides.
    """

    kind = 'sync'

    @contextmanager
    def entries(self) -> Iterator[Iterator[Entry]]:
        if not self.path.exists():
            raise RepositoryAbsent(self.path)
        with open_archive(self.path) as tar:
            yield self._iter_members(tar)

    def _iter_members(self, tar) -> Iterator[Entry]:
        members = iter(tar)
        while True:
            with archive_errors(self.path):
                member = next(members, None)
            if member is None:
                return
            if not member.isfile():
                continue
            entry_name, _, leaf = member.name.rpartition('/')
            if leaf != DESC_FILE or not entry_name:
                continue
            if entry_name.startswith('./'):
                entry_name = entry_name[2:]
            yield entry_name, partial(self._read_member, tar, member)

    def _read_member(self, tar, member) -> bytes:
        with archive_errors(self.path):
            f = tar.extractfile(member)
            if f is None:
                raise OSError(f"cannot read archive member {member.name}")
            with f:
                return f.read()

    def is_candidate(self, entry_name: str, name: str) -> bool:
        return entry_name.startswith(name + '-')


class LocalRepository(Repository):
    """The local database: a directory of <name>-<version>-<release>/desc."""

    kind = 'local'

    @contextmanager
    def entries(self) -> Iterator[Iterator[Entry]]:
        if not self.path.exists():
            raise RepositoryAbsent(self.path)
        yield self._iter_children()

    def _iter_children(self) -> Iterator[Entry]:
        # Non-directories (ALPM_DB_VERSION) are not packages
        for child in sorted(self.path.iterdir()):
            if not child.is_dir():
                continue
            yield child.name, (child / DESC_FILE).read_bytes

    def is_candidate(self, entry_name: str, name: str) -> bool:
        return split_entry_name(entry_name)[0] == name


# =============================================================================
# Cache
# =============================================================================

class PackageCache:
    """Name to PackageRecord map shared by lookups.

    Entries are never evicted or invalidated; the first record stored under
    a name is the one every later lookup gets.
    """

    def __init__(self):
        self._records: Dict[str, PackageRecord] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[PackageRecord]:
        with self._lock:
            return self._records.get(name)

    def put(self, name: str, record: PackageRecord) -> PackageRecord:
        """Store a record unless one is already cached under name.

        Returns:
            The cached record for name
        """
        with self._lock:
            return self._records.setdefault(name, record)

    def clear(self):
        with self._lock:
            self._records.clear()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# =============================================================================
# Locator
# =============================================================================

class PackageLocator:
    """Resolves package names against an ordered list of repositories."""

    def __init__(self, repositories: Sequence[Repository],
                 cache: Optional[PackageCache] = None):
        """Initialize locator.

        Args:
            repositories: Repositories in priority order
            cache: Cache to use (a private one is created if None)
        """
        self.repositories: List[Repository] = list(repositories)
        self.cache = cache if cache is not None else PackageCache()

    def resolve_in(self, name: str, repository: Repository) -> Optional[PackageRecord]:
        """Look a package up in a single repository.

        Every record decoded along the way is cached under its own name,
        including near-name matches that are not returned.

        Args:
            name: Package name
            repository: Repository to scan

        Returns:
            The record, or None if the repository does not hold the package

        Raises:
            RepositoryAbsent: If the repository source does not exist
            OSError: If the repository cannot be read
            FormatError: If a candidate description is malformed
        """
        cached = self.cache.get(name)
        if cached is not None:
            logger.debug("Cache hit for %s", name)
            return cached

        logger.debug("Scanning %s repository %s for %s",
                     repository.kind, repository.name, name)
        with repository.entries() as entries:
            for entry_name, read in entries:
                if not repository.is_candidate(entry_name, name):
                    continue
                record = decode_record(read())
                if record.name:
                    record = self.cache.put(record.name, record)
                if record.name == name:
                    logger.debug("Found %s in %s (%s)", name, repository.name, entry_name)
                    return record

        return None

    def resolve(self, name: str) -> PackageRecord:
        """Look a package up in all repositories, in priority order.

        Missing repositories are skipped; any other error aborts the search.

        Raises:
            NotFoundError: If no repository holds the package
        """
        for repository in self.repositories:
            try:
                record = self.resolve_in(name, repository)
            except RepositoryAbsent:
                logger.debug("Repository %s not found at %s, skipping",
                             repository.name, repository.path)
                continue
            if record is not None:
                return record

        raise NotFoundError(name)


_default_locator: Optional[PackageLocator] = None


def default_locator() -> PackageLocator:
    """Get the process-wide locator built from the configured repositories."""
    global _default_locator
    if _default_locator is None:
        from .config import build_repositories, get_config
        _default_locator = PackageLocator(build_repositories(get_config()))
    return _default_locator


def resolve_package(name: str, locator: Optional[PackageLocator] = None) -> PackageRecord:
    """Find a package in the configured repositories.

    Raises:
        NotFoundError: If no repository holds the package
    """
    return (locator or default_locator()).resolve(name)


def resolve_package_in(name: str, repository: Repository,
                       locator: Optional[PackageLocator] = None) -> Optional[PackageRecord]:
    """Find a package in one repository; None if it is not there."""
    return (locator or default_locator()).resolve_in(name, repository)
