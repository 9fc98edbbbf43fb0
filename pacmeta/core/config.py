"""
Central configuration for pacmeta paths.

Defaults follow pacman's own layout:

    /var/lib/pacman/sync/<repo>.db   - Sync databases (compressed tar)
    /var/lib/pacman/local/<pkg>/desc - Local (installed) database

Repositories are searched in the order core, extra, multilib unless the
config file says otherwise.

/etc/pacmeta.conf format (optional, one setting per line):
    dbpath=/var/lib/pacman
    repositories=core extra multilib
    local=no
    # Comments start with #
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .query import Repository

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("/etc/pacmeta.conf")

DEFAULT_DB_PATH = Path("/var/lib/pacman")
SYNC_DIR = "sync"
LOCAL_DIR = "local"
DB_EXTENSION = ".db"
DEFAULT_REPOSITORIES: Tuple[str, ...] = ("core", "extra", "multilib")

_TRUE_VALUES = ('1', 'yes', 'true', 'on')

# Cache for detected configuration (avoid repeated filesystem checks)
_cached_config: Optional['Config'] = None


@dataclass
class Config:
    """Where the package databases live and in which order to search them."""
    db_path: Path = DEFAULT_DB_PATH
    repositories: List[str] = field(default_factory=lambda: list(DEFAULT_REPOSITORIES))
    include_local: bool = False

    @property
    def sync_root(self) -> Path:
        return self.db_path / SYNC_DIR

    @property
    def local_root(self) -> Path:
        return self.db_path / LOCAL_DIR

    def sync_database(self, repository: str) -> Path:
        """Path of the sync database for a repository name."""
        return self.sync_root / f"{repository}{DB_EXTENSION}"


def read_config(path: Path) -> Config:
    """Read a pacmeta config file.

    Unknown keys are ignored. A missing file yields the defaults.

    Args:
        path: Config file path

    Returns:
        Config instance
    """
    config = Config()
    if not path.exists():
        return config

    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                continue
            key, value = line.split('=', 1)
            key = key.strip().lower()
            value = value.strip()

            if key == 'dbpath':
                config.db_path = Path(value).expanduser()
            elif key == 'repositories':
                config.repositories = value.replace(',', ' ').split()
            elif key == 'local':
                config.include_local = value.lower() in _TRUE_VALUES
            else:
                logger.debug("Ignoring unknown config key %r in %s", key, path)

    return config


def get_config() -> Config:
    """Get the process-wide configuration, reading CONFIG_FILE once."""
    global _cached_config
    if _cached_config is None:
        _cached_config = read_config(CONFIG_FILE)
    return _cached_config


def build_repositories(config: Config) -> List['Repository']:
    """Create the ordered repository list for a configuration.

    Args:
        config: Configuration to use

    Returns:
        Sync repositories in configured order, then the local database
        if enabled
    """
    from .query import LocalRepository, SyncRepository

    repositories: List['Repository'] = [
        SyncRepository(name, config.sync_database(name))
        for name in config.repositories
    ]
    if config.include_local:
        repositories.append(LocalRepository(LOCAL_DIR, config.local_root))
    return repositories
