"""
Compression utilities for pacmeta

Sync databases are tar archives, gzip-compressed by default. repo-add can
also produce other containers, so the format is auto-detected:
- gzip (default)
- zstd
- xz/lzma
- bzip2
- plain (uncompressed tar)
"""

import logging
import lzma
import tarfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Tuple, Type, Union

logger = logging.getLogger(__name__)

# Magic bytes for format detection
MAGIC_ZSTD = b'\x28\xb5\x2f\xfd'
MAGIC_GZIP = b'\x1f\x8b'
MAGIC_XZ = b'\xfd7zXZ\x00'
MAGIC_BZ2 = b'BZh'


def _archive_error_types() -> Tuple[Type[BaseException], ...]:
    types = [tarfile.TarError, EOFError, zlib.error, lzma.LZMAError]
    try:
        import zstandard as zstd
    except ImportError:
        pass
    else:
        types.append(zstd.ZstdError)
    return tuple(types)


@contextmanager
def archive_errors(filename: Union[str, Path]) -> Iterator[None]:
    """Report a damaged archive as an OSError naming the file.

    Truncated or corrupt data surfaces from tarfile and the decompressors
    as unrelated exception types (TarError, EOFError, zlib.error, ...).
    OSErrors such as gzip.BadGzipFile pass through unchanged.
    """
    try:
        yield
    except _archive_error_types() as e:
        raise OSError(f"corrupt database {filename}: {e}") from e


def detect_format(data: bytes) -> str:
    """Detect compression format from magic bytes.

    Args:
        data: First 8+ bytes of the file

    Returns:
        Format name: 'zstd', 'gzip', 'xz', 'bzip2', or 'plain'
    """
    if data[:4] == MAGIC_ZSTD:
        return 'zstd'
    elif data[:2] == MAGIC_GZIP:
        return 'gzip'
    elif data[:6] == MAGIC_XZ:
        return 'xz'
    elif data[:3] == MAGIC_BZ2:
        return 'bzip2'
    else:
        return 'plain'


def decompress_stream(filename: Union[str, Path]) -> BinaryIO:
    """Open a compressed file and return a binary stream.

    Args:
        filename: Path to compressed file

    Returns:
        File-like object for reading decompressed data

    Raises:
        FileNotFoundError: If the file does not exist
        ImportError: If zstandard module is not installed (for zstd files)
    """
    path = Path(filename)

    with open(path, 'rb') as f:
        magic = f.read(8)

    fmt = detect_format(magic)
    logger.debug("Opening %s (%s)", path, fmt)

    if fmt == 'zstd':
        try:
            import zstandard as zstd
        except ImportError:
            raise ImportError(
                "Module 'zstandard' required for zstd decompression. "
                "Install with: pip install zstandard"
            )
        f = open(path, 'rb')
        dctx = zstd.ZstdDecompressor()
        return dctx.stream_reader(f)

    elif fmt == 'gzip':
        import gzip
        return gzip.open(path, 'rb')

    elif fmt == 'xz':
        import lzma
        return lzma.open(path, 'rb')

    elif fmt == 'bzip2':
        import bz2
        return bz2.open(path, 'rb')

    else:
        return open(path, 'rb')


@contextmanager
def open_archive(filename: Union[str, Path]) -> Iterator[tarfile.TarFile]:
    """Open a (compressed) tar archive for sequential reading.

    The archive is opened in stream mode: members must be read in order.
    Both the TarFile and the decompressed stream are closed on exit.

    Args:
        filename: Path to the archive

    Yields:
        TarFile reading from the decompressed stream
    """
    stream = decompress_stream(filename)
    try:
        with archive_errors(filename):
            tar = tarfile.open(fileobj=stream, mode='r|')
        with tar:
            yield tar
    finally:
        stream.close()
