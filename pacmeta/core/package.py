"""
Package description (desc) codec for pacmeta

Reads and writes the text records pacman keeps for every package, both in
sync databases (<repo>.db archives) and in the local database directory.

Format: a sequence of sections, each a %HEADER% line followed by one or more
value lines and terminated by a blank line:

    %NAME%
    xz

    %DEPENDS%
    sh

The set of headers is closed. Sections are written in a fixed order and
empty fields are omitted entirely.
"""

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

DIGEST_SIZE = 32

SECTION_SEPARATOR = '\n\n%'
OPTDEPEND_SEPARATOR = ': '

_UINT_RE = re.compile(r'[0-9]+')
_INT_RE = re.compile(r'[+-]?[0-9]+')
_HEX_RE = re.compile(r'[0-9a-fA-F]*')

_UINT64_MAX = 2 ** 64 - 1
_INT64_MIN = -2 ** 63
_INT64_MAX = 2 ** 63 - 1


class FormatError(ValueError):
    """Malformed package description text."""

    def __init__(self, message: str, header: str = '', line: str = ''):
        super().__init__(message)
        self.header = header
        self.line = line


# =============================================================================
# Value types
# =============================================================================

class License(str):
    """License identifier (unvalidated)."""

    def render(self) -> str:
        return str(self)


class Architecture(str):
    """Target architecture token (unvalidated)."""

    def render(self) -> str:
        return str(self)


AMD64 = Architecture('x86_64')
AARCH64 = Architecture('aarch64')
I686 = Architecture('i686')
ANY = Architecture('any')


@dataclass
class OptDependency:
    """An optional dependency with the reason it is wanted."""
    package: str
    reason: str = ''

    def render(self) -> str:
        if self.reason:
            return f"{self.package}{OPTDEPEND_SEPARATOR}{self.reason}"
        return self.package

    @classmethod
    def parse(cls, line: str) -> 'OptDependency':
        parts = line.split(OPTDEPEND_SEPARATOR)
        if len(parts) != 2:
            raise FormatError(
                f"unexpected structure for opt dependency: {line!r}",
                header='OPTDEPENDS', line=line
            )
        return cls(package=parts[0], reason=parts[1])


@dataclass
class Packager:
    """Packager identity, "Name <email>" on disk."""
    name: str = ''
    email: str = ''

    def render(self) -> str:
        if not self.email:
            return self.name
        if not self.name:
            return f"<{self.email}>"
        return f"{self.name} <{self.email}>"

    def is_empty(self) -> bool:
        return not self.name and not self.email

    @classmethod
    def parse(cls, line: str) -> 'Packager':
        """Parse a packager line.

        The last whitespace-separated token is taken as the email only when
        it is wrapped in angle brackets around a non-empty address; otherwise
        the whole line is the name.

        Args:
            line: e.g. "Levente Polyak <anthraxx@archlinux.org>"

        Returns:
            Packager instance
        """
        tokens = line.split()
        if tokens and len(tokens[-1]) > 2 \
                and tokens[-1].startswith('<') and tokens[-1].endswith('>'):
            return cls(name=' '.join(tokens[:-1]), email=tokens[-1][1:-1])
        return cls(name=line)


# =============================================================================
# Record
# =============================================================================

@dataclass
class PackageRecord:
    """Metadata of one package, as stored in a desc file.

    Records handed out by a PackageLocator are shared through its cache;
    use copy() before mutating one.
    """
    file_name: str = ''
    name: str = ''
    base: str = ''
    version: str = ''
    description: str = ''
    csize: int = 0
    isize: int = 0
    sha256sum: bytes = b''
    pgp_signature: str = ''
    url: str = ''
    licenses: List[License] = field(default_factory=list)
    arch: Architecture = Architecture('')
    # UTC datetime, or raw epoch seconds outside the datetime range
    build_date: Optional[Union[datetime, int]] = None
    packager: Packager = field(default_factory=Packager)
    provides: List[str] = field(default_factory=list)
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)
    opt_depends: List[OptDependency] = field(default_factory=list)
    check_depends: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, data: Union[bytes, str]) -> 'PackageRecord':
        return decode_record(data)

    def to_text(self) -> bytes:
        return encode_record(self)

    def copy(self) -> 'PackageRecord':
        return copy.deepcopy(self)

    def is_empty(self) -> bool:
        return all(f.kind.is_empty(getattr(self, f.attr)) for f in FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict.

        Keys are the lower-cased section headers; empty fields are left out.
        """
        result: Dict[str, Any] = {}
        for f in FIELDS:
            value = getattr(self, f.attr)
            if f.kind.is_empty(value):
                continue
            result[f.header.lower()] = f.kind.to_json(value)
        return result


# =============================================================================
# Section kinds
# =============================================================================

class _Kind:
    """How one section body maps to and from a field value."""

    def parse(self, header: str, lines: List[str]) -> Any:
        raise NotImplementedError

    def format(self, value: Any) -> str:
        raise NotImplementedError

    def is_empty(self, value: Any) -> bool:
        return not value

    def to_json(self, value: Any) -> Any:
        return value


class _String(_Kind):

    def __init__(self, factory: Callable[[str], Any] = str):
        self.factory = factory

    def parse(self, header, lines):
        return self.factory('\n'.join(lines))

    def format(self, value):
        return str(value)

    def to_json(self, value):
        return str(value)


class _Unsigned(_Kind):

    def parse(self, header, lines):
        data = '\n'.join(lines)
        try:
            if not _UINT_RE.fullmatch(data):
                raise ValueError(f"invalid syntax: {data!r}")
            value = int(data)
            if value > _UINT64_MAX:
                raise ValueError(f"value out of range: {data!r}")
        except ValueError as e:
            raise FormatError(f"{header}: {e}", header=header, line=data) from e
        return value

    def format(self, value):
        return str(value)


class _Digest(_Kind):

    def parse(self, header, lines):
        data = '\n'.join(lines)
        if len(data) % 2 or not _HEX_RE.fullmatch(data):
            raise FormatError(
                f"{header}: invalid hex digest: {data!r}",
                header=header, line=data
            )
        digest = bytes.fromhex(data)
        if len(digest) < DIGEST_SIZE:
            raise FormatError(
                f"{header}: digest is {len(digest)} bytes, expected {DIGEST_SIZE}",
                header=header, line=data
            )
        return digest[:DIGEST_SIZE]

    def format(self, value):
        return bytes(value).hex()

    def to_json(self, value):
        return bytes(value).hex()


def epoch_seconds(value: Union[datetime, int]) -> int:
    """Seconds since the Unix epoch for a build date."""
    if isinstance(value, int):
        return value
    return int(value.timestamp())


class _Timestamp(_Kind):

    def parse(self, header, lines):
        data = '\n'.join(lines)
        try:
            if not _INT_RE.fullmatch(data):
                raise ValueError(f"invalid syntax: {data!r}")
            seconds = int(data)
            if not _INT64_MIN <= seconds <= _INT64_MAX:
                raise ValueError(f"value out of range: {data!r}")
        except ValueError as e:
            raise FormatError(f"{header}: {e}", header=header, line=data) from e
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            # Outside years 1-9999: keep the raw epoch seconds
            return seconds

    def is_empty(self, value):
        return value is None

    def format(self, value):
        return str(epoch_seconds(value))

    def to_json(self, value):
        return epoch_seconds(value)


class _Packager(_Kind):

    def parse(self, header, lines):
        return Packager.parse('\n'.join(lines))

    def is_empty(self, value):
        return value.is_empty()

    def format(self, value):
        return value.render()

    def to_json(self, value):
        return {'name': value.name, 'email': value.email}


class _List(_Kind):

    def __init__(self, factory: Callable[[str], Any] = str):
        self.factory = factory

    def parse(self, header, lines):
        return [self.factory(line) for line in lines]

    def format(self, value):
        return '\n'.join(_render(element) for element in value)

    def to_json(self, value):
        return [_render(element) for element in value]


def _render(value: Any) -> str:
    render = getattr(value, 'render', None)
    return render() if render else str(value)


@dataclass(frozen=True)
class Field:
    """One row of the header table."""
    header: str
    attr: str
    kind: _Kind


# Declaration order is the on-disk section order.
FIELDS: Tuple[Field, ...] = (
    Field('FILENAME', 'file_name', _String()),
    Field('NAME', 'name', _String()),
    Field('BASE', 'base', _String()),
    Field('VERSION', 'version', _String()),
    Field('DESC', 'description', _String()),
    Field('CSIZE', 'csize', _Unsigned()),
    Field('ISIZE', 'isize', _Unsigned()),
    Field('SHA256SUM', 'sha256sum', _Digest()),
    Field('PGPSIG', 'pgp_signature', _String()),
    Field('URL', 'url', _String()),
    Field('LICENSE', 'licenses', _List(License)),
    Field('ARCH', 'arch', _String(Architecture)),
    Field('BUILDDATE', 'build_date', _Timestamp()),
    Field('PACKAGER', 'packager', _Packager()),
    Field('PROVIDES', 'provides', _List()),
    Field('DEPENDS', 'depends', _List()),
    Field('MAKEDEPENDS', 'make_depends', _List()),
    Field('OPTDEPENDS', 'opt_depends', _List(OptDependency.parse)),
    Field('CHECKDEPENDS', 'check_depends', _List()),
)

FIELDS_BY_HEADER: Dict[str, Field] = {f.header: f for f in FIELDS}

HEADERS: Tuple[str, ...] = tuple(f.header for f in FIELDS)


# =============================================================================
# Decoding / encoding
# =============================================================================

def split_sections(text: str) -> List[List[str]]:
    """Split desc text into sections.

    Args:
        text: Full desc content

    Returns:
        List of sections, each a list of lines (header line first)

    Raises:
        FormatError: If the text does not start with a header
    """
    if not text:
        return []
    if not text.startswith('%'):
        raise FormatError("expected delimiter", line=text.split('\n', 1)[0])

    # The last section carries its own terminator
    if text.endswith('\n\n'):
        text = text[:-2]
    elif text.endswith('\n'):
        text = text[:-1]

    chunks = text.split(SECTION_SEPARATOR)
    sections = [chunks[0].split('\n')]
    for chunk in chunks[1:]:
        sections.append(('%' + chunk).split('\n'))
    return sections


def decode_record(data: Union[bytes, str]) -> PackageRecord:
    """Decode a desc blob into a PackageRecord.

    Args:
        data: Raw desc content (bytes are decoded as UTF-8)

    Returns:
        Decoded PackageRecord

    Raises:
        FormatError: On any malformed input
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            text = bytes(data).decode('utf-8')
        except UnicodeDecodeError as e:
            raise FormatError(f"invalid UTF-8 in package description: {e}") from e
    else:
        text = data

    record = PackageRecord()
    for section in split_sections(text):
        if len(section) < 2:
            raise FormatError(
                f"unexpected section length: {section!r}",
                line=section[0] if section else ''
            )
        header = section[0].strip('%')
        f = FIELDS_BY_HEADER.get(header)
        if f is None:
            raise FormatError(f"unknown header: {header}", header=header,
                              line=section[0])
        setattr(record, f.attr, f.kind.parse(header, section[1:]))

    return record


def encode_record(record: PackageRecord) -> bytes:
    """Encode a PackageRecord into desc text.

    Args:
        record: Record to serialize

    Returns:
        UTF-8 desc content (empty for an empty record)
    """
    parts = []
    for f in FIELDS:
        value = getattr(record, f.attr)
        if f.kind.is_empty(value):
            continue
        parts.append(f"%{f.header}%\n{f.kind.format(value)}\n\n")
    return ''.join(parts).encode('utf-8')


def read_record(path: Union[str, Path]) -> PackageRecord:
    """Read and decode a desc file from disk."""
    return decode_record(Path(path).read_bytes())
