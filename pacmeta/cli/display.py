"""Display utilities for the pacmeta CLI.

Output modes for a package record:
- info: aligned "Field : value" lines, like pacman -Si (default)
- raw: the desc text itself
- json: JSON output (programmatic consumption)
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

from . import colors
from ..core.package import PackageRecord, encode_record


class DisplayMode(Enum):
    """Output display mode."""
    INFO = "info"
    RAW = "raw"
    JSON = "json"


# Global display settings
_display_mode = DisplayMode.INFO


def init(mode: str = "info"):
    """Initialize display settings.

    Args:
        mode: Display mode ("info", "raw", "json")
    """
    global _display_mode
    _display_mode = DisplayMode(mode) if mode else DisplayMode.INFO


def format_size(size_bytes: float) -> str:
    """Format bytes as human-readable size."""
    if size_bytes < 1024:
        return f"{size_bytes:.0f}B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f}KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f}MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f}GB"


def _join(values: List[Any]) -> str:
    return '  '.join(v.render() if hasattr(v, 'render') else str(v) for v in values)


def _format_date(value: Union[datetime, int, None]) -> str:
    if value is None:
        return ''
    if isinstance(value, int):
        # Not representable as a datetime
        return f"@{value}"
    return value.strftime('%Y-%m-%d %H:%M:%S %Z')


# (label, value getter) in pacman -Si order
_INFO_FIELDS: List[Tuple[str, Callable[[PackageRecord], str]]] = [
    ("Name", lambda r: r.name),
    ("Version", lambda r: r.version),
    ("Description", lambda r: r.description),
    ("Architecture", lambda r: str(r.arch)),
    ("URL", lambda r: r.url),
    ("Licenses", lambda r: _join(r.licenses)),
    ("Provides", lambda r: _join(r.provides)),
    ("Depends On", lambda r: _join(r.depends)),
    ("Optional Deps", lambda r: '\n'.join(d.render() for d in r.opt_depends)),
    ("Make Deps", lambda r: _join(r.make_depends)),
    ("Check Deps", lambda r: _join(r.check_depends)),
    ("Download Size", lambda r: format_size(r.csize) if r.csize else ''),
    ("Installed Size", lambda r: format_size(r.isize) if r.isize else ''),
    ("Packager", lambda r: r.packager.render()),
    ("Build Date", lambda r: _format_date(r.build_date)),
    ("SHA-256 Sum", lambda r: r.sha256sum.hex()),
    ("File Name", lambda r: r.file_name),
    ("Base", lambda r: r.base),
]

_LABEL_WIDTH = max(len(label) for label, _ in _INFO_FIELDS)


def format_info(record: PackageRecord) -> List[str]:
    """Format a record as aligned "Field : value" lines.

    Empty values are shown as "None"; multi-line values are indented
    under the first one.
    """
    lines = []
    indent = ' ' * (_LABEL_WIDTH + 3)
    for label, getter in _INFO_FIELDS:
        value = getter(record) or 'None'
        if label == "Name" and value != 'None':
            value = colors.package(value)
        first, *rest = value.split('\n')
        lines.append(f"{colors.label(label.ljust(_LABEL_WIDTH))} : {first}")
        lines.extend(indent + line for line in rest)
    return lines


def format_record(record: PackageRecord, mode: Optional[DisplayMode] = None) -> str:
    """Format a record according to display mode.

    Args:
        record: Record to display
        mode: Override global display mode

    Returns:
        Text ready to print (raw mode keeps the desc trailing blank line)
    """
    effective_mode = mode if mode is not None else _display_mode

    if effective_mode == DisplayMode.JSON:
        return json.dumps(record.to_dict(), ensure_ascii=False, indent=2)

    if effective_mode == DisplayMode.RAW:
        return encode_record(record).decode('utf-8')

    return '\n'.join(format_info(record))


def print_record(record: PackageRecord, mode: Optional[DisplayMode] = None) -> None:
    """Print a record according to display mode."""
    text = format_record(record, mode)
    if (mode or _display_mode) == DisplayMode.RAW:
        print(text, end='')
    else:
        print(text)
