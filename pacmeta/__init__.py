"""
pacmeta - pacman package metadata toolkit

Reads, writes and looks up the desc records pacman keeps for packages:
- Byte-exact desc codec
- Lookup in sync databases (gzip/zstd tar archives) and the local database
- Per-locator record cache
"""

__version__ = "0.1.0"
