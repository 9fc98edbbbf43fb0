"""Shared fixtures for pacmeta tests"""

import io
import tarfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from pacmeta.core.package import AMD64, License, PackageRecord, Packager, encode_record

FIXTURES = Path(__file__).parent / 'fixtures'

XZ_SHA256 = bytes.fromhex('aeecc6315b7b6d6af8d43a375b1e2795e313563bfde8a5df5866952b087eb6ad')

XZ_PGPSIG = (
    "iQIzBAABCgAdFiEE4kC1fixGMLp2ji8m/BtUfI2BcsgFAmfuu34ACgkQ/BtUfI2BcsgpcA/+"
    "IrA2GDgQICXAGBapp3YPLgo8Gw7b9kmsi9j/iY27tV7IuioYCEpHnEt7fSMggSh8svg9wPKH"
    "GaElJdGjcT3lu/p/0xQXryRuFdf9jX6NdEnODYLUIOITIVZNzcQOUtddr4y5P88gd7aXnY2O"
    "BbmhSvbMVCkwzkpwSdYkWj6gp7Gi/4kBiEKgToFYkrC2xd0lBxEDbDurYAGwW90fdVCOW16M"
    "lu4ysI49y6sx8YLpT4QmA2Yy3DrIE824dONdEoYExK6gzYVyhLu7F1gpv6Nwy1WHCAj5jo3+"
    "cmMlpWTfxzyuDMjb3Bg9N5ZZjU8L5SgNPFXo3g9uwEZvbB/tufHigc5Ss4X4ctwfIVdcQgmb"
    "cvOwzMNlwfte6upXSfSqryijy2f16zmhyxJdV55E24NLxmsglUEMRBBriv/gOl7pV61lpOa6"
    "pcjC1xnwAob6bkJFSP2KfgDtiQAGOhV+wwRy0bUmsDC+x9t6pOazmgYvCQKrdAefRi/QWJTV"
    "wh1FFQLlz4TP/K7jsT7fMowjr/5Gjeg/s0TKY8vtsapwdlTbf3zJFwF9m1/MQY4LungPBmXn"
    "FLyI+TH3kzvONMg/EaAe4z9R2Brba8H3TPWfXbST+KjD24ZBYpd2RRoB6f1hjxEUsqG5asyn"
    "O6iOEeQf72nzWcMFhkoXUZa/+1nmbj9s71k="
)


def make_xz_record() -> PackageRecord:
    """The record stored in fixtures/xz.desc."""
    return PackageRecord(
        file_name="xz-5.8.1-1-x86_64.pkg.tar.zst",
        name="xz",
        base="xz",
        version="5.8.1-1",
        description="Library and command line tools for XZ and LZMA compressed files",
        csize=831572,
        isize=3060622,
        sha256sum=XZ_SHA256,
        pgp_signature=XZ_PGPSIG,
        url="https://tukaani.org/xz/",
        licenses=[License("GPL"), License("LGPL"), License("custom")],
        arch=AMD64,
        build_date=datetime.fromtimestamp(1743698592, tz=timezone.utc),
        packager=Packager(name="Levente Polyak", email="anthraxx@archlinux.org"),
        provides=["liblzma.so=5-64"],
        depends=["sh"],
        make_depends=["git", "po4a", "doxygen"],
    )


def simple_record(name: str, version: str = "1.0-1") -> PackageRecord:
    return PackageRecord(name=name, version=version, arch=AMD64)


def write_sync_db(path: Path, records, compression: str = 'gz') -> Path:
    """Write records into a sync database archive.

    Each record becomes <name>-<version>/desc, preceded by its directory
    entry, in the order given.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode='w') as tar:
        for record in records:
            entry = f"{record.name}-{record.version}"
            dir_info = tarfile.TarInfo(entry)
            dir_info.type = tarfile.DIRTYPE
            dir_info.mode = 0o755
            tar.addfile(dir_info)

            data = encode_record(record)
            info = tarfile.TarInfo(f"{entry}/desc")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))

    raw = buf.getvalue()
    if compression == 'gz':
        import gzip
        raw = gzip.compress(raw)
    elif compression == 'zst':
        import zstandard
        raw = zstandard.ZstdCompressor().compress(raw)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(raw)
    return path


def write_local_db(root: Path, records) -> Path:
    """Write records into a local database directory."""
    root.mkdir(parents=True, exist_ok=True)
    (root / 'ALPM_DB_VERSION').write_text('9\n')
    for record in records:
        entry = root / f"{record.name}-{record.version}"
        entry.mkdir()
        (entry / 'desc').write_bytes(encode_record(record))
    return root


@pytest.fixture
def xz_desc() -> bytes:
    return (FIXTURES / 'xz.desc').read_bytes()


@pytest.fixture
def xz_record() -> PackageRecord:
    return make_xz_record()
