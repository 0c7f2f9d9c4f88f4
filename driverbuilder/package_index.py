"""
Query engine over decompressed ``primary.sqlite`` repository metadata.
"""

import os
import sqlite3
import tempfile
from pathlib import Path
from typing import List, Optional

from driverbuilder.common import logger
from driverbuilder.exceptions import DatabaseError
from driverbuilder.models import KernelRelease, PackageRecord


KERNEL_PACKAGES_QUERY = """
SELECT name, version, release, arch, location_href
FROM packages
WHERE name LIKE 'kernel%'
  AND name NOT LIKE 'kernel-livepatch%'
  AND name NOT LIKE '%doc%'
  AND name NOT LIKE '%tools%'
  AND name NOT LIKE '%headers%'
  AND version = ?
  AND release = ?
"""


class PackageIndex:
    """
    A package index materialized as a temporary SQLite database.

    Use as a context manager: the connection is closed and the
    temporary file removed on exit, whether or not a query failed.
    """

    def __init__(
        self,
        data: bytes,
        prefix: str = "primary",
        temp_dir: Optional[Path] = None,
        url: Optional[str] = None,
    ):
        self.data = data
        self.prefix = prefix
        self.temp_dir = temp_dir
        self.url = url
        self.path: Optional[Path] = None
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "PackageIndex":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self) -> None:
        """Write the index to disk and open it read-only."""
        try:
            fd, name = tempfile.mkstemp(
                prefix=f"{self.prefix}-",
                suffix=".sqlite",
                dir=str(self.temp_dir) if self.temp_dir else None,
            )
            self.path = Path(name)
            with os.fdopen(fd, "wb") as f:
                f.write(self.data)

            logger.debug(f"Connecting to database {self.path}")
            self._conn = sqlite3.connect(f"{self.path.as_uri()}?mode=ro", uri=True)
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise DatabaseError(str(e), self.url) from e

    def close(self) -> None:
        """Close the connection and remove the temporary file."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self.path is not None:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            self.path = None

    def find_kernel_packages(self, kernel: KernelRelease, arch: str) -> List[PackageRecord]:
        """
        Find the kernel packages built for a kernel release.

        Livepatch, doc, tools and headers packages are excluded.

        Args:
            kernel: Requested kernel release
            arch: Target architecture

        Returns:
            Matching package records, in table order

        Raises:
            DatabaseError: If the index is not a valid package database
        """
        if self._conn is None:
            raise DatabaseError("package index is not open", self.url)

        release = kernel.package_release(arch)
        logger.debug(f"Looking for kernel packages version={kernel.fullversion} release={release}")

        try:
            rows = self._conn.execute(
                KERNEL_PACKAGES_QUERY, (kernel.fullversion, release)
            ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(str(e), self.url) from e

        return [
            PackageRecord(
                name=name,
                version=version,
                release=rel,
                arch=row_arch,
                location_href=href,
            )
            for name, version, rel, row_arch, href in rows
        ]
