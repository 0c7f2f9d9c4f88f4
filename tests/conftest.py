"""Shared fixtures: fixture package indexes and a canned HTTP session."""

import sqlite3

import pytest
import requests


PACKAGES_SCHEMA = """
CREATE TABLE packages (
    pkgKey INTEGER PRIMARY KEY,
    pkgId TEXT,
    name TEXT,
    arch TEXT,
    version TEXT,
    epoch TEXT,
    release TEXT,
    location_href TEXT
)
"""


def make_response(url, body=b"", status=200):
    """Build a fully-read requests.Response."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = "utf-8"
    response._content = body
    response._content_consumed = True
    return response


class FakeSession:
    """
    Stand-in for requests.Session serving canned responses.

    Routes map a URL to response bytes, an HTTP status code,
    or an exception to raise. Unknown URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False

    def _respond(self, method, url):
        self.calls.append((method, url))
        route = self.routes.get(url, 404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return make_response(url, b"", route)
        return make_response(url, route)

    def get(self, url, **kwargs):
        return self._respond("GET", url)

    def head(self, url, **kwargs):
        return self._respond("HEAD", url)

    def close(self):
        self.closed = True

    def count(self, method, url):
        return self.calls.count((method, url))


@pytest.fixture
def primary_db(tmp_path):
    """Return a factory building primary.sqlite bytes from package rows."""
    counter = {"n": 0}

    def build(rows):
        counter["n"] += 1
        path = tmp_path / f"primary-{counter['n']}.sqlite"
        conn = sqlite3.connect(path)
        try:
            conn.execute(PACKAGES_SCHEMA)
            conn.executemany(
                "INSERT INTO packages (name, arch, version, epoch, release, location_href) "
                "VALUES (?, ?, ?, '0', ?, ?)",
                rows,
            )
            conn.commit()
        finally:
            conn.close()
        return path.read_bytes()

    return build


@pytest.fixture
def kernel_rows():
    """Rows of an index holding kernel 5.10.0-1.el2 and related noise."""
    return [
        ("kernel", "x86_64", "5.10.0", "1.el2", "Packages/kernel-5.10.0-1.el2.x86_64.rpm"),
        ("kernel-devel", "x86_64", "5.10.0", "1.el2", "Packages/kernel-devel-5.10.0-1.el2.x86_64.rpm"),
        ("kernel-headers", "x86_64", "5.10.0", "1.el2", "Packages/kernel-headers-5.10.0-1.el2.x86_64.rpm"),
        ("kernel-tools", "x86_64", "5.10.0", "1.el2", "Packages/kernel-tools-5.10.0-1.el2.x86_64.rpm"),
        ("kernel-doc", "noarch", "5.10.0", "1.el2", "Packages/kernel-doc-5.10.0-1.el2.noarch.rpm"),
        ("kernel-livepatch-5.10.0-1", "x86_64", "1.0", "1.el2", "Packages/kernel-livepatch-5.10.0-1-1.0-1.el2.x86_64.rpm"),
        ("kernel", "x86_64", "5.10.0", "2.el2", "Packages/kernel-5.10.0-2.el2.x86_64.rpm"),
        ("kernel", "x86_64", "5.10.1", "1.el2", "Packages/kernel-5.10.1-1.el2.x86_64.rpm"),
        ("perf", "x86_64", "5.10.0", "1.el2", "Packages/perf-5.10.0-1.el2.x86_64.rpm"),
    ]


@pytest.fixture
def session_factory():
    """Return the FakeSession class for building canned sessions."""
    return FakeSession
