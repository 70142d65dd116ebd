"""Pytest configuration and shared fixtures for akharvest tests."""

import io
import json
import os
import threading
import time
import zipfile
from types import SimpleNamespace

import pytest

from akharvest.core.client import DownloadError, ResourceClient
from akharvest.core.config import Config
from akharvest.core.paths import DataPaths


class FakeObject:
    """Stands in for a BundleObject: kind, path_id, name and read()."""

    def __init__(self, kind, path_id, name="", **fields):
        self.kind = kind
        self.path_id = path_id
        self._data = SimpleNamespace(m_Name=name, **fields)

    @property
    def name(self):
        return self._data.m_Name

    def read(self):
        return self._data


class FakeClient(ResourceClient):
    """ResourceClient serving canned documents and blobs from memory."""

    def __init__(self, config, version="24-01-01-00-00-00-000000", manifest=None, blobs=None):
        super().__init__(config)
        self.version = version
        self.manifest = manifest or {"versionId": version, "abInfos": []}
        self.blobs = blobs or {}
        self.calls = []
        self._calls_lock = threading.Lock()

    def _record(self, url):
        with self._calls_lock:
            self.calls.append(url)

    def fetch_text(self, url):
        self._record(url)
        if url.endswith("/version"):
            return json.dumps({"resVersion": self.version})
        if url.endswith("hot_update_list.json"):
            return json.dumps(self.manifest)
        raise DownloadError(url, RuntimeError("404"))

    def fetch_bytes(self, url):
        self._record(url)
        name = url.rsplit("/", 1)[-1]
        if name not in self.blobs:
            raise DownloadError(url, RuntimeError("404"))
        return self.blobs[name]


def make_zip(entries):
    """Build zip bytes from a {path: bytes} mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for path, data in entries.items():
            archive.writestr(path, data)
    return buffer.getvalue()


def age(path, seconds=120):
    """Move a file's modification time into the past."""
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))
    return stamp


@pytest.fixture
def data_root(tmp_path):
    """Temporary data root directory."""
    return str(tmp_path / "Data")


@pytest.fixture
def config(tmp_path, data_root):
    """Config pointing at the temporary data root, with 3 workers."""
    cfg = Config(str(tmp_path / "config.json"))
    cfg.data_root = data_root
    cfg.workers = 3
    return cfg


@pytest.fixture
def paths(data_root):
    """DataPaths for the temporary data root."""
    return DataPaths(data_root)
