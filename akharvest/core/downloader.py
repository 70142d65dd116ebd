# ==============================================================================
# DOWNLOAD MANAGER MODULE
# ==============================================================================
# Fetches the raw blobs of a hot update list that are not on disk yet.
#
# Blobs are content-addressed by their md5 digest:
#   - a blob that already exists is never downloaded or checked again
#   - descriptors sharing a digest are fetched once
#
# Usage:
#   manager = DownloadManager(client, paths, workers=8)
#   manager.download(server, version, update_list.ab_infos)
# ==============================================================================

import os
import re
from typing import Dict, List
from urllib.parse import quote_plus

from .client import ResourceClient
from .manifest import BundleDescriptor
from .paths import DataPaths
from .workers import WorkerPool, WorkItem


_ESCAPE = re.compile(r"%[0-9A-F]{2}")


def escape_bundle_name(name: str) -> str:
    """
    Turn a logical bundle name into the file name served by the origin.

    The origin flattens directories, and serves .ab and .mp4 bundles
    under a .dat extension. The result is form-encoded the way the game
    client does it: spaces become "+", only letters, digits and -_.!*()
    are kept, and escapes use lowercase hex ("~" included).

    Example:
        >>> escape_bundle_name("gamedata/excel/item_table.ab")
        'gamedata_excel_item_table.dat'
    """
    flat = (name.replace("#", "__")
                .replace("/", "_")
                .replace(".ab", ".dat")
                .replace(".mp4", ".dat"))
    quoted = quote_plus(flat, safe="!*()").replace("~", "%7e")
    return _ESCAPE.sub(lambda m: m.group(0).lower(), quoted)


def pending_downloads(infos: List[BundleDescriptor], paths: DataPaths) -> List[BundleDescriptor]:
    """
    Select the descriptors whose blob is missing, one per digest.

    Args:
        infos: Descriptors from the hot update list
        paths: Data root layout

    Returns:
        Descriptors to download, in manifest order
    """
    pending: Dict[str, BundleDescriptor] = {}
    for info in infos:
        if info.md5 in pending:
            continue
        if os.path.isfile(paths.raw_file_path(info.md5)):
            continue
        pending[info.md5] = info
    return list(pending.values())


class DownloadManager:
    """
    Worker-pool download stage.

    Attributes:
        client (ResourceClient): Origin client
        paths (DataPaths):       Data root layout
        workers (int):           Number of worker threads
    """

    def __init__(self, client: ResourceClient, paths: DataPaths, workers: int = 8):
        self.client = client
        self.paths = paths
        self.workers = max(1, workers)

    def download(self, server: str, version: str, infos: List[BundleDescriptor]) -> int:
        """
        Download every missing blob.

        Returns after all workers have finished. A failed fetch is not
        retried; the first failure is re-raised once the queue is drained.

        Args:
            server: Server identifier
            version: Resource version
            infos: Descriptors from the hot update list

        Returns:
            Number of blobs fetched
        """
        pending = pending_downloads(infos, self.paths)
        if not pending:
            print(f"[INFO] All {len(infos)} bundles are up to date")
            return 0

        print(f"[INFO] Downloading {len(pending)} of {len(infos)} bundles with {self.workers} workers")

        def fetch(task: WorkItem):
            info: BundleDescriptor = task.item
            print(f"[Worker {task.worker_id}] Download {task.count} / {task.total}: {info.name}")
            url = self.client.asset_url(server, version, escape_bundle_name(info.name))
            self.save_blob(info.md5, self.client.fetch_bytes(url))

        return WorkerPool(self.workers, name="download").run(pending, fetch)

    def save_blob(self, md5: str, data: bytes) -> str:
        """
        Write a blob to its content-addressed path.

        The data goes to a .part file first so that an interrupted write
        never leaves a blob that looks complete.

        Returns:
            Path of the blob
        """
        path = self.paths.raw_file_path(md5)
        partial = path + ".part"
        with open(partial, 'wb') as f:
            f.write(data)
        os.replace(partial, path)
        return path
