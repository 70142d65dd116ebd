# ==============================================================================
# ARCHIVE MATERIALIZER MODULE
# ==============================================================================
# Unpacks downloaded raw blobs (zip files) into the bundle tree:
#
#   {data_root}/{server}/bundles/{entry path}
#
# An entry is written only when the output is missing or older than the
# raw blob. Written files take the blob's modification time, so running the
# stage again on the same blobs writes nothing.
# ==============================================================================

import os
import shutil
import zipfile
from typing import List

from .manifest import BundleDescriptor
from .paths import DataPaths


class ArchiveMaterializer:
    """
    Sequential zip extraction stage.

    Attributes:
        paths (DataPaths): Data root layout
    """

    def __init__(self, paths: DataPaths):
        self.paths = paths

    def extract(self, server: str, infos: List[BundleDescriptor]) -> int:
        """
        Extract every downloaded blob of a hot update list.

        Descriptors whose blob is missing are skipped.

        Args:
            server: Server identifier
            infos: Descriptors from the hot update list

        Returns:
            Number of entries written
        """
        root = self.paths.bundles_root(server)
        os.makedirs(root, exist_ok=True)

        total = len(infos)
        written = 0
        for count, info in enumerate(infos, start=1):
            raw_file = self.paths.raw_file_path(info.md5)
            if not os.path.isfile(raw_file):
                continue
            written += self.extract_blob(raw_file, root, count, total)

        return written

    def extract_blob(self, raw_file: str, root: str, count: int = 1, total: int = 1) -> int:
        """
        Extract one blob into the bundle tree.

        Args:
            raw_file: Path of the raw blob
            root: Bundle tree root
            count: Position of the blob, for progress output
            total: Number of blobs, for progress output

        Returns:
            Number of entries written
        """
        raw_time = os.path.getmtime(raw_file)
        root = os.path.abspath(root)
        written = 0

        with zipfile.ZipFile(raw_file, 'r') as archive:
            for entry in archive.infolist():
                if entry.is_dir():
                    continue

                full_name = os.path.abspath(os.path.join(root, entry.filename))
                if os.path.commonpath([root, full_name]) != root:
                    print(f"[WARN] Skipping entry outside the bundle tree: {entry.filename}")
                    continue

                overwrite = (not os.path.isfile(full_name) or
                             os.path.getmtime(full_name) < raw_time)
                if not overwrite:
                    continue

                print(f"[INFO] Extract {count} / {total}: {entry.filename}")
                os.makedirs(os.path.dirname(full_name), exist_ok=True)
                with archive.open(entry) as src, open(full_name, 'wb') as dst:
                    shutil.copyfileobj(src, dst)
                os.utime(full_name, (raw_time, raw_time))
                written += 1

        return written
