# ==============================================================================
# AK HARVESTER - PATH UTILITIES
# ==============================================================================
# Centralized layout of everything stored under the data root.
#
# Layout:
#   {root}/raw/{md5[0:2]}/{md5[2:4]}/{md5}      content-addressed raw blobs
#   {root}/{server}/{version}/hot_update_list.json   cached manifests
#   {root}/{server}/bundles/...                  unpacked bundle tree
#   {root}/{server}/assets/...                   extracted asset files
#
# Usage:
#   from akharvest.core.paths import DataPaths
#   paths = DataPaths("Data")
#   blob = paths.raw_file_path("0123456789abcdef...")
# ==============================================================================

import os


class DataPaths:
    """
    Path management for the data root.

    Every stage resolves its inputs and outputs through this class so that
    the on-disk layout is defined in one place. Methods that return a file
    path create the parent directory on the way.

    Attributes:
        root (str): Absolute path of the data root
    """

    RAW_DIR = "raw"
    BUNDLES_DIR = "bundles"
    ASSETS_DIR = "assets"
    HOT_UPDATE_LIST = "hot_update_list.json"

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def raw_file_path(self, md5: str) -> str:
        """
        Get the content-addressed path of a raw blob.

        The path depends on the digest only, so two manifest entries with the
        same digest share one blob.

        Args:
            md5: Hex digest from the manifest

        Returns:
            Absolute path of the blob (parent directory created)
        """
        directory = os.path.join(self.root, self.RAW_DIR, md5[0:2], md5[2:4])
        os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, md5)

    def server_file_path(self, server: str, version: str, name: str) -> str:
        """Get the path of a per-version file such as the manifest."""
        directory = os.path.join(self.root, server, version)
        os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, name)

    def hot_update_list_path(self, server: str, version: str) -> str:
        return self.server_file_path(server, version, self.HOT_UPDATE_LIST)

    def bundles_root(self, server: str) -> str:
        """Get the root of the unpacked bundle tree for a server."""
        return os.path.join(self.root, server, self.BUNDLES_DIR)

    def assets_root(self, server: str) -> str:
        """Get the root of the extracted asset tree for a server."""
        return os.path.join(self.root, server, self.ASSETS_DIR)
