# ==============================================================================
# AK HARVESTER - RESOURCE PIPELINE
# ==============================================================================
# Runs the stages for one server, strictly one after the other:
#
#   version -> hot update list -> download -> unpack -> extract assets
#
# Every stage is idempotent: blobs are content-addressed, bundle files and
# asset directories are timestamp-gated. A run that failed halfway is
# resumed by running it again.
#
# Usage:
#   pipeline = ResourcePipeline(config)
#   pipeline.sync("cn")
# ==============================================================================

import os
from dataclasses import dataclass
from typing import Callable, List, Optional

from .core.client import ResourceClient
from .core.config import Config
from .core.downloader import DownloadManager
from .core.manifest import HotUpdateList
from .core.materializer import ArchiveMaterializer
from .core.paths import DataPaths
from .extractors.bundle import load_bundle
from .extractors.coordinator import AssetExtractor, ExtractionSummary
from .extractors.registry import HandlerRegistry, get_registry


@dataclass
class SyncResult:
    """
    Outcome of one server sync.

    Attributes:
        server (str):       Server identifier
        version (str):      Resource version that was synced
        downloaded (int):   Blobs fetched
        unpacked (int):     Bundle files written
        assets (ExtractionSummary): Per-bundle extraction outcome
    """
    server: str
    version: str
    downloaded: int
    unpacked: int
    assets: ExtractionSummary


class ResourcePipeline:
    """
    Orchestrates download, unpacking and asset extraction.

    Attributes:
        config (Config):            Settings
        paths (DataPaths):          Data root layout
        client (ResourceClient):    Origin client
        registry (HandlerRegistry): Asset handlers
    """

    def __init__(self, config: Config, client: Optional[ResourceClient] = None,
                 loader: Callable[[str], List] = load_bundle,
                 registry: Optional[HandlerRegistry] = None):
        self.config = config
        self.paths = DataPaths(config.data_root)
        self.client = client or ResourceClient(config)
        self.registry = registry or get_registry()
        self.loader = loader

        print(f"[INFO] Data root: {self.paths.root}")

    # ==========================================================================
    # VERSIONS AND MANIFESTS
    # ==========================================================================

    def get_latest_version(self, server: str) -> str:
        return self.client.get_latest_version(server)

    def resolve_version(self, server: str, version: Optional[str] = None) -> str:
        """Explicit version, then the configured override, then the latest."""
        return version or self.config.version or self.get_latest_version(server)

    def get_hot_update_list(self, server: str, version: str) -> HotUpdateList:
        """
        Load the hot update list of a version, fetching it on first use.

        A cached list is never fetched again.
        """
        path = self.paths.hot_update_list_path(server, version)
        if os.path.isfile(path):
            with open(path, 'r', encoding='utf-8') as f:
                return HotUpdateList.from_json(f.read())

        text = self.client.fetch_text(
            self.client.asset_url(server, version, DataPaths.HOT_UPDATE_LIST)
        )
        update_list = HotUpdateList.from_json(text)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        print(f"[INFO] Saved hot update list {update_list.version_id} "
              f"({len(update_list.ab_infos)} bundles)")
        return update_list

    # ==========================================================================
    # STAGES
    # ==========================================================================

    def download_files(self, server: str, version: str) -> int:
        update_list = self.get_hot_update_list(server, version)
        manager = DownloadManager(self.client, self.paths, self.config.workers)
        return manager.download(server, version, update_list.ab_infos)

    def extract_files(self, server: str, version: str) -> int:
        update_list = self.get_hot_update_list(server, version)
        return ArchiveMaterializer(self.paths).extract(server, update_list.ab_infos)

    def extract_assets(self, server: str) -> ExtractionSummary:
        key, iv_mask = self.config.decrypt_pair(server)
        extractor = AssetExtractor(
            self.registry,
            workers=self.config.workers,
            loader=self.loader,
            convert_audio=self.config.convert_audio,
            verbose=self.config.verbose_export,
        )
        summary = extractor.extract_all(
            self.paths.bundles_root(server),
            self.paths.assets_root(server),
            include=self.config.include_patterns(server),
            exclude=self.config.exclude_patterns(server),
            decrypt_key=key,
            decrypt_iv_mask=iv_mask,
        )
        print(f"[INFO] Assets: {len(summary.extracted)} extracted, "
              f"{len(summary.skipped)} up to date, {len(summary.excluded)} excluded")
        return summary

    def sync(self, server: str, version: Optional[str] = None) -> SyncResult:
        """
        Run every stage for one server.

        Each stage finishes (all workers joined) before the next begins.
        """
        print(f"[INFO] Process server: {server}")
        version = self.resolve_version(server, version)
        print(f"[INFO] Version: {version}")

        downloaded = self.download_files(server, version)
        unpacked = self.extract_files(server, version)
        assets = self.extract_assets(server)
        return SyncResult(server, version, downloaded, unpacked, assets)

    def sync_all(self) -> List[SyncResult]:
        """Sync every configured server in order."""
        return [self.sync(server) for server in self.config.servers]
