# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Building blocks of the sync stages.
#
#   - Config: Application configuration management
#   - DataPaths: Layout of the data root
#   - ResourceClient: HTTP access to the resource origin
#   - HotUpdateList / BundleDescriptor: Manifest data classes
#   - WorkerPool: Shared-queue thread pool used by the stages
#   - DownloadManager: Raw blob download stage
#   - ArchiveMaterializer: Zip unpack stage
#
# Usage:
#   from akharvest.core import Config, DataPaths, DownloadManager
# ==============================================================================

from .config import Config, get_config
from .paths import DataPaths
from .manifest import BundleDescriptor, HotUpdateList, ManifestError
from .client import DownloadError, ResourceClient
from .workers import WorkerPool, WorkItem
from .downloader import DownloadManager, escape_bundle_name
from .materializer import ArchiveMaterializer

__all__ = [
    # Configuration
    'Config',
    'get_config',

    # Paths
    'DataPaths',

    # Manifests
    'BundleDescriptor',
    'HotUpdateList',
    'ManifestError',

    # Network
    'DownloadError',
    'ResourceClient',

    # Stages
    'WorkerPool',
    'WorkItem',
    'DownloadManager',
    'escape_bundle_name',
    'ArchiveMaterializer',
]
