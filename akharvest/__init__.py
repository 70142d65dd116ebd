# ==============================================================================
# AK HARVESTER - SOURCE PACKAGE
# ==============================================================================
# Incremental resource sync and asset extraction for the official game
# resource servers.
#
# Subpackages:
#   - core: Configuration, paths, origin client, download and unpack stages
#   - extractors: Bundle loading, container indices, asset handlers
#
# Entry points:
#   - main.py: launcher
#   - akharvest/cli.py: Command-line interface
# ==============================================================================

__version__ = "1.0.0"
__description__ = "Incremental game resource sync and asset extraction"

from .pipeline import ResourcePipeline, SyncResult
from .core import Config, get_config
from .extractors import HandlerRegistry, get_registry

__all__ = [
    '__version__',
    '__description__',

    # Pipeline
    'ResourcePipeline',
    'SyncResult',

    # Core
    'Config',
    'get_config',

    # Extractors
    'HandlerRegistry',
    'get_registry',
]
