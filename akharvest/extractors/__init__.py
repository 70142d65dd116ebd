# ==============================================================================
# EXTRACTORS MODULE INIT
# ==============================================================================
# Asset extraction from unpacked bundles.
#
#   - AssetExtractor: Worker-pool stage over the bundle tree
#   - HandlerRegistry: Object kind -> handler function
#   - build_container_index: path id -> container path of one bundle
#   - try_decrypt: Game data decryption
#
# Adding a new object kind:
#   1. Write handle_<kind>(obj, ctx, options) in handlers.py
#   2. Add it to HANDLERS in the same module
# ==============================================================================

from .context import ExtractOptions, HandlingContext
from .container import build_container_index
from .protocol import try_decrypt
from .registry import HandlerRegistry, get_registry
from .coordinator import AssetExtractor, ExtractionSummary

__all__ = [
    'AssetExtractor',
    'ExtractionSummary',
    'ExtractOptions',
    'HandlingContext',
    'HandlerRegistry',
    'get_registry',
    'build_container_index',
    'try_decrypt',
]
