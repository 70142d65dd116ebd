# ==============================================================================
# BUNDLE LOADER MODULE
# ==============================================================================
# Thin adapter over UnityPy.
#
# The rest of the extractors package only sees BundleObject:
#   - kind:    Unity class name ("Texture2D", "TextAsset", "AssetBundle", ...)
#   - path_id: Identifier of the object inside its bundle
#   - name:    The object's m_Name
#   - read():  The parsed object (cached)
#
# Usage:
#   for obj in load_bundle("Data/cn/bundles/gamedata/excel.ab"):
#       print(obj.kind, obj.path_id, obj.name)
# ==============================================================================

from typing import Any, Iterable, List, Tuple

import UnityPy


class BundleObject:
    """
    One typed object of a loaded bundle.

    Parsing is deferred to the first read() since most objects are never
    looked at beyond their kind.
    """

    def __init__(self, reader: Any):
        self.reader = reader
        self.kind: str = reader.type.name
        self.path_id: int = reader.path_id
        self._data = None

    def read(self) -> Any:
        if self._data is None:
            self._data = self.reader.read()
        return self._data

    @property
    def name(self) -> str:
        data = self.read()
        return getattr(data, 'm_Name', None) or getattr(data, 'name', None) or ''

    def __repr__(self):
        return f"<BundleObject(kind={self.kind}, path_id={self.path_id})>"


def load_bundle(path: str) -> List[BundleObject]:
    """
    Load a bundle file and list the objects of every file inside it.

    Args:
        path: Path to the .ab file

    Returns:
        All objects, in the order UnityPy reports them
    """
    env = UnityPy.load(path)
    return [BundleObject(reader) for reader in env.objects]


# ==============================================================================
# FIELD HELPERS
# ==============================================================================
# UnityPy has renamed a few attributes across releases; these helpers accept
# either spelling.

def pptr_path_id(pptr: Any) -> int:
    """Path id a PPtr points at."""
    value = getattr(pptr, 'm_PathID', None)
    if value is None:
        value = getattr(pptr, 'path_id')
    return value


def container_items(table: Any) -> Iterable[Tuple[str, Any]]:
    """Iterate (container path, value) pairs of an m_Container table."""
    if table is None:
        return []
    if isinstance(table, dict):
        return table.items()
    return table
