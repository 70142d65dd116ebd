# ==============================================================================
# CONTAINER INDEX MODULE
# ==============================================================================
# Recovers the logical path ("container path") of the objects in a bundle.
#
# Two kinds of objects carry container tables:
#   - AssetBundle:     each m_Container entry covers a range of the preload
#                      table; every object in that range gets the entry's path
#   - ResourceManager: m_Container maps container paths straight to objects
#
# ResourceManager entries are applied last and win on conflicts.
#
# Example:
#   index = build_container_index(objects)
#   index[obj.path_id]   # 'assets/torappu/dynamicassets/arts/charavatars/char_002.png'
# ==============================================================================

from typing import Dict, Iterable

from .bundle import container_items, pptr_path_id


ContainerIndex = Dict[int, str]


def _asset_bundle_entries(data) -> ContainerIndex:
    entries: ContainerIndex = {}
    preload_table = list(getattr(data, 'm_PreloadTable', None) or [])
    for container_path, info in container_items(getattr(data, 'm_Container', None)):
        start = info.preloadIndex
        for i in range(start, start + info.preloadSize):
            entries[pptr_path_id(preload_table[i])] = container_path
    return entries


def _resource_manager_entries(data) -> ContainerIndex:
    return {
        pptr_path_id(pptr): container_path
        for container_path, pptr in container_items(getattr(data, 'm_Container', None))
    }


def build_container_index(objects: Iterable) -> ContainerIndex:
    """
    Build the path id -> container path map of one bundle.

    Args:
        objects: The bundle's BundleObjects

    Returns:
        Dictionary keyed by path id
    """
    objects = list(objects)
    index: ContainerIndex = {}

    for obj in objects:
        if obj.kind == "AssetBundle":
            index.update(_asset_bundle_entries(obj.read()))

    for obj in objects:
        if obj.kind == "ResourceManager":
            index.update(_resource_manager_entries(obj.read()))

    return index
