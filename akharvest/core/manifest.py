# ==============================================================================
# MANIFEST MODULE
# ==============================================================================
# Data classes for the documents served by the resource origin:
#   - VersionInfo:    {"resVersion": "..."}
#   - HotUpdateList:  {"versionId": "...", "abInfos": [...]}
#   - BundleDescriptor: one entry of abInfos
#
# Keys are matched case-insensitively, the origin has shipped both
# camelCase and PascalCase documents.
# ==============================================================================

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


class ManifestError(ValueError):
    """Raised when a version or manifest document cannot be used."""
    pass


def _lower_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in raw.items()}


# ==============================================================================
# BUNDLE DESCRIPTOR DATA CLASS
# ==============================================================================
@dataclass(frozen=True)
class BundleDescriptor:
    """
    One bundle listed in a hot update list.

    Attributes:
        name (str):       Logical bundle name (e.g., "gamedata/excel/item_table.ab")
        hash (str):       Upstream content hash
        md5 (str):        Digest that addresses the raw blob on disk
        total_size (int): Unpacked size
        ab_size (int):    Packed (download) size
    """
    name: str
    hash: str
    md5: str
    total_size: int = 0
    ab_size: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BundleDescriptor":
        values = _lower_keys(raw)
        try:
            name = values['name']
            md5 = values['md5']
        except KeyError as e:
            raise ManifestError(f"Bundle entry is missing {e.args[0]!r}: {raw!r}") from None
        if not name or not md5 or len(md5) < 4:
            raise ManifestError(f"Bundle entry has an unusable name or digest: {raw!r}")
        return cls(
            name=name,
            hash=values.get('hash') or '',
            md5=md5,
            total_size=int(values.get('totalsize') or 0),
            ab_size=int(values.get('absize') or 0),
        )


# ==============================================================================
# HOT UPDATE LIST DATA CLASS
# ==============================================================================
@dataclass(frozen=True)
class HotUpdateList:
    """A fetched manifest: the versioned list of bundles."""
    version_id: str
    ab_infos: List[BundleDescriptor] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HotUpdateList":
        if not isinstance(raw, dict):
            raise ManifestError("Hot update list must be a JSON object")
        values = _lower_keys(raw)
        infos = values.get('abinfos') or []
        return cls(
            version_id=str(values.get('versionid') or ''),
            ab_infos=[BundleDescriptor.from_dict(info) for info in infos],
        )

    @classmethod
    def from_json(cls, text: str) -> "HotUpdateList":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Hot update list is not valid JSON: {e}") from e
        return cls.from_dict(raw)


def parse_version_info(text: str) -> str:
    """
    Extract resVersion from a version document.

    Args:
        text: JSON body of the version endpoint

    Returns:
        The resource version string

    Raises:
        ManifestError: If the document is malformed or has no resVersion
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Version info is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ManifestError("Version info must be a JSON object")
    version = _lower_keys(raw).get('resversion')
    if not version:
        raise ManifestError("Version info has no resVersion")
    return str(version)
