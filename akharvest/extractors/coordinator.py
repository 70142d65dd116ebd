# ==============================================================================
# ASSET EXTRACTION COORDINATOR MODULE
# ==============================================================================
# Extracts the objects of every bundle in the bundle tree into
#
#   {data_root}/{server}/assets/{bundle path}/
#
# Per bundle:
#   1. load the bundle's objects
#   2. build its container index (never shared between bundles)
#   3. images/textures: name from the container path or the object, with
#      "{name} [{path_id}]" for names used more than once
#   4. text assets: name and extension from the container path
#   5. everything else: dispatched once through the handler registry
#
# A bundle's output directory is rebuilt from scratch whenever the bundle
# file is newer than the directory, and left alone otherwise.
# ==============================================================================

import os
import posixpath
import shutil
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.workers import WorkerPool, WorkItem
from .bundle import load_bundle
from .container import ContainerIndex, build_container_index
from .context import ExtractOptions, HandlingContext
from .registry import HandlerRegistry


BUNDLE_EXTENSION = ".ab"
VISUAL_KINDS = ("Texture2D", "Sprite")
TEXT_KIND = "TextAsset"
IMAGE_EXTENSION = ".png"


# ==============================================================================
# BUNDLE SELECTION
# ==============================================================================

def discover_bundles(root: str) -> List[str]:
    """
    Depth-first listing of the bundle files under root.

    Directories and files are visited in sorted order, so the result is the
    same on every run and platform.

    Returns:
        Absolute paths of every .ab file
    """
    pending = []
    if not os.path.isdir(root):
        return pending

    stack = [os.path.abspath(root)]
    while stack:
        directory = stack.pop()
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)

        for entry in reversed(entries):
            if entry.is_dir():
                stack.append(entry.path)

        for entry in entries:
            if entry.is_file() and os.path.splitext(entry.name)[1] == BUNDLE_EXTENSION:
                pending.append(entry.path)

    return pending


def matches_pattern(pattern: str, path: str) -> bool:
    """
    Match a bundle path against an include/exclude pattern.

    "^prefix" anchors to the start of the path, anything else is a
    substring match.
    """
    if len(pattern) > 1 and pattern[0] == '^':
        return path.startswith(pattern[1:])
    return pattern in path


def is_excluded(path: str, include: Sequence[str], exclude: Sequence[str]) -> bool:
    """
    Decide whether a bundle is filtered out.

    Excluded when an include list exists and nothing in it matches, or when
    any exclude pattern matches. Exclusion wins over inclusion.
    """
    if include and not any(matches_pattern(p, path) for p in include):
        return True
    return any(matches_pattern(p, path) for p in exclude)


def _creation_time(path: str) -> float:
    stat = os.stat(path)
    return getattr(stat, 'st_birthtime', stat.st_ctime)


def is_up_to_date(out_dir: str, bundle_file: str) -> bool:
    """True if out_dir exists and was created after the bundle was written."""
    if not os.path.isdir(out_dir):
        return False
    return _creation_time(out_dir) > os.path.getmtime(bundle_file)


# ==============================================================================
# NAME RESOLUTION
# ==============================================================================

def _split_container_name(container_path: str) -> Tuple[str, str]:
    return posixpath.splitext(posixpath.basename(container_path))


def assign_visual_names(objects: Iterable, index: ContainerIndex) -> Dict[int, str]:
    """
    Pick a unique output name for every image/texture object.

    The name is the container file's stem when the container path is a
    .png, otherwise the object's own name. Names shared by several objects
    get the path id appended to every member.

    Returns:
        path id -> output name
    """
    groups: Dict[str, List[int]] = {}
    for obj in objects:
        container_path = index.get(obj.path_id)
        if container_path is not None:
            stem, extension = _split_container_name(container_path)
            name = stem if extension.lower() == IMAGE_EXTENSION else obj.name
        else:
            name = obj.name
        groups.setdefault(name, []).append(obj.path_id)

    names: Dict[int, str] = {}
    for name, path_ids in groups.items():
        for path_id in path_ids:
            names[path_id] = name if len(path_ids) == 1 else f"{name} [{path_id}]"
    return names


def text_options(obj, index: ContainerIndex) -> ExtractOptions:
    """Name/extension overrides of a text asset, from its container path."""
    container_path = index.get(obj.path_id)
    if container_path is None:
        return ExtractOptions()
    stem, extension = _split_container_name(container_path)
    return ExtractOptions(name=stem, extension=extension)


# ==============================================================================
# RESULTS
# ==============================================================================

@dataclass
class ExtractionSummary:
    """
    What happened to each bundle of a run.

    Attributes:
        extracted (list): Bundle paths that were extracted
        excluded (list):  Bundle paths filtered out by include/exclude
        skipped (list):   Bundle paths whose output was up to date
    """
    extracted: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, action: str, ab_path: str):
        bucket = {"Extract": self.extracted, "Exclude": self.excluded, "Skip": self.skipped}[action]
        with self._lock:
            bucket.append(ab_path)

    @property
    def total(self) -> int:
        return len(self.extracted) + len(self.excluded) + len(self.skipped)


# ==============================================================================
# COORDINATOR
# ==============================================================================

class AssetExtractor:
    """
    Worker-pool asset extraction stage.

    Attributes:
        registry (HandlerRegistry): Handlers by object kind
        workers (int):              Number of worker threads
        loader (callable):          path -> list of BundleObjects
        convert_audio (bool):       Convert audio clips to .wav
        verbose (bool):             Log skipped bundles and written files
    """

    def __init__(self, registry: HandlerRegistry, workers: int = 8,
                 loader: Callable[[str], List] = load_bundle,
                 convert_audio: bool = False, verbose: bool = False):
        self.registry = registry
        self.workers = max(1, workers)
        self.loader = loader
        self.convert_audio = convert_audio
        self.verbose = verbose

    def extract_all(self, input_root: str, output_root: str,
                    include: Sequence[str] = (), exclude: Sequence[str] = (),
                    decrypt_key: Optional[str] = None,
                    decrypt_iv_mask: Optional[str] = None) -> ExtractionSummary:
        """
        Extract every bundle under input_root that is selected and stale.

        Args:
            input_root: Bundle tree root
            output_root: Asset tree root
            include: Include patterns (empty = everything)
            exclude: Exclude patterns
            decrypt_key: AES key secret for gamedata, or None
            decrypt_iv_mask: IV mask secret for gamedata, or None

        Returns:
            ExtractionSummary of the run

        Raises:
            Exception: The first bundle failure, after all workers finished
        """
        input_root = os.path.abspath(input_root)
        os.makedirs(output_root, exist_ok=True)
        pending = discover_bundles(input_root)
        summary = ExtractionSummary()

        def process(task: WorkItem):
            bundle_file = task.item
            ab_path = os.path.relpath(bundle_file, input_root).replace(os.sep, "/")
            out_dir = os.path.join(output_root, *ab_path.split("/"))
            action = "Extract"

            if is_excluded(ab_path, include, exclude):
                action = "Exclude"
            elif os.path.isdir(out_dir):
                if is_up_to_date(out_dir, bundle_file):
                    action = "Skip"
                else:
                    shutil.rmtree(out_dir)

            if action != "Skip" or self.verbose:
                print(f"[Worker {task.worker_id}] {action} {task.count} / {task.total} ({ab_path})")
            summary.record(action, ab_path)
            if action != "Extract":
                return

            os.makedirs(out_dir, exist_ok=True)
            context = HandlingContext(
                directory=out_dir,
                ab_path=ab_path,
                bundle_time=os.path.getmtime(bundle_file),
                decrypt_key=decrypt_key,
                decrypt_iv_mask=decrypt_iv_mask,
                convert_audio=self.convert_audio,
                verbose=self.verbose,
            )
            try:
                self.extract_bundle(bundle_file, context)
            except Exception:
                # never leave a half-written directory that looks up to date
                shutil.rmtree(out_dir, ignore_errors=True)
                raise

        WorkerPool(self.workers, name="extract").run(pending, process)
        return summary

    def extract_bundle(self, bundle_file: str, context: HandlingContext) -> int:
        """
        Extract the objects of one bundle.

        Args:
            bundle_file: Path to the .ab file
            context: Settings of this bundle

        Returns:
            Number of objects a handler ran for
        """
        objects = self.loader(bundle_file)
        index = build_container_index(objects)
        processed = set()
        handled = 0

        visual = [obj for obj in objects if obj.kind in VISUAL_KINDS]
        names = assign_visual_names(visual, index)
        for obj in visual:
            if self.registry.try_extract(obj, context, ExtractOptions(name=names[obj.path_id])):
                handled += 1
            processed.add(obj.path_id)

        for obj in objects:
            if obj.kind != TEXT_KIND:
                continue
            if self.registry.try_extract(obj, context, text_options(obj, index)):
                handled += 1
            processed.add(obj.path_id)

        for obj in objects:
            if obj.path_id in processed:
                continue
            if self.registry.try_extract(obj, context):
                handled += 1
            processed.add(obj.path_id)

        return handled
