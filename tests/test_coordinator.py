"""Tests for bundle selection and per-bundle extraction."""

import os
import threading
import time
from types import SimpleNamespace

import pytest

from akharvest.extractors.context import ExtractOptions
from akharvest.extractors.coordinator import (
    AssetExtractor,
    assign_visual_names,
    discover_bundles,
    is_excluded,
    matches_pattern,
    text_options,
)
from akharvest.extractors.handlers import HANDLERS
from akharvest.extractors.registry import HandlerRegistry

from conftest import FakeObject, age


def touch(path, data=b"bundle"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(data)
    return path


class RecordingRegistry(HandlerRegistry):
    """Registry whose handlers only record (kind, path_id, options)."""

    def __init__(self, kinds=("Texture2D", "Sprite", "TextAsset", "AudioClip")):
        super().__init__()
        self.calls = []
        self._lock = threading.Lock()
        for kind in kinds:
            self.register(kind, self._record)

    def _record(self, obj, ctx, options):
        with self._lock:
            self.calls.append((obj.kind, obj.path_id, options))


class DictLoader:
    """Loader returning canned objects by bundle file name."""

    def __init__(self, objects_by_name):
        self.objects_by_name = objects_by_name
        self.loaded = []
        self._lock = threading.Lock()

    def __call__(self, path):
        with self._lock:
            self.loaded.append(os.path.basename(path))
        value = self.objects_by_name.get(os.path.basename(path), [])
        if isinstance(value, Exception):
            raise value
        return value


# ==============================================================================
# SELECTION
# ==============================================================================

class TestDiscovery:

    def test_depth_first_sorted(self, tmp_path):
        root = tmp_path / "bundles"
        for rel in ["b.ab", "a/z.ab", "a/c/d.ab", "a/y.ab", "c.txt", "e/f.ab"]:
            touch(str(root / rel))

        found = [os.path.relpath(p, str(root)).replace(os.sep, "/") for p in discover_bundles(str(root))]

        assert found == ["b.ab", "a/y.ab", "a/z.ab", "a/c/d.ab", "e/f.ab"]

    def test_missing_root(self, tmp_path):
        assert discover_bundles(str(tmp_path / "nothing")) == []


class TestFiltering:

    def test_prefix_and_substring(self):
        assert matches_pattern("^excel", "excel/item_table")
        assert not matches_pattern("^table", "excel/item_table")
        assert matches_pattern("table", "excel/item_table")

    def test_exclude_wins_over_include(self):
        include, exclude = ["^excel"], ["buff"]
        assert is_excluded("excel/buff_table", include, exclude)
        assert not is_excluded("excel/hero_table", include, exclude)
        assert is_excluded("art/x", include, exclude)

    def test_no_lists_selects_everything(self):
        assert not is_excluded("anything/at/all.ab", [], [])


# ==============================================================================
# NAMES
# ==============================================================================

class TestNames:

    def test_duplicate_names_get_path_ids(self):
        objects = [FakeObject("Texture2D", 11, "A"), FakeObject("Sprite", 12, "A"),
                   FakeObject("Texture2D", 13, "B")]

        assert assign_visual_names(objects, {}) == {11: "A [11]", 12: "A [12]", 13: "B"}

    def test_png_container_name_preferred(self):
        objects = [FakeObject("Texture2D", 1, "atlas_0")]
        index = {1: "assets/torappu/dynamicassets/arts/charavatars/char_002_amiya.png"}

        assert assign_visual_names(objects, index) == {1: "char_002_amiya"}

    def test_other_container_extension_uses_object_name(self):
        objects = [FakeObject("Texture2D", 1, "atlas_0")]
        assert assign_visual_names(objects, {1: "assets/ui/atlas.prefab"}) == {1: "atlas_0"}

    def test_text_options_from_container(self):
        obj = FakeObject("TextAsset", 4, "item_table")
        options = text_options(obj, {4: "assets/gamedata/excel/item_table.bytes"})
        assert options == ExtractOptions(name="item_table", extension=".bytes")
        assert text_options(obj, {}) == ExtractOptions()


# ==============================================================================
# EXTRACTION
# ==============================================================================

@pytest.fixture
def trees(tmp_path):
    return SimpleNamespace(input=str(tmp_path / "bundles"), output=str(tmp_path / "assets"))


class TestAssetExtractor:

    def test_dispatch_order_and_overrides(self, trees):
        touch(os.path.join(trees.input, "arts", "ui.ab"))
        objects = [
            FakeObject("MonoBehaviour", 1, "script"),
            FakeObject("TextAsset", 2, "layout"),
            FakeObject("Texture2D", 3, "A"),
            FakeObject("AudioClip", 4, "click"),
            FakeObject("Sprite", 5, "A"),
        ]
        registry = RecordingRegistry()
        extractor = AssetExtractor(registry, workers=1, loader=DictLoader({"ui.ab": objects}))

        summary = extractor.extract_all(trees.input, trees.output)

        assert summary.extracted == ["arts/ui.ab"]
        assert registry.calls == [
            ("Texture2D", 3, ExtractOptions(name="A [3]")),
            ("Sprite", 5, ExtractOptions(name="A [5]")),
            ("TextAsset", 2, ExtractOptions()),
            ("AudioClip", 4, ExtractOptions()),
        ]

    def test_each_object_handled_once(self, trees):
        touch(os.path.join(trees.input, "a.ab"))
        objects = [FakeObject("Texture2D", i, f"t{i}") for i in range(5)]
        objects += [FakeObject("TextAsset", 10 + i, f"s{i}") for i in range(3)]
        registry = RecordingRegistry()

        AssetExtractor(registry, loader=DictLoader({"a.ab": objects})).extract_all(trees.input, trees.output)

        path_ids = [call[1] for call in registry.calls]
        assert sorted(path_ids) == sorted(set(path_ids))
        assert len(path_ids) == 8

    def test_output_directory_per_bundle(self, trees):
        touch(os.path.join(trees.input, "gamedata", "excel", "item_table.ab"))
        objects = [FakeObject("TextAsset", 1, "item_table", script=b'{"a": 1}')]
        registry = HandlerRegistry.from_table(HANDLERS)
        extractor = AssetExtractor(registry, loader=DictLoader({"item_table.ab": objects}))

        extractor.extract_all(trees.input, trees.output)

        out = os.path.join(trees.output, "gamedata", "excel", "item_table.ab", "item_table.json")
        with open(out, 'rb') as f:
            assert f.read() == b'{"a": 1}'

    def test_filters_applied(self, trees, capsys):
        touch(os.path.join(trees.input, "excel", "buff_table.ab"))
        touch(os.path.join(trees.input, "excel", "hero_table.ab"))
        touch(os.path.join(trees.input, "art", "x.ab"))
        loader = DictLoader({})

        summary = AssetExtractor(RecordingRegistry(), loader=loader).extract_all(
            trees.input, trees.output, include=["^excel"], exclude=["buff"])

        assert sorted(summary.excluded) == ["art/x.ab", "excel/buff_table.ab"]
        assert summary.extracted == ["excel/hero_table.ab"]
        assert loader.loaded == ["hero_table.ab"]
        assert "Exclude" in capsys.readouterr().out

    def test_up_to_date_bundle_skipped(self, trees, capsys):
        bundle = touch(os.path.join(trees.input, "a.ab"))
        age(bundle)
        loader = DictLoader({"a.ab": [FakeObject("Texture2D", 1, "x")]})
        extractor = AssetExtractor(RecordingRegistry(), loader=loader)
        extractor.extract_all(trees.input, trees.output)
        capsys.readouterr()

        summary = extractor.extract_all(trees.input, trees.output)

        assert summary.skipped == ["a.ab"]
        assert loader.loaded == ["a.ab"]
        assert "Skip" not in capsys.readouterr().out

    def test_skip_logged_when_verbose(self, trees, capsys):
        age(touch(os.path.join(trees.input, "a.ab")))
        extractor = AssetExtractor(RecordingRegistry(), loader=DictLoader({}), verbose=True)
        extractor.extract_all(trees.input, trees.output)
        capsys.readouterr()

        extractor.extract_all(trees.input, trees.output)

        assert "Skip 1 / 1 (a.ab)" in capsys.readouterr().out

    def test_newer_bundle_rebuilds_directory(self, trees):
        bundle = touch(os.path.join(trees.input, "a.ab"))
        age(bundle)
        loader = DictLoader({"a.ab": []})
        extractor = AssetExtractor(RecordingRegistry(), loader=loader)
        extractor.extract_all(trees.input, trees.output)

        sentinel = os.path.join(trees.output, "a.ab", "leftover.png")
        touch(sentinel)
        future = time.time() + 100
        os.utime(bundle, (future, future))

        summary = extractor.extract_all(trees.input, trees.output)

        assert summary.extracted == ["a.ab"]
        assert loader.loaded == ["a.ab", "a.ab"]
        assert not os.path.exists(sentinel)

    def test_failed_bundle_cleaned_up_after_others(self, trees):
        touch(os.path.join(trees.input, "a.ab"))
        touch(os.path.join(trees.input, "b.ab"))
        touch(os.path.join(trees.input, "c.ab"))
        loader = DictLoader({
            "a.ab": [FakeObject("Texture2D", 1, "x")],
            "b.ab": RuntimeError("corrupt bundle"),
            "c.ab": [FakeObject("Texture2D", 1, "y")],
        })

        with pytest.raises(RuntimeError, match="corrupt bundle"):
            AssetExtractor(RecordingRegistry(), workers=2, loader=loader).extract_all(
                trees.input, trees.output)

        assert sorted(loader.loaded) == ["a.ab", "b.ab", "c.ab"]
        assert not os.path.exists(os.path.join(trees.output, "b.ab"))
        assert os.path.isdir(os.path.join(trees.output, "a.ab"))
        assert os.path.isdir(os.path.join(trees.output, "c.ab"))
