"""Tests for version and hot update list parsing."""

import json

import pytest

from akharvest.core.manifest import (
    BundleDescriptor,
    HotUpdateList,
    ManifestError,
    parse_version_info,
)


class TestVersionInfo:

    def test_res_version(self):
        text = json.dumps({"resVersion": "24-05-01-10-00-00-abc123", "clientVersion": "2.2.21"})
        assert parse_version_info(text) == "24-05-01-10-00-00-abc123"

    def test_key_case_ignored(self):
        assert parse_version_info('{"ResVersion": "v1"}') == "v1"

    @pytest.mark.parametrize("text", ["", "[]", "{}", '{"resVersion": ""}', "<html>"])
    def test_malformed(self, text):
        with pytest.raises(ManifestError):
            parse_version_info(text)


class TestHotUpdateList:

    def test_parses_entries_in_order(self):
        text = json.dumps({
            "versionId": "v1",
            "abInfos": [
                {"name": "gamedata/excel/item_table.ab", "hash": "h1", "md5": "aa11bb22",
                 "totalSize": 100, "abSize": 40},
                {"name": "arts/ui.ab", "hash": "h2", "md5": "cc33dd44"},
            ],
        })

        update_list = HotUpdateList.from_json(text)

        assert update_list.version_id == "v1"
        assert [i.name for i in update_list.ab_infos] == ["gamedata/excel/item_table.ab", "arts/ui.ab"]
        assert update_list.ab_infos[0].total_size == 100
        assert update_list.ab_infos[0].ab_size == 40
        assert update_list.ab_infos[1].total_size == 0

    def test_pascal_case_keys(self):
        update_list = HotUpdateList.from_dict({
            "VersionId": "v2",
            "AbInfos": [{"Name": "a.ab", "Hash": "h", "Md5": "aa11bb22"}],
        })
        assert update_list.ab_infos == [BundleDescriptor("a.ab", "h", "aa11bb22")]

    def test_missing_ab_infos_is_empty(self):
        assert HotUpdateList.from_json('{"versionId": "v3"}').ab_infos == []

    def test_invalid_json(self):
        with pytest.raises(ManifestError):
            HotUpdateList.from_json("not json")

    def test_entry_without_digest(self):
        with pytest.raises(ManifestError):
            HotUpdateList.from_dict({"abInfos": [{"name": "a.ab"}]})

    def test_digest_too_short(self):
        with pytest.raises(ManifestError):
            BundleDescriptor.from_dict({"name": "a.ab", "md5": "ab"})
