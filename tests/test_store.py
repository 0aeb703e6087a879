import json
import os
import re
import stat

import pytest

from type_mapping.errors import ConfigParseError, ConfigReadError, ConfigWriteError
from type_mapping.index import MappingIndex
from type_mapping.models import MappingDocument, SourceType
from type_mapping.store import ConfigStore

from conftest import sample_document


def test_load_reads_document(store):
    document = store.load()
    assert document.source_mappings["lzzy"].find(3).global_type == "anime"


def test_missing_file_is_read_error(tmp_path):
    store = ConfigStore(str(tmp_path / "missing.json"))
    assert not store.exists()
    with pytest.raises(ConfigReadError) as excinfo:
        store.load()
    assert excinfo.value.path.endswith("missing.json")


def test_malformed_json_is_parse_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigParseError):
        ConfigStore(str(path)).load()


def test_wrong_shape_is_parse_error(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigParseError):
        ConfigStore(str(path)).load()


def test_duplicate_type_ids_rejected_on_load(tmp_path):
    data = sample_document()
    data["source_mappings"]["ffzy"]["type_list"].append({"id": 2, "name": "重复", "global_type": "movie"})
    path = tmp_path / "dup.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(ConfigParseError) as excinfo:
        ConfigStore(str(path)).load()
    assert "ffzy" in str(excinfo.value)


def test_save_stamps_copy_and_pretty_prints(store, mapping_file):
    document = store.load()
    saved = store.save(document)

    assert document.last_updated == "2024-01-01T00:00:00Z"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", saved.last_updated)

    text = mapping_file.read_text(encoding="utf-8")
    assert '\n  "version": "1.0"' in text
    assert "非凡资源" in text
    assert json.loads(text)["last_updated"] == saved.last_updated


def test_save_rewrites_whole_document(store, mapping_file):
    document = store.load()
    del document.source_mappings["lzzy"]
    store.save(document)

    assert set(json.loads(mapping_file.read_text(encoding="utf-8"))["source_mappings"]) == {"ffzy"}


def test_save_creates_missing_directory(tmp_path):
    store = ConfigStore(str(tmp_path / "nested" / "dir" / "mapping.json"))
    store.save(MappingDocument())
    assert store.exists()
    assert store.load().global_types == {}


def test_write_failure_is_write_error(tmp_path):
    # A directory in the file's place makes the final replace fail
    target = tmp_path / "mapping.json"
    target.mkdir()
    store = ConfigStore(str(target))

    with pytest.raises(ConfigWriteError):
        store.save(MappingDocument())
    assert [p.name for p in tmp_path.iterdir()] == ["mapping.json"]


def test_round_trip_keeps_lookups(store):
    original = store.load()
    first = MappingIndex(original)

    store.save(store.load())
    second = MappingIndex(store.load())

    for code, mapping in original.source_mappings.items():
        for source_type in mapping.type_list:
            assert second.lookup_global_type(code, source_type.id) == first.lookup_global_type(code, source_type.id)
            assert second.lookup_name(code, source_type.id) == first.lookup_name(code, source_type.id)
        for global_type in {t.global_type for t in mapping.type_list}:
            assert (second.lookup_source_type_ids(code, global_type)
                    == first.lookup_source_type_ids(code, global_type))


def test_unmapped_entries_survive_round_trip(store):
    document = store.load()
    document.source_mappings["lzzy"].type_list.append(SourceType(40, "其他"))
    store.save(document)

    assert store.load().source_mappings["lzzy"].find(40).global_type == ""


def test_invalid_utf8_is_parse_error(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"version": "\xff\xfe"}')
    with pytest.raises(ConfigParseError) as excinfo:
        ConfigStore(str(path)).load()
    assert "UTF-8" in str(excinfo.value)


def test_saved_file_is_world_readable(store, mapping_file):
    store.save(store.load())
    assert stat.S_IMODE(os.stat(mapping_file).st_mode) == 0o644
