import threading

from type_mapping.index import MappingIndex
from type_mapping.models import MappingDocument, SourceMapping, SourceType

from conftest import sample_document


def build(data=None):
    return MappingIndex(MappingDocument.from_dict(data or sample_document()))


def test_every_document_entry_is_indexed():
    document = MappingDocument.from_dict(sample_document())
    index = MappingIndex(document)

    for code, mapping in document.source_mappings.items():
        for source_type in mapping.type_list:
            assert index.lookup_global_type(code, source_type.id) == source_type.global_type
            assert source_type.id in index.lookup_source_type_ids(code, source_type.global_type)
            assert index.lookup_name(code, source_type.id) == source_type.name


def test_reverse_index_keeps_type_list_order():
    index = build()
    assert index.lookup_source_type_ids("ffzy", "movie") == [1, 5]
    assert index.lookup_source_type_ids("ffzy", "tv") == [2, 6]


def test_unmapped_types_collect_under_empty_key():
    index = build()
    assert index.lookup_global_type("ffzy", 9) == ""
    assert index.lookup_source_type_ids("ffzy", "") == [9]


def test_misses_return_none():
    index = build()
    assert index.lookup_global_type("nope", 1) is None
    assert index.lookup_global_type("ffzy", 404) is None
    assert index.lookup_source_type_ids("ffzy", "sport") is None
    assert index.lookup_source_type_ids("nope", "movie") is None
    assert index.lookup_name("lzzy", 2) is None
    assert index.lookup_entry("lzzy", 2) is None
    assert index.lookup_entries("lzzy", "movie") is None


def test_same_id_in_two_sources_is_independent():
    index = build()
    assert index.lookup_global_type("ffzy", 1) == "movie"
    assert index.lookup_global_type("lzzy", 1) == "tv"


def test_entry_lookups():
    index = build()
    assert index.lookup_entry("ffzy", 6) == ("tv", "国产剧")
    assert index.lookup_entries("lzzy", "anime") == [(3, "动漫")]


def test_rebuild_drops_stale_entries():
    index = build()
    data = sample_document()
    del data["source_mappings"]["lzzy"]
    data["source_mappings"]["ffzy"]["type_list"] = [{"id": 1, "name": "电影", "global_type": "movie"}]

    index.rebuild(MappingDocument.from_dict(data))

    assert not index.has_source("lzzy")
    assert index.lookup_global_type("lzzy", 3) is None
    assert index.lookup_global_type("ffzy", 2) is None
    assert index.lookup_source_type_ids("ffzy", "tv") is None
    assert index.source_codes() == ["ffzy"]


def test_returned_lists_do_not_alias_index():
    index = build()
    ids = index.lookup_source_type_ids("ffzy", "movie")
    ids.append(999)
    assert index.lookup_source_type_ids("ffzy", "movie") == [1, 5]


def test_document_snapshot_is_isolated():
    document = MappingDocument.from_dict(sample_document())
    index = MappingIndex(document)

    # Mutating the source document or a returned snapshot must not leak in
    document.source_mappings["ffzy"].type_list[0].global_type = "tv"
    snapshot = index.get_document()
    snapshot.source_mappings.clear()

    assert index.get_document().source_mappings["ffzy"].type_list[0].global_type == "movie"
    assert index.lookup_global_type("ffzy", 1) == "movie"


def test_global_type_names():
    assert build().global_type_names()["anime"] == "动漫"


def _single_source_document(global_type, count=50):
    return MappingDocument(source_mappings={
        "src": SourceMapping(name="src", type_list=[
            SourceType(id=i, name=f"{global_type}-{i}", global_type=global_type) for i in range(1, count + 1)
        ])
    })


def test_readers_never_see_mixed_documents():
    index = MappingIndex(_single_source_document("movie"))
    documents = [_single_source_document("movie"), _single_source_document("tv")]
    stop = threading.Event()
    torn = []

    def reader():
        while not stop.is_set():
            doc = index.get_document()
            kinds = {t.global_type for t in doc.source_mappings["src"].type_list}
            names = {t.name.split("-")[0] for t in doc.source_mappings["src"].type_list}
            if len(kinds) != 1 or names != kinds:
                torn.append((kinds, names))
            entries = index.lookup_entries("src", "movie") or index.lookup_entries("src", "tv")
            if entries is None or len(entries) != 50:
                torn.append(entries)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    for i in range(200):
        index.rebuild(documents[i % 2])
    stop.set()
    for t in readers:
        t.join()

    assert torn == []
