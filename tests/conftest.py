import json

import pytest

from type_mapping import ConfigStore, TypeMappingManager


def global_type(type_id, name, priority):
    return {"id": type_id, "name": name, "description": "", "priority": priority, "enabled": True}


def sample_document():
    return {
        "version": "1.0",
        "description": "test mapping",
        "last_updated": "2024-01-01T00:00:00Z",
        "global_types": {
            "movie": global_type("movie", "电影", 1),
            "tv": global_type("tv", "电视剧", 2),
            "anime": global_type("anime", "动漫", 4),
            "documentary": global_type("documentary", "纪录片", 5),
        },
        "source_mappings": {
            "ffzy": {
                "name": "非凡资源",
                "enabled": True,
                "type_list": [
                    {"id": 1, "name": "电影", "global_type": "movie"},
                    {"id": 2, "name": "连续剧", "global_type": "tv"},
                    {"id": 5, "name": "动作片", "global_type": "movie"},
                    {"id": 6, "name": "国产剧", "global_type": "tv"},
                    {"id": 9, "name": "未分类", "global_type": ""},
                ],
            },
            "lzzy": {
                "name": "量子资源",
                "enabled": True,
                "type_list": [
                    {"id": 1, "name": "电视剧", "global_type": "tv"},
                    {"id": 3, "name": "动漫", "global_type": "anime"},
                ],
            },
        },
    }


class FakeFetcher:
    """Stands in for CategoryFetcher: code -> categories, or an exception to raise."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def fetch(self, source_code, source_url):
        self.calls.append((source_code, source_url))
        response = self.responses[source_code]
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def mapping_file(tmp_path):
    path = tmp_path / "type_mapping.json"
    path.write_text(json.dumps(sample_document(), ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def store(mapping_file):
    return ConfigStore(str(mapping_file))


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def manager(store, fetcher):
    manager = TypeMappingManager(store, fetcher=fetcher)
    manager.load()
    return manager
