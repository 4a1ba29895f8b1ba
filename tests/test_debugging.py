"""群缓存调试输出测试"""

import json

from conftest import GROUP_ID
from utils.debugging import export_cache, show_all_cache, show_cache_stats, show_group_cache


def test_debug_dumps(cache, tmp_path):
    assert show_all_cache(cache) == "(缓存为空)"
    cache.upsert([{"id": GROUP_ID, "subject": "Dump", "participants": [{"id": "1@lid"}, {"id": "2@lid"}]}])

    assert "Dump" in show_all_cache(cache)
    assert "(2 人)" in show_all_cache(cache)
    assert json.loads(show_group_cache(cache, GROUP_ID))["size"] == 2
    assert "不在缓存中" in show_group_cache(cache, "nope@g.us")
    assert show_cache_stats(cache) == "keys=1 hits=0 misses=0"

    target = tmp_path / "cache.json"
    text = export_cache(cache, target)
    assert json.loads(target.read_text(encoding="utf-8"))[GROUP_ID]["subject"] == "Dump"
    assert json.loads(text) == json.loads(export_cache(cache))
