# utils/debugging.py
"""群缓存调试输出，供本地调试和 check_system 使用"""

import json
import logging
from pathlib import Path

from groups import GroupStateCache

logger = logging.getLogger(__name__)


def show_all_cache(cache: GroupStateCache) -> str:
    lines = []
    for group_id, data in cache.snapshot().items():
        lines.append(f"{group_id}  {data.get('subject') or '-'}  ({data.get('size', 0)} 人)")
    text = "\n".join(lines) if lines else "(缓存为空)"
    logger.debug(f"全部群缓存:\n{text}")
    return text


def show_group_cache(cache: GroupStateCache, group_id: str) -> str:
    state = cache.get(group_id)
    if state is None:
        text = f"{group_id} 不在缓存中"
    else:
        text = json.dumps(state.to_dict(), ensure_ascii=False, indent=2)
    logger.debug(text)
    return text


def show_cache_stats(cache: GroupStateCache) -> str:
    stats = cache.stats()
    text = f"keys={stats['keys']} hits={stats['hits']} misses={stats['misses']}"
    logger.debug(f"群缓存统计: {text}")
    return text


def export_cache(cache: GroupStateCache, path: str | Path | None = None) -> str:
    """导出为 JSON；给出 path 时同时写入文件"""
    text = json.dumps(cache.snapshot(), ensure_ascii=False, indent=2)
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
        logger.debug(f"群缓存已导出到 {path}")
    else:
        logger.debug(f"群缓存导出:\n{text}")
    return text
