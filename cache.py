"""
进程内TTL缓存

用于缓存变化缓慢的聚合查询结果（全部标签、全部分类、最常用排行等）。
缓存实例在应用启动时显式创建并挂到 app.state 上，通过依赖注入传给需要的组件。
"""
# 标准库导包
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

# 第三方库导包
from fastapi import Request

# 项目内部导包
from config import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """缓存条目"""
    value: Any
    stored_at: float


class TTLCache:
    """
    固定过期时间的进程内缓存

    每个键的状态：不存在 → 新鲜（获取成功）→ 过期（超过ttl）→ 不存在（invalidate）
    或 新鲜（重新获取成功）。

    采用严格新鲜策略：过期条目一律视为未命中并重新获取，不会在重新获取期间
    返回旧值（不是 stale-while-revalidate）。重新获取失败时异常直接抛给调用方，
    旧条目保持原样，不会写入错误或空值。

    并发说明：内部字典没有加锁。所有操作都是单次读/写/删除，并发请求之间
    最坏情况是同一个键被重复获取一次，不会破坏缓存状态。
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        初始化缓存

        Args:
            default_ttl: 默认过期时间（秒），默认使用 settings.CACHE_DURATION_SECONDS
            clock: 时间函数，测试中可替换为模拟时钟
        """
        self.default_ttl = settings.CACHE_DURATION_SECONDS if default_ttl is None else default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def _is_fresh(self, entry: CacheEntry, ttl: float) -> bool:
        return self._clock() - entry.stored_at < ttl

    async def get_or_fetch(
        self,
        key: str,
        ttl: Optional[float],
        fetch_fn: Callable[[], Awaitable[Any]]
    ) -> Any:
        """
        获取缓存值，未命中或已过期时调用fetch_fn获取并缓存

        Args:
            key: 缓存键
            ttl: 过期时间（秒），None表示使用默认值
            fetch_fn: 无参数的异步获取函数

        Returns:
            缓存值或新获取的值

        Raises:
            fetch_fn 抛出的任何异常，此时不会修改已有条目
        """
        if ttl is None:
            ttl = self.default_ttl

        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry, ttl):
            return entry.value

        value = await fetch_fn()
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
        logger.debug(f"缓存已更新: key={key}")
        return value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """返回键对应的条目（不判断是否过期），不存在返回None"""
        return self._entries.get(key)

    def invalidate(self, key: str) -> None:
        """删除指定键，不存在时无操作"""
        if self._entries.pop(key, None) is not None:
            logger.debug(f"缓存已失效: key={key}")

    def clear_all(self) -> None:
        """清空全部缓存"""
        self._entries.clear()
        logger.info("进程内缓存已清空")

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def get_cache(request: Request) -> TTLCache:
    """
    获取应用级缓存实例

    这是一个依赖注入函数，缓存实例在 main.lifespan 中创建。
    """
    return request.app.state.cache
