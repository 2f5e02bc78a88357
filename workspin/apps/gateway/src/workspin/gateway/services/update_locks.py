"""UpdateLockTable -- (task_id, field) 级别的进程内更新锁

同一字段同一时刻至多一个进行中的更新；不同字段互不影响。
try_claim 中检查与插入之间没有 await，在单事件循环内是原子的。
后台清扫任务强制释放超过过期窗口的锁，防止崩溃路径造成永久锁死。
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

log = structlog.get_logger()


@dataclass(frozen=True)
class LockEntry:
    """锁条目"""

    holder: str
    claimed_at: float


class UpdateLockTable:
    """字段更新锁表

    通过 app.state 注入，生命周期由 lifespan 的 start()/shutdown() 管理。
    """

    def __init__(
        self,
        stale_after: float = 30.0,
        sweep_interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[tuple[str, str], LockEntry] = {}
        self._stale_after = stale_after
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sweeper: asyncio.Task | None = None

    def try_claim(self, task_id: str, field: str, holder: str) -> bool:
        """尝试占用 (task_id, field)，已被占用时返回 False"""
        key = (task_id, field)
        if key in self._entries:
            return False
        self._entries[key] = LockEntry(holder=holder, claimed_at=self._clock())
        return True

    def release(self, task_id: str, field: str) -> None:
        """无条件释放"""
        self._entries.pop((task_id, field), None)

    def is_locked(self, task_id: str, field: str) -> bool:
        return (task_id, field) in self._entries

    def holder(self, task_id: str, field: str) -> str | None:
        entry = self._entries.get((task_id, field))
        return entry.holder if entry else None

    def __len__(self) -> int:
        return len(self._entries)

    def sweep(self, now: float | None = None) -> int:
        """移除超过过期窗口的锁

        Returns:
            被强制释放的锁数量
        """
        now = self._clock() if now is None else now
        stale = [
            (key, entry)
            for key, entry in self._entries.items()
            if now - entry.claimed_at > self._stale_after
        ]
        for (task_id, field), entry in stale:
            del self._entries[(task_id, field)]
            log.warning(
                "stale_update_lock_released",
                task_id=task_id,
                field=field,
                holder=entry.holder,
                age_s=round(now - entry.claimed_at, 1),
            )
        return len(stale)

    def start(self) -> None:
        """启动后台清扫任务"""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def shutdown(self) -> None:
        """停止后台清扫任务并清空锁表"""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        self._entries.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()
