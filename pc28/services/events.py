# pc28/services/events.py
from __future__ import annotations
import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)

ROUND_ADVANCED = "round_advanced"
ROUND_SETTLED = "round_settled"
BET_REJECTED = "bet_rejected"

Listener = Callable[[str, Dict[str, Any]], None]


class EventHub:
    """进程内事件：同步回调 + 最近 N 条缓冲（供前端轮询）"""

    def __init__(self, maxlen: int = 200):
        self._lock = threading.Lock()
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=maxlen)
        self._listeners: List[Listener] = []
        self._seq = 0

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, name: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._seq += 1
            self._recent.append({"seq": self._seq, "event": name, "data": payload})
        for listener in list(self._listeners):
            try:
                listener(name, payload)
            except Exception as e:
                # 展示层回调失败不影响结算
                logger.exception("event listener failed: %s %s", name, e)

    def recent(self, after: int = 0) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self._recent if e["seq"] > after]
