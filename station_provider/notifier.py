"""
Change notification for content locators.

Observers register on a locator; ``notify_change`` selects every observer
whose locator is the changed one, lies below it, or (when the observer asked
for descendants) lies above it. Delivery is best effort: callbacks run on a
worker pool, their failures are logged and nothing is reported back to the
caller that published the change.
"""
from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List

from .uris import path_segments

logger = logging.getLogger(__name__)

Observer = Callable[[str], None]


@dataclass
class _Registration:
    handle: int
    uri: str
    callback: Observer
    notify_for_descendants: bool


def _split(uri: str) -> tuple[str, list[str]]:
    head = uri.split("://", 1)
    prefix = head[0] + "://" + head[1].split("/", 1)[0] if len(head) == 2 else ""
    return prefix, path_segments(uri)


def _selects(reg: _Registration, changed: str) -> bool:
    obs_prefix, obs_segs = _split(reg.uri)
    chg_prefix, chg_segs = _split(changed)
    if obs_prefix != chg_prefix:
        return False
    if obs_segs == chg_segs:
        return True
    # 观察者位于变更路径之下
    if obs_segs[: len(chg_segs)] == chg_segs:
        return True
    # 变更位于观察者路径之下
    if reg.notify_for_descendants and chg_segs[: len(obs_segs)] == obs_segs:
        return True
    return False


class ChangeNotifier:
    def __init__(self, synchronous: bool = False, max_workers: int = 2):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._observers: Dict[int, _Registration] = {}
        self._pool = None if synchronous else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="station-notify"
        )

    def register_observer(self, uri: str, callback: Observer, notify_for_descendants: bool = False) -> int:
        with self._lock:
            handle = next(self._ids)
            self._observers[handle] = _Registration(handle, uri, callback, notify_for_descendants)
        return handle

    def unregister_observer(self, handle: int) -> None:
        with self._lock:
            self._observers.pop(handle, None)

    def observers_for(self, uri: str) -> List[Observer]:
        with self._lock:
            regs = list(self._observers.values())
        return [r.callback for r in regs if _selects(r, uri)]

    def notify_change(self, uri: str) -> None:
        for cb in self.observers_for(uri):
            if self._pool is None:
                self._deliver(cb, uri)
            else:
                try:
                    self._pool.submit(self._deliver, cb, uri)
                except RuntimeError:
                    # 线程池已关闭
                    logger.warning("notifier shut down, dropping change for %s", uri)
                    return

    @staticmethod
    def _deliver(cb: Observer, uri: str) -> None:
        try:
            cb(uri)
        except Exception:
            logger.exception("observer failed for %s", uri)

    def shutdown(self, wait: bool = True) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
