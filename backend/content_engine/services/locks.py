"""게시글 ID별 배타 구간(read-current/append/update-head)을 제공하는 프로세스 내 잠금 레지스트리입니다."""

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List


class PostLockRegistry:
    """One lock per post id; different posts never block each other.

    Entries are reference counted and dropped once the last holder or waiter
    leaves, so the registry only holds ids that are currently in use.
    """

    def __init__(self) -> None:
        # post_id -> [lock, holders + waiters]
        self._entries: Dict[int, List] = {}
        self._guard = Lock()

    def _acquire_entry(self, post_id: int) -> Lock:
        with self._guard:
            entry = self._entries.get(post_id)
            if entry is None:
                entry = [Lock(), 0]
                self._entries[post_id] = entry
            entry[1] += 1
            return entry[0]

    def _release_entry(self, post_id: int) -> None:
        with self._guard:
            entry = self._entries[post_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[post_id]

    @contextmanager
    def hold(self, post_id: int) -> Iterator[None]:
        post_id = int(post_id)
        lock = self._acquire_entry(post_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(post_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


post_locks = PostLockRegistry()
