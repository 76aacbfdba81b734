from queue import Empty, SimpleQueue
from typing import Callable, Optional


class MainQueue:
    """
    Single mutation context for the store.
    - Worker and timer threads call post() with a callable.
    - The owner thread calls drain() and runs the callables in FIFO order.
    """

    def __init__(self):
        self.q: SimpleQueue = SimpleQueue()

    def post(self, fn: Callable[[], None]) -> None:
        self.q.put(fn)

    def drain(self, max_items: Optional[int] = None) -> int:
        ran = 0
        while max_items is None or ran < max_items:
            try:
                fn = self.q.get_nowait()
            except Empty:
                break
            fn()
            ran += 1
        return ran

    def wait_and_drain(self, timeout: float) -> int:
        # block for the first item so idle loops do not spin
        try:
            fn = self.q.get(timeout=timeout)
        except Empty:
            return 0
        fn()
        return 1 + self.drain()

    def empty(self) -> bool:
        return self.q.empty()
