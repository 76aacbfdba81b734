from threading import Thread

from cityweather.main_queue import MainQueue


def test_drain_runs_in_post_order():
    q = MainQueue()
    seen = []
    for i in range(3):
        q.post(lambda i=i: seen.append(i))
    assert q.drain() == 3
    assert seen == [0, 1, 2]
    assert q.empty()


def test_drain_respects_max_items():
    q = MainQueue()
    seen = []
    for i in range(5):
        q.post(lambda i=i: seen.append(i))
    assert q.drain(max_items=2) == 2
    assert seen == [0, 1]
    assert q.drain() == 3


def test_callables_posted_from_threads_run_on_drainer():
    q = MainQueue()
    seen = []

    def worker(n):
        q.post(lambda: seen.append(n))

    threads = [Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert q.drain() == 4
    assert sorted(seen) == [0, 1, 2, 3]


def test_wait_and_drain_times_out_when_idle():
    q = MainQueue()
    assert q.wait_and_drain(timeout=0.01) == 0
