import threading
import time
import unittest

from server.texcite.sources.concurrency import request_slot


class RequestSlotTests(unittest.TestCase):
    def _max_parallel(self, *, host: str, limit: int, workers: int = 4) -> int:
        active = 0
        max_active = 0
        lock = threading.Lock()

        def worker() -> None:
            nonlocal active, max_active
            with request_slot(host=host, limit=limit):
                with lock:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.03)
                with lock:
                    active -= 1

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return max_active

    def test_host_cap_is_enforced(self) -> None:
        self.assertEqual(self._max_parallel(host="api.github.test-cap-1", limit=1), 1)

    def test_cap_of_two(self) -> None:
        self.assertLessEqual(self._max_parallel(host="api.github.test-cap-2", limit=2), 2)

    def test_zero_limit_disables_cap(self) -> None:
        self.assertGreater(self._max_parallel(host="api.github.test-uncapped", limit=0), 1)


if __name__ == "__main__":
    unittest.main()
