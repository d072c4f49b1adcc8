"""Striped mutexes for serializing work on one match or one player."""
import threading
from contextlib import ExitStack, contextmanager

DEFAULT_STRIPES = 64


class KeyedLocks:
    """Fixed pool of ``threading.Lock`` objects shared out by ``hash(key)``.

    Memory stays constant however many ids pass through. Two keys may share a
    stripe, which only costs some parallelism.
    """

    def __init__(self, stripes=DEFAULT_STRIPES):
        self._stripes = [threading.Lock() for _ in range(stripes)]

    def _index(self, key):
        return hash(key) % len(self._stripes)

    def lock_for(self, key):
        return self._stripes[self._index(key)]

    @contextmanager
    def hold(self, *keys):
        """Acquire the stripes for ``keys`` once each, in ascending stripe order."""
        with ExitStack() as stack:
            for index in sorted({self._index(key) for key in keys}):
                stack.enter_context(self._stripes[index])
            yield


match_locks = KeyedLocks()
player_locks = KeyedLocks()
