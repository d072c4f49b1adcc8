"""Tests for the striped per-key lock pool."""
import threading

from scoreboard.services.locks import KeyedLocks


def test_pool_size_is_fixed_however_many_keys_are_used():
    locks = KeyedLocks(stripes=8)
    seen = {id(locks.lock_for(key)) for key in range(10_000)}
    assert len(seen) == 8


def test_same_key_always_maps_to_same_lock():
    locks = KeyedLocks(stripes=8)
    assert locks.lock_for(3) is locks.lock_for(3)
    assert locks.lock_for(3) is locks.lock_for(11)


def test_hold_keys_sharing_a_stripe_does_not_self_deadlock():
    locks = KeyedLocks(stripes=8)
    with locks.hold(3, 11, 4):
        assert locks.lock_for(3).locked()
        assert locks.lock_for(4).locked()
    assert not locks.lock_for(3).locked()
    assert not locks.lock_for(4).locked()


def test_hold_in_opposite_key_order_from_two_threads_finishes():
    locks = KeyedLocks(stripes=8)
    barrier = threading.Barrier(2)
    finished = []

    def worker(first, second):
        barrier.wait()
        for _ in range(200):
            with locks.hold(first, second):
                pass
        finished.append((first, second))

    threads = [
        threading.Thread(target=worker, args=(1, 2)),
        threading.Thread(target=worker, args=(2, 1)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    assert len(finished) == 2
