import threading

import pytest

from tracker.packet_queue import PacketQueue


def test_fifo_order():
    queue = PacketQueue()
    for packet in (b"a", b"b", b"c"):
        queue.append(packet)

    assert queue.snapshot() == [b"a", b"b", b"c"]
    assert queue.peek() == b"a"
    assert len(queue) == 3


def test_peek_on_empty_queue():
    assert PacketQueue().peek() is None


def test_append_allows_duplicates():
    queue = PacketQueue()
    queue.append(b"a")
    queue.append(b"a")

    assert len(queue) == 2


def test_append_if_absent_skips_duplicates():
    queue = PacketQueue()

    assert queue.append_if_absent(b"a") is True
    assert queue.append_if_absent(b"a") is False
    assert queue.snapshot() == [b"a"]


def test_append_if_absent_goes_to_tail():
    queue = PacketQueue()
    queue.append(b"a")
    queue.append_if_absent(b"b")

    assert queue.snapshot() == [b"a", b"b"]


def test_remove_head_only_removes_matching_packet():
    queue = PacketQueue()
    queue.append(b"a")
    queue.append(b"b")

    assert queue.remove_head(b"b") is False
    assert queue.remove_head(b"a") is True
    assert queue.snapshot() == [b"b"]


def test_remove_head_on_empty_queue():
    assert PacketQueue().remove_head(b"a") is False


def test_clear_returns_dropped_count():
    queue = PacketQueue()
    queue.append(b"a")
    queue.append(b"b")

    assert queue.clear() == 2
    assert len(queue) == 0


def test_bounded_queue_drops_oldest():
    queue = PacketQueue(max_packets=2)
    for packet in (b"a", b"b", b"c"):
        queue.append(packet)

    assert queue.snapshot() == [b"b", b"c"]


def test_invalid_bound():
    with pytest.raises(ValueError):
        PacketQueue(max_packets=0)


def test_concurrent_appends_are_not_lost():
    queue = PacketQueue()

    def produce(prefix):
        for i in range(200):
            queue.append(f"{prefix}{i}".encode())

    threads = [threading.Thread(target=produce, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(queue) == 800
    assert b"a199" in queue
