import pytest

from srtlive.recycle_array import DEFAULT_MAX_DATA_SIZE, ReadCursor, RecycleArray


def started(array):
    cursor = ReadCursor()
    assert array.get(cursor, 100) == b""
    assert cursor.first is False
    return cursor


def test_default_size():
    assert RecycleArray().size == DEFAULT_MAX_DATA_SIZE


def test_first_get_places_cursor_at_write_position():
    array = RecycleArray(16)
    array.put(b"old")
    cursor = started(array)
    assert cursor.read_pos == 3
    assert cursor.data_count == 3
    array.put(b"new")
    assert array.get(cursor, 100) == b"new"


def test_put_get_round_trip_and_count():
    array = RecycleArray(32)
    cursor = started(array)
    assert array.put(b"hello") == 5
    assert array.put(b" world") == 6
    assert array.count() == 11
    assert array.get(cursor, 100) == b"hello world"
    assert array.get(cursor, 100) == b""


def test_get_respects_size_limit():
    array = RecycleArray(32)
    cursor = started(array)
    array.put(b"abcdefgh")
    assert array.get(cursor, 3) == b"abc"
    assert array.get(cursor, 100) == b"defgh"


def test_wrap_around():
    array = RecycleArray(10)
    cursor = started(array)
    array.put(b"abcdefgh")
    assert array.get(cursor, 100) == b"abcdefgh"
    array.put(b"ijklmn")
    assert array.get(cursor, 100) == b"ijklmn"
    assert cursor.read_pos == 4


def test_full_buffer_wrap_is_readable():
    array = RecycleArray(8)
    cursor = started(array)
    array.put(b"12345678")
    assert array.get(cursor, 100) == b"12345678"
    assert cursor.read_pos == 0


def test_aligned_reads():
    array = RecycleArray(32)
    cursor = started(array)
    array.put(b"0123456789")
    assert array.get(cursor, 100, aligned=4) == b"01234567"
    assert array.get(cursor, 100, aligned=4) == b""
    assert array.get(cursor, 100) == b"89"


def test_independent_readers():
    array = RecycleArray(32)
    first = started(array)
    array.put(b"abc")
    second = started(array)
    array.put(b"def")
    assert array.get(first, 100) == b"abcdef"
    assert array.get(second, 100) == b"def"


def test_put_rejects_empty_and_oversized():
    array = RecycleArray(4)
    with pytest.raises(ValueError):
        array.put(b"")
    with pytest.raises(ValueError):
        array.put(b"12345")
    assert array.count() == 0


def test_set_size_resets_buffer_but_keeps_count():
    array = RecycleArray(4)
    array.put(b"abcd")
    array.set_size(8)
    assert array.size == 8
    assert array.count() == 4
    cursor = started(array)
    assert cursor.read_pos == 0
    array.put(b"xyz")
    assert array.get(cursor, 100) == b"xyz"


def test_set_size_rejects_non_positive():
    with pytest.raises(ValueError):
        RecycleArray(4).set_size(0)


def test_last_read_time_follows_clock():
    now = [1000]
    array = RecycleArray(16, clock=lambda: now[0])
    assert array.last_read_time == 1000
    cursor = started(array)
    now[0] = 2500
    assert array.get(cursor, 10) == b""
    assert array.last_read_time == 1000
    array.put(b"x")
    assert array.get(cursor, 10) == b"x"
    assert array.last_read_time == 2500