import pytest

from ethsync.execution import OrderedResultBuffer
from ethsync.planning import BlockRange, BoundedRangePlanner


def test_planner_covers_range_contiguously():
    ranges = list(BoundedRangePlanner(10, 34, 10))

    assert ranges == [
        BlockRange(0, 10, 19),
        BlockRange(1, 20, 29),
        BlockRange(2, 30, 34),
    ]
    assert [len(r) for r in ranges] == [10, 10, 5]


def test_single_block_range():
    planner = BoundedRangePlanner(7, 7, 100)
    assert planner.next_range() == BlockRange(0, 7, 7)
    assert planner.exhausted
    assert planner.next_range() is None


@pytest.mark.parametrize("start,end,size", [(5, 4, 1), (0, 10, 0)])
def test_planner_rejects_bad_bounds(start, end, size):
    with pytest.raises(ValueError):
        BoundedRangePlanner(start, end, size)


def test_block_numbers():
    assert BlockRange(0, 3, 5).block_numbers == [3, 4, 5]


def test_ordered_buffer_releases_in_range_order():
    buffer = OrderedResultBuffer()
    buffer.add(2, "c")
    buffer.add(1, "b")
    assert buffer.pop_ready() == []

    buffer.add(0, "a")
    assert buffer.pop_ready() == [(0, "a"), (1, "b"), (2, "c")]
    assert len(buffer) == 0


def test_ordered_buffer_rejects_duplicates():
    buffer = OrderedResultBuffer()
    buffer.add(0, "a")
    buffer.pop_ready()
    with pytest.raises(ValueError):
        buffer.add(0, "again")
