from typing import Any


# OrderedResultBuffer（保证顺序提交）
# 介于 worker pool 与 sink 之间
# 不关心 retry / planner
class OrderedResultBuffer:
    def __init__(self, first_range_id: int = 0):
        self._buffer: dict[int, Any] = {}
        self._next_range_id = first_range_id

    def add(self, range_id: int, result: Any):
        if range_id < self._next_range_id or range_id in self._buffer:
            raise ValueError(f"range {range_id} already added")
        self._buffer[range_id] = result

    def pop_ready(self) -> list[tuple[int, Any]]:
        ready = []
        while self._next_range_id in self._buffer:
            ready.append((self._next_range_id, self._buffer.pop(self._next_range_id)))
            self._next_range_id += 1
        return ready

    def __len__(self):
        return len(self._buffer)
