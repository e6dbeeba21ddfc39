from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class BlockRange:
    range_id: int
    start_block: int
    end_block: int  # inclusive

    @property
    def block_numbers(self) -> list[int]:
        return list(range(self.start_block, self.end_block + 1))

    def __len__(self):
        return self.end_block - self.start_block + 1


class BoundedRangePlanner:
    """
    Backfill planner
    - 有明确 end_block
    - 不追新块
    - 生成完即结束
    """
    def __init__(
        self,
        start_block: int,
        end_block: int,
        range_size: int,
    ):
        if start_block > end_block:
            raise ValueError(
                f"start_block {start_block} > end_block {end_block}"
            )
        if range_size < 1:
            raise ValueError(f"range_size must be >= 1, got {range_size}")

        self._next_block = start_block
        self._end_block = end_block
        self._range_size = range_size
        self._next_range_id = 0

    def next_range(self) -> Optional[BlockRange]:
        if self.exhausted:
            return None

        start = self._next_block
        end = min(start + self._range_size - 1, self._end_block)

        r = BlockRange(
            range_id=self._next_range_id,
            start_block=start,
            end_block=end,
        )

        self._next_block = end + 1
        self._next_range_id += 1

        return r

    def __iter__(self) -> Iterator[BlockRange]:
        while (r := self.next_range()) is not None:
            yield r

    @property
    def exhausted(self) -> bool:
        return self._next_block > self._end_block
