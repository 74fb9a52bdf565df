"""Fixed-capacity, most-recent-first history buffer."""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, List, TypeVar

T = TypeVar("T")


class BoundedHistory(Generic[T]):
	"""Keep the newest `capacity` items; the oldest is evicted on overflow."""

	def __init__(self, capacity: int) -> None:
		if capacity <= 0:
			raise ValueError("History capacity must be positive.")
		self.capacity = capacity
		self._items: Deque[T] = deque(maxlen=capacity)

	def push(self, item: T) -> None:
		"""Insert an item at the front."""
		self._items.appendleft(item)

	def to_list(self) -> List[T]:
		return list(self._items)

	def __iter__(self) -> Iterator[T]:
		return iter(self._items)

	def __len__(self) -> int:
		return len(self._items)
