"""High-level versions of the sample routines written in Y86-64 assembly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, MutableSequence, Sequence

from y86tools.isa import to_signed


@dataclass(eq=False)
class ListNode:
    """One element of a singly linked list of 64-bit values."""

    val: int
    next: ListNode | None = None

    def __iter__(self) -> Iterator[int]:
        node: ListNode | None = self
        while node is not None:
            yield node.val
            node = node.next

    @classmethod
    def from_values(cls, values: Sequence[int]) -> ListNode | None:
        """Build a list holding the values in order; None when empty."""
        head: ListNode | None = None
        for value in reversed(values):
            head = cls(value, head)
        return head


def sum_list(node: ListNode | None) -> int:
    """Sum the elements of a linked list, wrapping to a signed 64-bit word."""
    total = 0
    while node is not None:
        total = to_signed(total + node.val)
        node = node.next
    return total


def rsum_list(node: ListNode | None) -> int:
    """Recursive version of sum_list."""
    if node is None:
        return 0
    return to_signed(node.val + rsum_list(node.next))


def copy_block(src: Sequence[int], dest: MutableSequence[int]) -> int:
    """Copy src into the start of dest and return the xor checksum of src.

    Raises ValueError when dest is shorter than src.
    """
    if len(dest) < len(src):
        raise ValueError("destination is shorter than source")
    result = 0
    for index, value in enumerate(src):
        value = to_signed(value)
        dest[index] = value
        result ^= value
    return result


def ncopy(src: Sequence[int], dst: MutableSequence[int]) -> int:
    """Copy src into the start of dst and return how many values are positive.

    Raises ValueError when dst is shorter than src.
    """
    if len(dst) < len(src):
        raise ValueError("destination is shorter than source")
    count = 0
    for index, value in enumerate(src):
        value = to_signed(value)
        dst[index] = value
        if value > 0:
            count += 1
    return count