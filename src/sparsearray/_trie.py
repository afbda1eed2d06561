"""Persistent bitmap-compressed radix trie keyed by non-negative integers.

A trie of height ``h`` is described by its root node and the root's *shift*:
the number of low index bits consumed below the root (``shift = h * BITS``).
Every node has up to ``WIDTH`` slots and stores only the populated ones,
packed in slot order, with a bitmap recording which slots exist. At shift 0
the packed items are the stored values (a leaf block); above that they are
child nodes.

Nodes are never mutated after construction. Every update copies the path from
the root to the touched slot and shares all other subtrees with the input, so
an update allocates ``O(log n)`` nodes. Functions return the *same* node
object when nothing changed, which callers use to skip allocations.

Empty subtrees are represented by ``None``, never by a node with a zero bitmap.
"""

from __future__ import annotations

from itertools import groupby
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

# Index bits consumed per trie level: fan-out of internal nodes and leaf block size
BITS = 5
WIDTH = 1 << BITS
MASK = WIDTH - 1


class _Unset:
    """Marker returned by :func:`lookup` for slots that were never set."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<UNSET>"


UNSET: Any = _Unset()


class Node:
    """A single trie node: populated-slot bitmap plus packed items."""

    __slots__ = ("bitmap", "items")

    def __init__(self, bitmap: int, items: tuple[Any, ...]) -> None:
        self.bitmap = bitmap
        self.items = items

    def __repr__(self) -> str:
        return f"Node({self.bitmap:#x}, {len(self.items)} items)"


def capacity(shift: int) -> int:
    """Return the number of indices addressable by a root at ``shift``."""
    return 1 << (shift + BITS)


def lookup(root: Node | None, shift: int, index: int) -> Any:
    """Return the value stored at ``index``, or :data:`UNSET`."""
    if root is None or index >= capacity(shift):
        return UNSET

    node: Any = root
    while True:
        bit = 1 << ((index >> shift) & MASK)
        bitmap = node.bitmap
        if not bitmap & bit:
            return UNSET
        node = node.items[(bitmap & (bit - 1)).bit_count()]
        if shift == 0:
            return node
        shift -= BITS


def _path(shift: int, index: int, value: Any) -> Node:
    """Build a fresh single-entry subtree rooted at ``shift``."""
    node = Node(1 << (index & MASK), (value,))
    level = BITS
    while level <= shift:
        node = Node(1 << ((index >> level) & MASK), (node,))
        level += BITS
    return node


def _assoc(node: Node, shift: int, index: int, value: Any) -> Node:
    bitmap = node.bitmap
    items = node.items
    bit = 1 << ((index >> shift) & MASK)
    pos = (bitmap & (bit - 1)).bit_count()

    if not bitmap & bit:
        child = value if shift == 0 else _path(shift - BITS, index, value)
        return Node(bitmap | bit, (*items[:pos], child, *items[pos:]))

    old = items[pos]
    if shift == 0:
        if old is value:
            return node
        child = value
    else:
        child = _assoc(old, shift - BITS, index, value)
        if child is old:
            return node
    return Node(bitmap, (*items[:pos], child, *items[pos + 1 :]))


def assoc(root: Node | None, shift: int, index: int, value: Any) -> tuple[Node, int]:
    """Store ``value`` at ``index``.

    Args:
        root: Current root (``None`` for an empty trie)
        shift: Shift of the current root
        index: Non-negative index to store at
        value: Value to store

    Returns:
        ``(root, shift)`` of the updated trie. The root grows by as many levels
        as needed to address ``index``.
    """
    while index >= capacity(shift):
        if root is not None:
            root = Node(1, (root,))
        shift += BITS

    if root is None:
        return _path(shift, index, value), shift
    return _assoc(root, shift, index, value), shift


def _collapse(root: Node | None, shift: int) -> tuple[Node | None, int]:
    """Drop root levels whose only child sits in slot 0."""
    if root is None:
        return None, 0
    while shift and root.bitmap == 1:
        root = root.items[0]
        shift -= BITS
    return root, shift


def _dissoc(node: Node, shift: int, index: int) -> Node | None:
    bitmap = node.bitmap
    items = node.items
    bit = 1 << ((index >> shift) & MASK)
    if not bitmap & bit:
        return node
    pos = (bitmap & (bit - 1)).bit_count()

    if shift:
        old = items[pos]
        child = _dissoc(old, shift - BITS, index)
        if child is old:
            return node
        if child is not None:
            return Node(bitmap, (*items[:pos], child, *items[pos + 1 :]))

    bitmap &= ~bit
    if not bitmap:
        return None
    return Node(bitmap, (*items[:pos], *items[pos + 1 :]))


def dissoc(root: Node | None, shift: int, index: int) -> tuple[Node | None, int]:
    """Remove the entry at ``index`` if present.

    Returns:
        ``(root, shift)`` of the updated trie, or the inputs unchanged when
        ``index`` was not set.
    """
    if root is None or index >= capacity(shift):
        return root, shift
    new_root = _dissoc(root, shift, index)
    if new_root is root:
        return root, shift
    return _collapse(new_root, shift)


def _truncate(node: Node, shift: int, limit: int) -> Node | None:
    bitmap = node.bitmap
    items = node.items
    slot = limit >> shift
    remainder = limit & ((1 << shift) - 1)
    keep = bitmap & ((1 << slot) - 1)
    n = keep.bit_count()

    # The child at ``slot`` straddles the boundary only when the limit is not
    # aligned to its span
    if shift and remainder and bitmap & (1 << slot):
        old = items[n]
        child = _truncate(old, shift - BITS, remainder)
        if child is old and bitmap >> slot == 1:
            return node
        if child is not None:
            return Node(keep | (1 << slot), (*items[:n], child))

    if keep == bitmap:
        return node
    if not keep:
        return None
    return Node(keep, items[:n])


def truncate(root: Node | None, shift: int, limit: int) -> tuple[Node | None, int]:
    """Remove every entry with index ``>= limit``."""
    if root is None or limit >= capacity(shift):
        return root, shift
    if limit <= 0:
        return None, 0
    new_root = _truncate(root, shift, limit)
    if new_root is root:
        return root, shift
    return _collapse(new_root, shift)


def highest(root: Node | None, shift: int) -> int:
    """Return the highest populated index, or -1 for an empty trie."""
    if root is None:
        return -1

    node: Any = root
    index = 0
    while True:
        index |= (node.bitmap.bit_length() - 1) << shift
        if shift == 0:
            return index
        node = node.items[-1]
        shift -= BITS


def _walk(node: Node, shift: int, base: int) -> Iterator[tuple[int, Any]]:
    bitmap = node.bitmap
    for item in node.items:
        low = bitmap & -bitmap
        bitmap ^= low
        index = base | ((low.bit_length() - 1) << shift)
        if shift:
            yield from _walk(item, shift - BITS, index)
        else:
            yield index, item


def _walk_reversed(node: Node, shift: int, base: int) -> Iterator[tuple[int, Any]]:
    bitmap = node.bitmap
    for item in reversed(node.items):
        top = bitmap.bit_length() - 1
        bitmap ^= 1 << top
        index = base | (top << shift)
        if shift:
            yield from _walk_reversed(item, shift - BITS, index)
        else:
            yield index, item


def iter_items(root: Node | None, shift: int) -> Iterator[tuple[int, Any]]:
    """Yield ``(index, value)`` for every populated slot in ascending order."""
    if root is None:
        return iter(())
    return _walk(root, shift, 0)


def iter_items_reversed(root: Node | None, shift: int) -> Iterator[tuple[int, Any]]:
    """Yield ``(index, value)`` for every populated slot in descending order."""
    if root is None:
        return iter(())
    return _walk_reversed(root, shift, 0)


def _pack(group: Iterable[tuple[int, Any]]) -> Node:
    bitmap = 0
    items = []
    for key, item in group:
        bitmap |= 1 << (key & MASK)
        items.append(item)
    return Node(bitmap, tuple(items))


def build(pairs: Iterable[tuple[int, Any]]) -> tuple[Node | None, int]:
    """Build a trie bottom-up from ``(index, value)`` pairs.

    Args:
        pairs: Pairs with strictly ascending, non-negative indices

    Returns:
        ``(root, shift)`` of the new trie, ``(None, 0)`` when ``pairs`` is empty.

    Note:
        Runs in time linear in the number of pairs, against ``O(n log n)`` for
        the same number of :func:`assoc` calls.
    """
    level = [(key, _pack(group)) for key, group in groupby(pairs, key=lambda pair: pair[0] >> BITS)]
    if not level:
        return None, 0

    shift = 0
    while len(level) > 1 or level[0][0]:
        level = [(key, _pack(group)) for key, group in groupby(level, key=lambda pair: pair[0] >> BITS)]
        shift += BITS
    return level[0][1], shift


def count(root: Node | None, shift: int) -> int:
    """Return the number of populated slots."""
    if root is None:
        return 0
    if shift == 0:
        return len(root.items)
    return sum(count(child, shift - BITS) for child in root.items)
