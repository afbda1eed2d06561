from __future__ import annotations

import logging
from collections.abc import Mapping
from operator import index as op_index
from typing import TYPE_CHECKING, Generic, TypeVar

from sparsearray import _trie
from sparsearray.exceptions import BadSize, IndexOutOfRange

if TYPE_CHECKING:
    import sys
    from collections.abc import Callable, Iterable, Iterator
    from typing import Any, SupportsIndex

    if sys.version_info < (3, 11):
        from typing_extensions import Self
    else:
        from typing import Self

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")

logger = logging.getLogger(__name__)

# Sentinel for omitted keyword arguments (None is a valid default value)
_MISSING: Any = object()


class sparsearray(Generic[T]):  # noqa: N801
    """An immutable, persistent array that stores only explicitly-set values.

    Every "modifying" method returns a new sparsearray and leaves the receiver
    untouched. Versions share the unchanged parts of their internal trie, so
    ``set`` and ``drop`` cost ``O(log n)`` time and memory regardless of size.

    An array is either *fixed-size* (indices ``[0, size)`` are valid) or
    *extensible* (any non-negative index is valid and ``size`` is one past the
    highest index ever set).
    """

    __slots__ = ("_root", "_shift", "_size", "_fixed", "_default")

    _root: _trie.Node | None
    _shift: int
    _size: int
    _fixed: bool
    _default: T

    def __init__(
        self,
        data: Mapping[int, T] | Iterable[T] | None = None,
        size: SupportsIndex | None = None,
        default: T = None,  # type: ignore[assignment]
    ) -> None:
        """Initialize a sparsearray from data.

        Args:
            data: Initial data (optional, defaults to empty)
                  - None: creates an array with every slot unset
                  - mapping (dict or any collections.abc.Mapping): keys must be
                    non-negative integers, values placed at those indices
                  - iterable: elements populate indices 0, 1, 2, etc.
            size: Fixed size (optional). When omitted the array is extensible
                and its size is inferred from data.
            default: Value returned for unset indices (default: None)

        Raises:
            TypeError: If mapping keys are not integers or size doesn't support __index__
            IndexOutOfRange: If mapping keys are negative
            BadSize: If size is negative or too small for data
        """
        fixed_size = None if size is None else _check_size(size)

        pairs: list[tuple[int, T]]
        if data is None:
            pairs = []
        elif isinstance(data, Mapping):
            for key in data:
                if not isinstance(key, int):
                    raise TypeError("mapping keys must be integers")
                if key < 0:
                    raise IndexOutOfRange(key)
            pairs = sorted(data.items())
        else:
            pairs = list(enumerate(data))

        natural_size = pairs[-1][0] + 1 if pairs else 0
        if fixed_size is not None and natural_size > fixed_size:
            raise BadSize(fixed_size, "size must accommodate all data")

        self._root, self._shift = _trie.build(pairs)
        self._size = natural_size if fixed_size is None else fixed_size
        self._fixed = fixed_size is not None
        self._default = default

    @classmethod
    def _make(cls, root: _trie.Node | None, shift: int, size: int, fixed: bool, default: U) -> sparsearray[U]:
        """Wrap an already-built trie without validation."""
        result = cls.__new__(cls)
        result._root = root
        result._shift = shift
        result._size = size
        result._fixed = fixed
        result._default = default
        return result  # type: ignore[return-value]

    def _replace(self, root: _trie.Node | None, shift: int, size: int, fixed: bool) -> sparsearray[T]:
        if root is self._root and size == self._size and fixed == self._fixed:
            return self
        return self._make(root, shift, size, fixed, self._default)

    # ---------------------
    # Construction
    # ---------------------
    @classmethod
    def create(cls, default: T = None) -> sparsearray[T]:  # type: ignore[assignment]
        """Return an empty extensible array."""
        return cls(default=default)

    @classmethod
    def create_fixed_size(cls, size: SupportsIndex, default: T = None) -> sparsearray[T]:  # type: ignore[assignment]
        """Return a fixed-size array with every slot unset.

        Raises:
            BadSize: If size is negative
        """
        return cls(size=size, default=default)

    @classmethod
    def from_sequence(cls, values: Iterable[T], default: T = None) -> sparsearray[T]:  # type: ignore[assignment]
        """Return an extensible array holding ``values`` at indices 0, 1, 2, etc."""
        return cls(list(values), default=default)

    @classmethod
    def from_mapping(cls, mapping: Mapping[int, T], default: T = None) -> sparsearray[T]:  # type: ignore[assignment]
        """Return an extensible array with each key of ``mapping`` set to its value.

        Raises:
            IndexOutOfRange: If any key is negative
        """
        return cls(dict(mapping), default=default)

    # ---------------------
    # Properties
    # ---------------------
    @property
    def size(self) -> int:
        """The logical size: the fixed bound, or one past the highest set index."""
        return self._size

    @property
    def default(self) -> T:
        """The value read back from unset indices. Fixed for the life of the array."""
        return self._default

    def is_fixed_size(self) -> bool:
        """Return True if the array rejects indices ``>= size``."""
        return self._fixed

    def __len__(self) -> int:
        """Return the logical size of the array."""
        return self._size

    # ---------------------
    # Access & mutation
    # ---------------------
    def _check_index(self, index: SupportsIndex) -> int:
        idx = op_index(index)
        if idx < 0:
            raise IndexOutOfRange(idx)
        if self._fixed and idx >= self._size:
            raise IndexOutOfRange(idx, self._size)
        return idx

    def get(self, index: SupportsIndex) -> T:
        """Return the value at index, or the default if it was never set.

        Raises:
            IndexOutOfRange: If index is negative, or ``>= size`` for a fixed-size array
        """
        value = _trie.lookup(self._root, self._shift, self._check_index(index))
        return self._default if value is _trie.UNSET else value

    def __getitem__(self, index: SupportsIndex) -> T:
        """Return ``self.get(index)``. Negative indices are rejected, not wrapped."""
        return self.get(index)

    def set(self, index: SupportsIndex, value: T) -> sparsearray[T]:
        """Return a copy with ``value`` stored at index.

        The value is stored even if it equals the default. Setting past the end
        of an extensible array grows its size to ``index + 1``.

        Args:
            index: Index to store at
            value: Value to store

        Returns:
            New sparsearray sharing all other slots with self

        Raises:
            IndexOutOfRange: If index is negative, or ``>= size`` for a fixed-size array
        """
        idx = self._check_index(index)
        root, shift = _trie.assoc(self._root, self._shift, idx, value)
        size = self._size if self._fixed else max(self._size, idx + 1)
        return self._replace(root, shift, size, self._fixed)

    def drop(self, index: SupportsIndex) -> sparsearray[T]:
        """Return a copy with index reset to unset.

        The slot reads back as the default and is skipped by sparse traversals.
        Size is unchanged, even when index was the highest one set; use
        :meth:`make_extensible` or :meth:`resize_to_fit` to recompute it.

        Raises:
            IndexOutOfRange: If index is negative, or ``>= size`` for a fixed-size array
        """
        idx = self._check_index(index)
        root, shift = _trie.dissoc(self._root, self._shift, idx)
        return self._replace(root, shift, self._size, self._fixed)

    # ---------------------
    # Size-mode transitions
    # ---------------------
    def make_fixed(self) -> sparsearray[T]:
        """Return a fixed-size copy whose bound is the current size."""
        if not self._fixed:
            logger.debug("Fixing extensible array at size %d", self._size)
        return self._replace(self._root, self._shift, self._size, True)

    def make_extensible(self) -> sparsearray[T]:
        """Return an extensible copy with size recomputed from contents.

        The new size is one past the highest set index (0 if none), which can
        be smaller than the current size when trailing slots are unset.
        """
        size = _trie.highest(self._root, self._shift) + 1
        if size != self._size:
            logger.debug("Relaxing array: size %d -> %d", self._size, size)
        return self._replace(self._root, self._shift, size, False)

    def resize_to_fit(self) -> sparsearray[T]:
        """Shrink or grow a fixed-size array to one past its highest set index.

        Extensible arrays are returned unchanged.
        """
        if not self._fixed:
            return self
        size = _trie.highest(self._root, self._shift) + 1
        if size != self._size:
            logger.debug("Fitting fixed array: size %d -> %d", self._size, size)
        return self._replace(self._root, self._shift, size, True)

    def set_size(self, size: SupportsIndex) -> sparsearray[T]:
        """Return a fixed-size copy with the given size.

        Values at indices ``>= size`` are discarded; growing pads with unset slots.

        Raises:
            TypeError: If size doesn't support __index__
            BadSize: If size is negative
        """
        new_size = _check_size(size)
        root, shift = _trie.truncate(self._root, self._shift, new_size)
        if root is not self._root:
            logger.debug("Truncated array from size %d to %d", self._size, new_size)
        return self._replace(root, shift, new_size, True)

    # ---------------------
    # Traversal
    # ---------------------
    def _items(self) -> Iterator[tuple[int, T]]:
        """Iterate ``(index, value)`` over set slots in ascending order."""
        return _trie.iter_items(self._root, self._shift)

    def _items_reversed(self) -> Iterator[tuple[int, T]]:
        return _trie.iter_items_reversed(self._root, self._shift)

    def _dense(self) -> Iterator[tuple[int, T]]:
        """Iterate ``(index, value)`` over ``[0, size)`` with gaps default-filled."""
        default = self._default
        position = 0
        for index, value in self._items():
            while position < index:
                yield position, default
                position += 1
            yield index, value
            position = index + 1
        while position < self._size:
            yield position, default
            position += 1

    def _dense_reversed(self) -> Iterator[tuple[int, T]]:
        default = self._default
        position = self._size - 1
        for index, value in self._items_reversed():
            while position > index:
                yield position, default
                position -= 1
            yield index, value
            position = index - 1
        while position >= 0:
            yield position, default
            position -= 1

    def __iter__(self) -> Iterator[T]:
        """Return an iterator over the values in index order (explicit or default)."""
        for _, value in self._dense():
            yield value

    def __reversed__(self) -> Iterator[T]:
        for _, value in self._dense_reversed():
            yield value

    def to_list(self) -> list[T]:
        """Return every value in ``[0, size)`` as a list, gaps default-filled."""
        return [value for _, value in self._dense()]

    def to_dict(self) -> dict[int, T]:
        """Return ``{index: value}`` for every index in ``[0, size)``, gaps default-filled."""
        return dict(self._dense())

    def to_list_sparse(self) -> list[tuple[int, T]]:
        """Return ``(index, value)`` pairs for explicitly-set indices, ascending.

        Indices explicitly set to a value equal to the default are included.
        """
        return list(self._items())

    def to_dict_sparse(self) -> dict[int, T]:
        """Return ``{index: value}`` for explicitly-set indices, ascending."""
        return dict(self._items())

    # ---------------------
    # Transformation
    # ---------------------
    def map(self, func: Callable[[int, T], U], *, default: U = _MISSING) -> sparsearray[U]:
        """Apply ``func(index, value)`` to every index in ``[0, size)``.

        Unset slots are passed the default. Every slot of the result is
        explicitly set; size and size mode are preserved.

        Args:
            func: Function of (index, value) returning the new value
            default: Default of the result (keyword-only), read back past the
                end of an extensible result. When omitted the current default
                is kept.

        Returns:
            New sparsearray with the mapped values
        """
        new_default = self._default if default is _MISSING else default
        root, shift = _trie.build([(index, func(index, value)) for index, value in self._dense()])
        return self._make(root, shift, self._size, self._fixed, new_default)

    def sparse_map(self, func: Callable[[int, T], U], *, default: U = _MISSING) -> sparsearray[U]:
        """Apply ``func(index, value)`` to explicitly-set indices only.

        Unset slots stay unset and read back as the result's default.

        Args:
            func: Function of (index, value) returning the new value
            default: Default of the result (keyword-only). Required in practice
                when ``func`` changes the element type; when omitted the current
                default is kept.

        Returns:
            New sparsearray with the same size and size mode
        """
        new_default = self._default if default is _MISSING else default
        root, shift = _trie.build([(index, func(index, value)) for index, value in self._items()])
        return self._make(root, shift, self._size, self._fixed, new_default)

    def fold(self, init: A, func: Callable[[int, T, A], A]) -> A:
        """Fold ``func(index, value, acc)`` over ``[0, size)`` in ascending order."""
        acc = init
        for index, value in self._dense():
            acc = func(index, value, acc)
        return acc

    def fold_right(self, init: A, func: Callable[[int, T, A], A]) -> A:
        """Fold ``func(index, value, acc)`` over ``[0, size)`` in descending order."""
        acc = init
        for index, value in self._dense_reversed():
            acc = func(index, value, acc)
        return acc

    def sparse_fold(self, init: A, func: Callable[[int, T, A], A]) -> A:
        """Fold ``func(index, value, acc)`` over explicitly-set indices, ascending."""
        acc = init
        for index, value in self._items():
            acc = func(index, value, acc)
        return acc

    def sparse_fold_right(self, init: A, func: Callable[[int, T, A], A]) -> A:
        """Fold ``func(index, value, acc)`` over explicitly-set indices, descending."""
        acc = init
        for index, value in self._items_reversed():
            acc = func(index, value, acc)
        return acc

    def get_count(self) -> int:
        """Return the number of explicitly-set indices.

        Recomputed on every call; runs in time linear in the number of set entries.
        """
        return self.sparse_fold(0, lambda _index, _value, n: n + 1)

    def count(self, value: object) -> int:
        """Return number of occurrences of value over ``[0, size)``.

        Args:
            value: Value to count

        Returns:
            Number of explicit slots equal to value, plus the unset slots if
            value equals the default
        """
        explicit = 0
        matches = 0
        for _, item in self._items():
            explicit += 1
            if item == value:
                matches += 1

        if value == self._default:
            return matches + self._size - explicit
        return matches

    def __contains__(self, value: object) -> bool:
        """Check if value is in ``[0, size)``, counting unset slots as the default."""
        # Early exit: looking for the default and some slot is unset
        if value == self._default and _trie.count(self._root, self._shift) < self._size:
            return True
        return any(item == value for _, item in self._items())

    # ---------------------
    # Value protocol
    # ---------------------
    def __eq__(self, other: object) -> bool:
        """Return True if other is a sparsearray with the same contents.

        Arrays compare equal iff they have the same size mode, size and default,
        and the same value at every index in ``[0, size)``. Comparison with any
        other type (including lists) is not supported; compare ``to_list()``
        output for that.
        """
        if self is other:
            return True
        if not isinstance(other, sparsearray):
            return NotImplemented
        if self._fixed != other._fixed or self._size != other._size or self._default != other._default:
            return False
        if self._root is other._root:
            return True

        # Outside the union of explicit keys both sides read the same default
        default = self._default
        mine = dict(self._items())
        theirs = dict(other._items())
        return all(mine.get(key, default) == theirs.get(key, default) for key in mine.keys() | theirs.keys())

    def __hash__(self) -> int:
        """Hash consistent with __eq__: slots holding the default are ignored.

        Raises:
            TypeError: If the default or a stored value is unhashable
        """
        default = self._default
        explicit = tuple((index, value) for index, value in self._items() if value != default)
        return hash((self._fixed, self._size, default, explicit))

    def __repr__(self) -> str:
        """Return a string representation of the sparsearray.

        Format: *<size/default>[idx: val, ..., idx: val]*, with a ``fixed``
        prefix inside the angle brackets for fixed-size arrays.

        - Uses ... for gaps (unset elements)
        - No ... for fully dense arrays or empty arrays
        """
        header = f"<{'fixed ' if self._fixed else ''}{self._size}/{self._default!r}>"
        if self._size == 0:
            return f"{header}[]"

        parts = []
        position = 0
        for index, value in self._items():
            if index > position:
                parts.append("...")
            parts.append(f"{index}: {value!r}")
            position = index + 1
        if position < self._size:
            parts.append("...")
        return f"{header}[{', '.join(parts)}]"

    def __reduce__(self) -> tuple[Callable[..., sparsearray[T]], tuple[Any, ...]]:
        """Return pickle data: size mode, size, default and explicit entries only."""
        return (_restore, (self._fixed, self._size, self._default, self.to_dict_sparse()))

    def __copy__(self) -> Self:
        """Return self; sparsearrays are immutable."""
        return self


def _check_size(size: SupportsIndex) -> int:
    try:
        value = op_index(size)
    except TypeError:
        raise TypeError("size must support __index__") from None
    if value < 0:
        raise BadSize(value)
    return value


def _restore(fixed: bool, size: int, default: T, explicit: dict[int, T]) -> sparsearray[T]:
    """Rebuild a pickled sparsearray, keeping an extensible size past the highest set index."""
    root, shift = _trie.build(sorted(explicit.items()))
    return sparsearray._make(root, shift, size, fixed, default)
