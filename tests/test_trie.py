# tests/test_trie.py
import pytest

from sparsearray import _trie


# ---------------------
# Helper functions
# ---------------------
def _from_assoc(indices):
    """Build a trie one assoc at a time, storing each index as its own value."""
    root, shift = None, 0
    for index in indices:
        root, shift = _trie.assoc(root, shift, index, index)
    return root, shift


def _from_build(indices):
    return _trie.build([(index, index) for index in sorted(set(indices))])


index_variants = {
    "single_zero": [0],
    "single_far": [5000],
    "one_leaf": list(range(32)),
    "two_leaves": list(range(40)),
    "full_level": list(range(1024)),
    "scattered": [3, 97, 31, 32, 1023, 1024, 40000, 7],
    "huge": [0, 2**35, 2**35 + 1],
}


# ---------------------
# Geometry tests
# ---------------------
def test_geometry_constants():
    """Test that the fan-out constants agree with each other."""
    assert _trie.WIDTH == 1 << _trie.BITS
    assert _trie.MASK == _trie.WIDTH - 1
    assert _trie.capacity(0) == _trie.WIDTH
    assert _trie.capacity(_trie.BITS) == _trie.WIDTH**2


def test_empty_trie():
    """Test operations on the empty trie."""
    assert _trie.lookup(None, 0, 0) is _trie.UNSET
    assert _trie.highest(None, 0) == -1
    assert _trie.count(None, 0) == 0
    assert list(_trie.iter_items(None, 0)) == []
    assert list(_trie.iter_items_reversed(None, 0)) == []
    assert _trie.build([]) == (None, 0)
    assert _trie.dissoc(None, 0, 3) == (None, 0)
    assert _trie.truncate(None, 0, 3) == (None, 0)


# ---------------------
# Build and assoc tests
# ---------------------
@pytest.mark.parametrize("indices", list(index_variants.values()), ids=list(index_variants))
def test_build_matches_assoc(indices):
    """Test that bulk building and repeated assoc produce the same contents and height."""
    built_root, built_shift = _from_build(indices)
    assoc_root, assoc_shift = _from_assoc(indices)

    expected = [(index, index) for index in sorted(set(indices))]
    assert list(_trie.iter_items(built_root, built_shift)) == expected
    assert list(_trie.iter_items(assoc_root, assoc_shift)) == expected
    assert built_shift == assoc_shift
    assert _trie.count(built_root, built_shift) == len(expected)
    assert _trie.highest(built_root, built_shift) == expected[-1][0]


@pytest.mark.parametrize("indices", list(index_variants.values()), ids=list(index_variants))
def test_lookup(indices):
    """Test lookup of present and absent indices."""
    root, shift = _from_build(indices)
    present = set(indices)

    for index in present:
        assert _trie.lookup(root, shift, index) == index
    for index in (1, 33, 999, 2**40):
        if index not in present:
            assert _trie.lookup(root, shift, index) is _trie.UNSET


@pytest.mark.parametrize("indices", list(index_variants.values()), ids=list(index_variants))
def test_iter_items_reversed(indices):
    """Test that reversed iteration is the exact reverse of forward iteration."""
    root, shift = _from_build(indices)
    forward = list(_trie.iter_items(root, shift))
    assert list(_trie.iter_items_reversed(root, shift)) == forward[::-1]


def test_assoc_grows_root():
    """Test that assoc adds levels only when the index exceeds capacity."""
    root, shift = _trie.assoc(None, 0, 31, "a")
    assert shift == 0

    root, shift = _trie.assoc(root, shift, 32, "b")
    assert shift == _trie.BITS
    assert _trie.lookup(root, shift, 31) == "a"

    root, shift = _trie.assoc(root, shift, 2**20, "c")
    assert shift == 4 * _trie.BITS
    assert [index for index, _ in _trie.iter_items(root, shift)] == [31, 32, 2**20]


def test_assoc_shares_untouched_subtrees():
    """Test that an update copies only the path to the changed slot."""
    root, shift = _from_build(range(1024))
    assert shift == _trie.BITS

    new_root, new_shift = _trie.assoc(root, shift, 0, "changed")

    assert new_shift == shift
    assert new_root is not root
    assert new_root.items[0] is not root.items[0]
    assert all(new is old for new, old in zip(new_root.items[1:], root.items[1:]))
    assert _trie.lookup(root, shift, 0) == 0
    assert _trie.lookup(new_root, new_shift, 0) == "changed"


def test_assoc_same_value_returns_same_root():
    """Test that re-storing the held object allocates nothing."""
    value = object()
    root, shift = _trie.assoc(None, 0, 700, value)
    assert _trie.assoc(root, shift, 700, value) == (root, shift)


def test_nodes_are_packed():
    """Test that nodes store only populated slots, in slot order."""
    root, shift = _trie.build([(1, "b"), (4, "e"), (30, "z")])
    assert shift == 0
    assert root.bitmap == (1 << 1) | (1 << 4) | (1 << 30)
    assert root.items == ("b", "e", "z")


# ---------------------
# Dissoc tests
# ---------------------
def test_dissoc_removes_entry():
    """Test that dissoc removes one entry and leaves the input trie intact."""
    root, shift = _from_build(range(100))
    new_root, new_shift = _trie.dissoc(root, shift, 50)

    assert _trie.lookup(new_root, new_shift, 50) is _trie.UNSET
    assert _trie.count(new_root, new_shift) == 99
    assert _trie.lookup(root, shift, 50) == 50
    assert new_root.items[0] is root.items[0]


@pytest.mark.parametrize("index", [5, 31, 2**30], ids=["in_leaf", "leaf_end", "beyond_capacity"])
def test_dissoc_absent_returns_same_root(index):
    """Test that removing an unset index returns the input unchanged."""
    root, shift = _from_build([0, 64])
    assert _trie.dissoc(root, shift, index) == (root, shift)


def test_dissoc_last_entry_empties_trie():
    """Test that removing the only entry yields the empty trie."""
    root, shift = _trie.assoc(None, 0, 4000, "x")
    assert _trie.dissoc(root, shift, 4000) == (None, 0)


def test_dissoc_collapses_root():
    """Test that the root shrinks once only slot 0 of it is populated."""
    root, shift = _from_build([0, 5000])
    assert shift == 2 * _trie.BITS

    new_root, new_shift = _trie.dissoc(root, shift, 5000)
    assert new_shift == 0
    assert list(_trie.iter_items(new_root, new_shift)) == [(0, 0)]


# ---------------------
# Truncate tests
# ---------------------
@pytest.mark.parametrize(
    "indices, limit, expected",
    [
        (range(100), 37, list(range(37))),
        (range(100), 64, list(range(64))),
        (range(100), 100, list(range(100))),
        (range(100), 1, [0]),
        ([0, 40, 2000], 41, [0, 40]),
        ([0, 40, 2000], 10, [0]),
        ([5, 40], 3, []),
    ],
    ids=["mid_leaf", "leaf_boundary", "no_op", "first_only", "across_levels", "collapse", "everything"],
)
def test_truncate(indices, limit, expected):
    """Test that truncate keeps exactly the indices below the limit."""
    root, shift = _from_build(indices)
    new_root, new_shift = _trie.truncate(root, shift, limit)

    assert [index for index, _ in _trie.iter_items(new_root, new_shift)] == expected
    assert _trie.highest(new_root, new_shift) == (expected[-1] if expected else -1)
    assert list(_trie.iter_items(root, shift)) == [(index, index) for index in indices]


def test_truncate_collapses_root():
    """Test that truncation drops root levels left with a single slot-0 child."""
    root, shift = _from_build([0, 40, 2000])
    new_root, new_shift = _trie.truncate(root, shift, 10)
    assert new_shift == 0
    assert new_root.items == (0,)


def test_truncate_beyond_content_returns_same_root():
    """Test that a limit past the highest index changes nothing."""
    root, shift = _from_build([0, 40])
    assert _trie.truncate(root, shift, 41) == (root, shift)
    assert _trie.truncate(root, shift, 10**9) == (root, shift)


def test_truncate_to_zero():
    """Test that a zero limit empties the trie."""
    root, shift = _from_build(range(50))
    assert _trie.truncate(root, shift, 0) == (None, 0)
