"""An immutable, persistent array that stores only explicitly-set values.

See README.md for complete documentation and usage examples.
"""

from sparsearray.exceptions import BadSize, IndexOutOfRange, SparseArrayError
from sparsearray.sparsearray import sparsearray

__all__ = ["BadSize", "IndexOutOfRange", "SparseArrayError", "sparsearray"]
