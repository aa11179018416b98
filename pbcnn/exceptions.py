# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.


class DegenerateLatticeError(ValueError):
    """The lattice basis is singular (zero or near-zero determinant)."""


class CapacityExceededError(RuntimeError):
    """More pairs were found than the caller allowed with ``max_pairs``."""


class InconsistentBinningError(RuntimeError):
    """The number of binned atoms differs from the number of input atoms."""

    def __init__(self, found: int, expected: int):
        self.found = found
        self.expected = expected
        super().__init__(
            f"Error occurred in populate grid: found {found} atoms, not {expected} atoms."
        )
