# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

"""Numerical tolerances and default search parameters used across pbcnn."""

# Two floats are treated as equal when they differ by less than this.
TOLERANCE = 1e-7

# Lattices with |det| at or below this value are rejected.
DET_TOLERANCE = 1e-10

# Slop used when folding fractional coordinates into [0, 1).
INSIDE_CELL_SLOP = 1e-13

# Half-width of the image window searched for the shortest lattice translation.
IMAGE_SEARCH_RANGE = 3

# Smallest per-cell capacity reported by the atom binner.
MIN_BIN_CAPACITY = 4
