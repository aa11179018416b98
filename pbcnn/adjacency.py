# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from __future__ import annotations
from typing import Tuple
import numpy as np
from pbcnn.neighbor import PairList


class NeighborTable:
    """
    Per-atom neighbor lists sorted from the shortest to the longest bond.

    Entries are indices into the :class:`~pbcnn.neighbor.PairList` the
    table was built from, so bond vectors and periodic shifts stay
    available through the pair list.

    Parameters
    ----------
    pairs : PairList
        Pair list the indices refer to.
    offsets : np.ndarray
        ``(N + 1,)`` CSR offsets; atom ``i`` owns
        ``indices[offsets[i]:offsets[i + 1]]``.
    indices : np.ndarray
        Pair indices grouped by atom, ascending bond length inside a group.
    """

    def __init__(self, pairs: PairList, offsets: np.ndarray, indices: np.ndarray):
        self.pairs = pairs
        self.offsets = offsets
        self.indices = indices

    @property
    def N(self) -> int:
        return self.offsets.shape[0] - 1

    @property
    def counts(self) -> np.ndarray:
        """Number of neighbors of each atom."""
        return np.diff(self.offsets)

    @property
    def total(self) -> int:
        return int(self.offsets[-1])

    def count(self, i: int) -> int:
        return int(self.offsets[i + 1] - self.offsets[i])

    def __getitem__(self, i: int) -> np.ndarray:
        """Pair indices of atom ``i``, shortest bond first."""
        return self.indices[self.offsets[i] : self.offsets[i + 1]]

    def __len__(self) -> int:
        return self.N

    def neighbors(self, i: int) -> np.ndarray:
        """Neighbor atom indices of atom ``i``, shortest bond first."""
        return self.pairs.j[self[i]]

    def distances(self, i: int) -> np.ndarray:
        """Bond lengths of atom ``i`` in ascending order."""
        return self.pairs.r[self[i]]

    def to_verlet(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Convert to padded arrays.

        Returns
        -------
        verlet_list : np.ndarray
            ``(N, max_neigh)`` neighbor indices, unused slots are -1.
        distance_list : np.ndarray
            ``(N, max_neigh)`` bond lengths, unused slots are ``rc + 1``
            (or ``inf`` if the pair list carries no cutoff).
        neighbor_number : np.ndarray
            ``(N,)`` number of neighbors.
        """
        neighbor_number = self.counts.astype(np.int32)
        max_neigh = int(neighbor_number.max()) if self.N > 0 else 0
        fill = np.inf if self.pairs.rc is None else self.pairs.rc + 1.0
        verlet_list = np.full((self.N, max_neigh), -1, np.int32)
        distance_list = np.full((self.N, max_neigh), fill, np.float64)
        owner = np.repeat(np.arange(self.N), neighbor_number)
        slot = np.arange(self.total) - self.offsets[owner]
        verlet_list[owner, slot] = self.pairs.j[self.indices]
        distance_list[owner, slot] = self.pairs.r[self.indices]
        return verlet_list, distance_list, neighbor_number


def build_adjacency(pairs: PairList, N: int) -> NeighborTable:
    """
    Build the sorted per-atom neighbor table of a pair list.

    Pairs are ordered by first atom, then by bond length. The sort is
    stable, so bonds of equal length keep their emission order. The input
    does not need to be grouped by first atom.

    Parameters
    ----------
    pairs : PairList
        Symmetric pair list from :class:`~pbcnn.neighbor.Neighbor`.
    N : int
        Number of atoms.

    Returns
    -------
    NeighborTable
        Table with ``table.total == len(pairs)``.

    Raises
    ------
    ValueError
        If a pair refers to an atom outside ``[0, N)``.
    """
    if len(pairs) and (pairs.i.min() < 0 or pairs.i.max() >= N):
        raise ValueError(
            f"Pair list refers to atoms [{pairs.i.min()}, {pairs.i.max()}], outside [0, {N})."
        )
    indices = np.lexsort((pairs.r, pairs.i))
    offsets = np.zeros(N + 1, np.int64)
    np.cumsum(np.bincount(pairs.i, minlength=N), out=offsets[1:])
    return NeighborTable(pairs, offsets, indices)
