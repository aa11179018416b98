# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from __future__ import annotations
from typing import Iterable, Optional, Union
import numpy as np
from pbcnn.constants import MIN_BIN_CAPACITY
from pbcnn.exceptions import InconsistentBinningError
from pbcnn.lattice import Lattice


def calc_grid(lattice: Lattice, rc: float) -> np.ndarray:
    """
    Determine the number of grid cells along each lattice direction.

    Each count is ``floor(thickness / rc)`` with a minimum of 1, so a sphere
    of radius ``rc`` never reaches past the adjacent layer of cells.

    Parameters
    ----------
    lattice : Lattice
        Periodic cell to partition.
    rc : float
        Cutoff radius, must be positive.

    Returns
    -------
    np.ndarray
        Integer array ``[n0, n1, n2]``.
    """
    if not np.isfinite(rc) or rc <= 0:
        raise ValueError(f"rc should be a positive number, got {rc}.")
    ngrid = np.floor(lattice.get_thickness() / rc).astype(np.int64)
    ngrid[ngrid < 1] = 1
    return ngrid


class Grid:
    """
    Linked-cell partition of the unit cell into ``n0 x n1 x n2`` bins.

    Cells are addressed by the linear index ``i0 + n0 * (i1 + n1 * i2)``.
    Every cell knows the cells it has to scan for neighbors, wrapped
    periodically: along an axis with one cell only the cell itself, with
    two cells both of them, otherwise the cell and its two adjacent cells.

    Parameters
    ----------
    ngrid : Iterable[int]
        Number of cells along each lattice vector, every entry >= 1.

    Attributes
    ----------
    ngrid : np.ndarray
        Cell counts.
    ncell : int
        Total number of cells.
    neighbor_list : np.ndarray
        ``(ncell, nneigh)`` array, row ``c`` lists the cells scanned for
        atoms of cell ``c``. The axis-0 offset varies slowest.
    cell_offsets : np.ndarray
        ``(ncell + 1,)`` CSR offsets into :attr:`cell_atoms`, set by
        :meth:`populate`.
    cell_atoms : np.ndarray
        Atom indices grouped by cell, input order kept inside each cell.
    """

    def __init__(self, ngrid: Union[Iterable[int], np.ndarray]):
        self.ngrid = np.array(ngrid, dtype=np.int64)
        assert self.ngrid.shape == (3,), "ngrid must have three entries."
        assert np.all(self.ngrid >= 1), f"ngrid should be at least 1, got {self.ngrid}."
        self.ncell = int(np.prod(self.ngrid))
        self.neighbor_list = self._make_neighbor_list()
        self.N = 0
        self.cell_offsets = np.zeros(self.ncell + 1, np.int64)
        self.cell_atoms = np.zeros(0, np.int64)

    @classmethod
    def from_lattice(
        cls, lattice: Lattice, rc: float, max_cells: Optional[int] = None
    ) -> Grid:
        """
        Build an empty grid sized for ``rc``, see :func:`calc_grid`.

        If ``max_cells`` is given, all counts are scaled down by the same
        factor until the total number of cells is at most ``max_cells``.
        Coarser cells are wider than ``rc``, so the search stays complete.
        """
        ngrid = calc_grid(lattice, rc)
        ncell = int(np.prod(ngrid))
        if max_cells is not None and ncell > max_cells:
            factor = (max(max_cells, 1) / ncell) ** (1.0 / 3.0)
            ngrid = np.maximum(np.floor(ngrid * factor).astype(np.int64), 1)
        return cls(ngrid)

    @property
    def nneigh(self) -> int:
        return self.neighbor_list.shape[1]

    def cell_index(self, triplet: np.ndarray) -> np.ndarray:
        """Linear cell index of integer triplet(s) already inside the grid."""
        triplet = np.asarray(triplet, np.int64)
        n0, n1 = self.ngrid[0], self.ngrid[1]
        return triplet[..., 0] + n0 * (triplet[..., 1] + n1 * triplet[..., 2])

    def _make_neighbor_list(self) -> np.ndarray:
        ranges = []
        for n in self.ngrid:
            if n == 1:
                ranges.append(np.array([0]))
            elif n == 2:
                ranges.append(np.array([0, 1]))
            else:
                ranges.append(np.array([-1, 0, 1]))
        offsets = np.stack(np.meshgrid(*ranges, indexing="ij"), axis=-1).reshape(-1, 3)

        axes = [np.arange(n) for n in self.ngrid]
        # cell triplets ordered by linear index, i0 fastest
        cells = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)
        cells = cells.transpose(2, 1, 0, 3).reshape(-1, 3)

        neigh = (cells[:, np.newaxis, :] + offsets[np.newaxis, :, :]) % self.ngrid
        return self.cell_index(neigh)

    def assign(self, frac: np.ndarray) -> np.ndarray:
        """
        Cell index of every atom.

        Coordinates are folded into [0, 1) first. Atoms with non-finite
        coordinates cannot be placed and get index -1.

        Parameters
        ----------
        frac : np.ndarray
            ``(N, 3)`` fractional coordinates.

        Returns
        -------
        np.ndarray
            ``(N,)`` linear cell indices.
        """
        frac = np.asarray(frac, np.float64).reshape(-1, 3)
        valid = np.all(np.isfinite(frac), axis=1)
        index = np.full(frac.shape[0], -1, np.int64)
        if not np.any(valid):
            return index
        u = Lattice.fold(frac[valid])
        triplet = np.floor(u * self.ngrid).astype(np.int64)
        # u just below 1 can round up to n
        triplet = np.minimum(triplet, self.ngrid - 1)
        index[valid] = self.cell_index(triplet)
        return index

    def populate(self, frac: np.ndarray) -> Grid:
        """
        Bin all atoms into the grid, replacing any previous content.

        Parameters
        ----------
        frac : np.ndarray
            ``(N, 3)`` fractional coordinates, any range.

        Returns
        -------
        Grid
            ``self``, for chaining.

        Raises
        ------
        InconsistentBinningError
            If fewer atoms were binned than given, which happens for
            non-finite coordinates.
        """
        frac = np.asarray(frac, np.float64).reshape(-1, 3)
        self.N = frac.shape[0]
        index = self.assign(frac)
        binned = np.flatnonzero(index >= 0)
        # stable sort keeps input order within each cell
        order = np.argsort(index[binned], kind="stable")
        self.cell_atoms = binned[order]
        counts = np.bincount(index[binned], minlength=self.ncell)
        self.cell_offsets = np.zeros(self.ncell + 1, np.int64)
        np.cumsum(counts, out=self.cell_offsets[1:])
        if self.cell_offsets[-1] != self.N:
            raise InconsistentBinningError(int(self.cell_offsets[-1]), self.N)
        return self

    def cell_atoms_of(self, cell: int) -> np.ndarray:
        """Atom indices stored in ``cell``."""
        return self.cell_atoms[self.cell_offsets[cell] : self.cell_offsets[cell + 1]]

    @property
    def population(self) -> np.ndarray:
        """Number of atoms in each cell."""
        return np.diff(self.cell_offsets)

    @property
    def max_population(self) -> int:
        if self.ncell == 0:
            return 0
        return int(self.population.max())

    @property
    def estimated_capacity(self) -> int:
        """Expected per-cell list size: twice the mean density, at least 4."""
        return max(int(2.0 * self.N / self.ncell), MIN_BIN_CAPACITY)

    def __repr__(self) -> str:
        return f"Grid {tuple(int(n) for n in self.ngrid)} with {self.N} atoms, {self.nneigh} neighbor cells per cell."
