# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from __future__ import annotations
from typing import List, Optional
import numpy as np
import polars as pl
from tqdm import tqdm
from pbcnn.constants import IMAGE_SEARCH_RANGE
from pbcnn.exceptions import CapacityExceededError, InconsistentBinningError
from pbcnn.lattice import Lattice
from pbcnn.spatial_binning import Grid


class PairList:
    """
    Flat, symmetric list of bonds: both i->j and j->i are stored.

    Parameters
    ----------
    i, j : np.ndarray
        First and second atom of each pair.
    r : np.ndarray
        Bond length.
    vec : np.ndarray
        ``(npair, 3)`` unit vectors pointing from i to j. Zero for
        coincident atoms.
    shift : np.ndarray, optional
        ``(npair, 3)`` integer periodic image of j. Only meaningful for the
        brute force search, zeros otherwise.
    rc : float, optional
        Cutoff the list was built with.
    """

    def __init__(
        self,
        i: np.ndarray,
        j: np.ndarray,
        r: np.ndarray,
        vec: np.ndarray,
        shift: Optional[np.ndarray] = None,
        rc: Optional[float] = None,
    ):
        self.i = np.asarray(i, np.int64)
        self.j = np.asarray(j, np.int64)
        self.r = np.asarray(r, np.float64)
        self.vec = np.asarray(vec, np.float64).reshape(-1, 3)
        if shift is None:
            shift = np.zeros((self.i.shape[0], 3), np.int64)
        self.shift = np.asarray(shift, np.int64).reshape(-1, 3)
        self.rc = rc
        assert (
            self.i.shape[0]
            == self.j.shape[0]
            == self.r.shape[0]
            == self.vec.shape[0]
            == self.shift.shape[0]
        ), "Pair arrays must have the same length."

    @classmethod
    def empty(cls, rc: Optional[float] = None) -> PairList:
        return cls(
            np.zeros(0, np.int64),
            np.zeros(0, np.int64),
            np.zeros(0, np.float64),
            np.zeros((0, 3), np.float64),
            rc=rc,
        )

    @classmethod
    def concatenate(cls, chunks: List[PairList], rc: Optional[float] = None) -> PairList:
        if not chunks:
            return cls.empty(rc)
        return cls(
            np.concatenate([c.i for c in chunks]),
            np.concatenate([c.j for c in chunks]),
            np.concatenate([c.r for c in chunks]),
            np.concatenate([c.vec for c in chunks]),
            np.concatenate([c.shift for c in chunks]),
            rc=rc,
        )

    def __len__(self) -> int:
        return self.i.shape[0]

    def __repr__(self) -> str:
        return f"PairList with {len(self)} pairs, rc = {self.rc}."

    def to_polars(self) -> pl.DataFrame:
        """
        Pair records as a DataFrame.

        Returns
        -------
        pl.DataFrame
            Columns ``i, j, r, vx, vy, vz``, one row per pair in emission
            order.
        """
        return pl.DataFrame(
            {
                "i": self.i,
                "j": self.j,
                "r": self.r,
                "vx": self.vec[:, 0],
                "vy": self.vec[:, 1],
                "vz": self.vec[:, 2],
            }
        )

    def triplets(self, decimals: int = 8) -> set:
        """Set of ``(i, j, round(r, decimals))``, useful to compare searches."""
        return set(
            zip(self.i.tolist(), self.j.tolist(), np.round(self.r, decimals).tolist())
        )


def _unit_vectors(vect: np.ndarray, r: np.ndarray) -> np.ndarray:
    unit = np.zeros_like(vect)
    np.divide(vect, r[:, np.newaxis], out=unit, where=r[:, np.newaxis] > 0.0)
    return unit


class Neighbor:
    """
    Find all atom pairs closer than ``rc`` in a fully periodic cell.

    Two searches are available:

    * ``"grid"``: linked-cell search. Atoms are binned into a grid whose
      cells are at least ``rc`` wide, and each atom is compared with the
      atoms of its own and adjacent cells using the minimum image. Only
      exact when ``rc`` is smaller than half of every cell thickness.
    * ``"brute"``: compares every atom with every atom in all periodic
      images within reach of ``rc``, so one atom can bond to several
      images of another atom, or to images of itself. The image window
      along each axis covers ``rc`` over the thinnest cell direction, so
      skewed cells are searched completely. Cost grows as
      ``N^2 prod(2 max_shift + 1)``, meant for small cells or large cutoffs.
    * ``"auto"``: ``"grid"`` when it is exact, ``"brute"`` otherwise.

    Parameters
    ----------
    lattice : Lattice
        Periodic cell.
    frac : np.ndarray
        ``(N, 3)`` fractional coordinates; values outside [0, 1) are folded.
        Non-finite coordinates raise
        :class:`~pbcnn.exceptions.InconsistentBinningError` for every method.
    rc : float
        Cutoff radius.
    method : str, optional
        ``"grid"``, ``"brute"`` or ``"auto"``. Defaults to ``"grid"``.
    max_pairs : int, optional
        Hard bound on the number of pairs. Exceeding it raises
        :class:`~pbcnn.exceptions.CapacityExceededError`. Unbounded if None.
    verbose : bool, optional
        Show a progress bar for the brute force search. Defaults to False.

    Attributes
    ----------
    pairs : PairList
        Result of :meth:`compute`.
    grid : Grid
        Populated grid, grid search only.
    capacity_estimate : int
        Worst-case number of pairs of the grid search
        (max cell population x neighbor cells x N).
    max_shift : np.ndarray
        Number of periodic images searched along each axis, brute force only.

    Examples
    --------
    .. code-block:: python

        import numpy as np
        from pbcnn.lattice import Lattice
        from pbcnn.neighbor import Neighbor

        neigh = Neighbor(Lattice(1.0), np.array([[0, 0, 0], [0.5, 0, 0]]), 0.6)
        pairs = neigh.compute()
        print(pairs.to_polars())
    """

    METHODS = ("grid", "brute", "auto")

    def __init__(
        self,
        lattice: Lattice,
        frac: np.ndarray,
        rc: float,
        method: str = "grid",
        max_pairs: Optional[int] = None,
        verbose: bool = False,
    ):
        self.lattice = lattice if isinstance(lattice, Lattice) else Lattice(lattice)
        frac = np.asarray(frac, np.float64).reshape(-1, 3)
        finite = np.all(np.isfinite(frac), axis=1)
        if not np.all(finite):
            raise InconsistentBinningError(int(finite.sum()), frac.shape[0])
        self.frac = Lattice.fold(frac)
        if not np.isfinite(rc) or rc <= 0:
            raise ValueError(f"rc should be a positive number, got {rc}.")
        self.rc = float(rc)
        assert method in self.METHODS, (
            f"Unrecognized method {method}, choose in {self.METHODS}."
        )
        if method == "auto":
            method = "grid" if self.grid_is_exact() else "brute"
        self.method = method
        if max_pairs is not None:
            assert max_pairs >= 0, "max_pairs should not be negative."
        self.max_pairs = max_pairs
        self.verbose = verbose
        self.N = self.frac.shape[0]

    def grid_is_exact(self) -> bool:
        """True if ``rc`` is below half of every cell thickness."""
        return bool(np.all(2.0 * self.rc < self.lattice.get_thickness()))

    def _check_capacity(self, npair: int):
        if self.max_pairs is not None and npair > self.max_pairs:
            raise CapacityExceededError(
                f"Found more than {self.max_pairs} pairs within rc = {self.rc}, increase max_pairs."
            )

    def compute(self) -> PairList:
        """
        Run the selected search.

        Returns
        -------
        PairList
            Symmetric pair list, also stored as :attr:`pairs`.
        """
        if self.method == "grid":
            self.pairs = self._build_pairs_grid()
        else:
            self.pairs = self._build_pairs_brute()
        return self.pairs

    def _build_pairs_grid(self) -> PairList:
        self.grid = Grid.from_lattice(
            self.lattice, self.rc, max_cells=max(self.N, 1)
        ).populate(self.frac)
        grid = self.grid
        self.capacity_estimate = grid.max_population * grid.nneigh * self.N

        rcsq = self.rc * self.rc
        basis = self.lattice.basis
        chunks = []
        npair = 0
        for cell in range(grid.ncell):
            atoms = grid.cell_atoms_of(cell)
            if atoms.shape[0] == 0:
                continue
            candidates = np.concatenate(
                [grid.cell_atoms_of(c) for c in grid.neighbor_list[cell]]
            )
            # rows follow bin order of i, columns the neighbor-cell order of j
            dfrac = Lattice.minimum_image(
                self.frac[candidates][np.newaxis, :, :] - self.frac[atoms][:, np.newaxis, :]
            )
            vect = dfrac @ basis
            rsq = np.sum(vect * vect, axis=-1)
            mask = (rsq <= rcsq) & (atoms[:, np.newaxis] != candidates[np.newaxis, :])
            ii, jj = np.nonzero(mask)
            if ii.shape[0] == 0:
                continue
            npair += ii.shape[0]
            self._check_capacity(npair)
            r = np.sqrt(rsq[ii, jj])
            v = vect[ii, jj]
            chunks.append(PairList(atoms[ii], candidates[jj], r, _unit_vectors(v, r)))
        return PairList.concatenate(chunks, rc=self.rc)

    def _build_pairs_brute(self, search_range: int = IMAGE_SEARCH_RANGE) -> PairList:
        self.shortest_translation = self.lattice.shortest_translation(search_range)
        # a bond can need |n_k| up to rc / thickness_k + 1 along axis k
        self.max_shift = np.maximum(
            int(np.ceil(self.rc / self.shortest_translation)) + 1,
            np.ceil(self.rc / self.lattice.get_thickness()).astype(np.int64) + 1,
        )

        axes = [np.arange(-k, k + 1) for k in self.max_shift]
        shifts = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
        zero_shift = np.all(shifts == 0, axis=1)

        rcsq = self.rc * self.rc
        basis = self.lattice.basis
        index = np.arange(self.N)
        chunks = []
        npair = 0
        for i in tqdm(range(self.N), disable=not self.verbose, desc="brute force"):
            dfrac = (self.frac - self.frac[i])[np.newaxis, :, :] + shifts[:, np.newaxis, :]
            vect = dfrac @ basis
            rsq = np.sum(vect * vect, axis=-1)
            mask = rsq <= rcsq
            mask[zero_shift, i] = False
            ss, jj = np.nonzero(mask)
            if ss.shape[0] == 0:
                continue
            npair += ss.shape[0]
            self._check_capacity(npair)
            r = np.sqrt(rsq[ss, jj])
            v = vect[ss, jj]
            chunks.append(
                PairList(
                    np.full(ss.shape[0], i, np.int64),
                    index[jj],
                    r,
                    _unit_vectors(v, r),
                    shifts[ss],
                )
            )
        return PairList.concatenate(chunks, rc=self.rc)
