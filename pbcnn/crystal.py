# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

"""
Crystal container
=================

:class:`Crystal` ties a :class:`~pbcnn.lattice.Lattice` to a table of atoms
in fractional coordinates and exposes the neighbor search, the adjacency
table, slab construction and fig drawing on top of them.
"""

from __future__ import annotations
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union
import numpy as np
import polars as pl
from pbcnn.adjacency import NeighborTable, build_adjacency
from pbcnn.drawfig import FULLFILL, WHITE, FigWriter
from pbcnn.lattice import Lattice
from pbcnn.neighbor import Neighbor, PairList
from pbcnn.slab import Slab, build_cylinder_slab


class Crystal:
    """
    Atoms in a periodic lattice.

    Parameters
    ----------
    lattice : Lattice or anything accepted by :class:`~pbcnn.lattice.Lattice`
        Periodic cell.
    frac : np.ndarray, optional
        ``(N, 3)`` fractional coordinates.
    data : pl.DataFrame, optional
        Atom table with columns ``ux``, ``uy``, ``uz`` and optionally
        ``label``.
    pos : np.ndarray, optional
        ``(N, 3)`` Cartesian coordinates, converted to fractional ones.
    labels : list of str, optional
        Atom labels, stored in the ``label`` column.

    Exactly one of ``frac``, ``data`` and ``pos`` must be given.

    Attributes
    ----------
    rc : float
        Cutoff of the last neighbor search.
    pairs : PairList
        Result of :meth:`build_neighbor`.
    neighbor_table : NeighborTable
        Result of :meth:`build_adjacency`.

    Examples
    --------
    .. code-block:: python

        from pbcnn import Crystal

        fcc = Crystal(
            3.615,
            frac=[[0, 0, 0], [0.5, 0.5, 0], [0.5, 0, 0.5], [0, 0.5, 0.5]],
            labels=["Cu"] * 4,
        )
        fcc.build_neighbor(2.6, method="brute")
        table = fcc.build_adjacency()
        print(table.counts)  # 12 neighbors each
    """

    def __init__(
        self,
        lattice: Union[Lattice, float, Iterable[float], np.ndarray],
        frac: Optional[np.ndarray] = None,
        data: Optional[pl.DataFrame] = None,
        pos: Optional[np.ndarray] = None,
        labels: Optional[List[str]] = None,
    ):
        self.lattice = lattice if isinstance(lattice, Lattice) else Lattice(lattice)
        given = sum(x is not None for x in (frac, data, pos))
        if given != 1:
            raise RuntimeError("One must provide exactly one of frac, data or pos.")
        if data is not None:
            for name in ("ux", "uy", "uz"):
                assert name in data.columns, f"Data must contain {name} column."
            self.__data = data.with_columns(pl.col("ux", "uy", "uz").cast(pl.Float64))
        else:
            if pos is not None:
                frac = self.lattice.to_fractional(np.asarray(pos, np.float64).reshape(-1, 3))
            frac = np.asarray(frac, np.float64).reshape(-1, 3)
            self.__data = pl.DataFrame(
                {"ux": frac[:, 0], "uy": frac[:, 1], "uz": frac[:, 2]}
            )
        if labels is not None:
            assert len(labels) == self.N, "labels must match the number of atoms."
            self.__data = self.__data.with_columns(
                pl.Series("label", list(labels), dtype=pl.Utf8)
            )

    @classmethod
    def from_cartesian(
        cls,
        lattice: Union[Lattice, float, Iterable[float], np.ndarray],
        pos: np.ndarray,
        labels: Optional[List[str]] = None,
    ) -> Crystal:
        return cls(lattice, pos=pos, labels=labels)

    @property
    def data(self) -> pl.DataFrame:
        """Atom table, one row per atom."""
        return self.__data

    def update_data(self, data: pl.DataFrame):
        assert data.shape[0] == self.N, "The number of atoms cannot change."
        self.__data = data

    @property
    def N(self) -> int:
        return self.__data.shape[0]

    @property
    def frac(self) -> np.ndarray:
        """``(N, 3)`` fractional coordinates."""
        return self.__data.select("ux", "uy", "uz").to_numpy()

    @property
    def cartesian(self) -> np.ndarray:
        """``(N, 3)`` Cartesian coordinates."""
        return self.lattice.to_cartesian(self.frac)

    @property
    def labels(self) -> Optional[List[str]]:
        if "label" in self.__data.columns:
            return self.__data["label"].to_list()
        return None

    def __repr__(self) -> str:
        return f"Crystal with {self.N} atoms.\n{self.lattice}"

    def wrap(self):
        """Fold all fractional coordinates into [0, 1)."""
        u = Lattice.fold(self.frac)
        self.__data = self.__data.with_columns(ux=u[:, 0], uy=u[:, 1], uz=u[:, 2])

    def build_neighbor(
        self,
        rc: float,
        method: str = "grid",
        max_pairs: Optional[int] = None,
        verbose: bool = False,
    ) -> PairList:
        """
        Find all pairs within ``rc``.

        See :class:`~pbcnn.neighbor.Neighbor` for the search methods.

        Returns
        -------
        PairList
            Also stored as :attr:`pairs`.
        """
        neigh = Neighbor(
            self.lattice, self.frac, rc, method=method, max_pairs=max_pairs, verbose=verbose
        )
        self.pairs = neigh.compute()
        self.rc = rc
        if hasattr(self, "neighbor_table"):
            del self.neighbor_table
        return self.pairs

    def build_adjacency(self) -> NeighborTable:
        """
        Sort the pair list of the last :meth:`build_neighbor` call into
        per-atom neighbor lists.
        """
        assert hasattr(self, "pairs"), "Call build_neighbor first."
        self.neighbor_table = build_adjacency(self.pairs, self.N)
        return self.neighbor_table

    def build_slab(
        self,
        t: Iterable[float],
        m: Iterable[float],
        n: Iterable[float],
        center: Iterable[float],
        rc: float,
    ) -> Slab:
        """Cut a cylindrical slab out of this crystal, see :func:`~pbcnn.slab.build_cylinder_slab`."""
        return build_cylinder_slab(t, m, n, center, rc, self.lattice, self.frac, self.labels)

    def draw_projection(
        self,
        file: Union[str, Path, IO[str]],
        scale: float = 600.0,
        radius: float = 0.2,
        bonds: bool = True,
    ):
        """
        Draw atoms and bonds projected on the Cartesian xy plane as an xfig file.

        Bonds are drawn from each atom along its bond vectors, so only
        half of every bond is drawn per atom and periodic bonds point out
        of the cell.

        Parameters
        ----------
        file : str, Path or file object
            Output fig file.
        scale : float, optional
            Fig units per length unit. Defaults to 600 (half an inch).
        radius : float, optional
            Atom circle radius. Defaults to 0.2.
        bonds : bool, optional
            Draw bonds of the last neighbor search. Defaults to True.
        """
        pos = self.cartesian
        center = 0.5 * self.lattice.basis.sum(axis=0)
        with FigWriter(file, scale=scale, x_origin=center[0], y_origin=center[1]) as fig:
            if bonds and hasattr(self, "pairs"):
                fig.depth = 60
                start = pos[self.pairs.i]
                half = 0.5 * self.pairs.r[:, np.newaxis] * self.pairs.vec
                for (x0, y0, _), (dx, dy, _) in zip(start, half):
                    fig.line(x0, y0, x0 + dx, y0 + dy)
            fig.depth = 50
            fig.fillstyle(WHITE, FULLFILL)
            for x, y, _ in pos:
                fig.circle(x, y, radius)
