# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from __future__ import annotations
from typing import Iterable, List, Optional
import numpy as np
import polars as pl
from pbcnn.lattice import Lattice, dcomp, determinant, inside_cell, inverse_matrix


class Slab:
    """
    Atoms of a cylindrical slab in its own Cartesian frame.

    Attributes
    ----------
    xyz : np.ndarray
        ``(N, 3)`` positions; x along the cut axis ``m``, y along ``n``
        and z along the cylinder axis ``t``, with 0 <= z <= thickness.
    labels : list of str or None
        Label of the unit-cell atom each slab atom was copied from.
    basis_index : np.ndarray
        Index of the unit-cell atom each slab atom was copied from.
    thickness : float
        Slab thickness, ``det([m, n, t])``.
    """

    def __init__(
        self,
        xyz: np.ndarray,
        basis_index: np.ndarray,
        thickness: float,
        labels: Optional[List[str]] = None,
    ):
        self.xyz = xyz
        self.basis_index = basis_index
        self.thickness = thickness
        self.labels = labels

    @property
    def N(self) -> int:
        return self.xyz.shape[0]

    def to_polars(self) -> pl.DataFrame:
        data = pl.DataFrame(
            {"x": self.xyz[:, 0], "y": self.xyz[:, 1], "z": self.xyz[:, 2]}
        )
        if self.labels is not None:
            data = data.with_columns(pl.Series("label", self.labels, dtype=pl.Utf8))
        return data

    def __repr__(self) -> str:
        return f"Slab with {self.N} atoms, thickness {self.thickness}."


def build_cylinder_slab(
    t: Iterable[float],
    m: Iterable[float],
    n: Iterable[float],
    center: Iterable[float],
    rc: float,
    lattice: Lattice,
    frac: np.ndarray,
    labels: Optional[List[str]] = None,
) -> Slab:
    """
    Cut a cylinder of radius ``rc`` out of a periodic crystal.

    The cylinder axis is ``t`` and its length ``|t|`` is the slab
    thickness, which should be a lattice period along ``t`` so the slab is
    periodic in z. ``m`` and ``n`` are unit vectors perpendicular to ``t``
    and become the x and y axes. ``center`` (Cartesian) is put on the
    cylinder axis, e.g. the core position of a dislocation.

    Atoms lying on the z = 0 and z = thickness faces are only kept once.

    Parameters
    ----------
    t, m, n : Iterable[float]
        Cylinder axis and the two in-plane axes, in Cartesian coordinates.
    center : Iterable[float]
        Cartesian position of the cylinder axis.
    rc : float
        Cylinder radius.
    lattice : Lattice
        Lattice of the crystal.
    frac : np.ndarray
        ``(Natoms, 3)`` fractional coordinates of the unit-cell atoms.
    labels : list of str, optional
        Names of the unit-cell atoms, copied to the slab atoms.

    Returns
    -------
    Slab
        The slab atoms, ordered by lattice translation then basis atom.

    Raises
    ------
    DegenerateLatticeError
        If ``[m, n, t]`` or the lattice is singular.
    """
    assert rc > 0, f"rc should be positive, got {rc}."
    frac = np.asarray(frac, np.float64).reshape(-1, 3)
    natoms = frac.shape[0]
    if labels is not None:
        assert len(labels) == natoms, "labels must match the number of atoms."

    # columns of S are m, n, t; columns of A are the lattice vectors
    S = np.column_stack([m, n, t]).astype(np.float64)
    thickness = determinant(S)
    Sinv = inverse_matrix(S)
    A = lattice.basis.T
    Ainv = inverse_matrix(A)
    Sa = Sinv @ A
    aS = Ainv @ S

    imax = (
        rc * (np.abs(aS[:, 0]) + np.abs(aS[:, 1])) + np.abs(aS[:, 2]) + 1.999
    ).astype(np.int64)

    cu = inside_cell(Ainv @ np.asarray(center, np.float64))
    s_atom = inside_cell(frac - cu) @ Sa.T
    s_atom[:, 2] = inside_cell(s_atom[:, 2])

    axes = [np.arange(-k, k + 1) for k in imax]
    cells = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
    stry = (cells @ Sa.T)[:, np.newaxis, :] + s_atom[np.newaxis, :, :]
    stry = stry.reshape(-1, 3)
    basis_index = np.tile(np.arange(natoms), cells.shape[0])

    inside = np.flatnonzero(stry[:, 0] ** 2 + stry[:, 1] ** 2 < rc * rc)
    xs, ys, zs, kept = [], [], [], []
    for k in inside:
        x, y, z = stry[k]
        if dcomp(z, 0.0) or dcomp(z, 1.0):
            # face atom: keep only if no atom sits on the same column yet
            found = False
            for xk, yk in zip(xs, ys):
                if dcomp(x, xk) and dcomp(y, yk):
                    found = True
                    break
            z = inside_cell(z)
        else:
            found = z < 0.0 or z > 1.0
        if not found:
            xs.append(x)
            ys.append(y)
            zs.append(z)
            kept.append(basis_index[k])

    xyz = np.zeros((len(xs), 3), np.float64)
    if xs:
        xyz[:, 0] = xs
        xyz[:, 1] = ys
        xyz[:, 2] = np.array(zs) * thickness
    kept = np.array(kept, np.int64)
    slab_labels = None if labels is None else [labels[b] for b in kept]
    return Slab(xyz, kept, thickness, slab_labels)
