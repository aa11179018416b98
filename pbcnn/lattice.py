# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from __future__ import annotations
from typing import Union, Iterable
import numpy as np
from pbcnn.constants import (
    DET_TOLERANCE,
    IMAGE_SEARCH_RANGE,
    INSIDE_CELL_SLOP,
    TOLERANCE,
)
from pbcnn.exceptions import DegenerateLatticeError


def dcomp(a: float, b: float) -> bool:
    """Return True if ``a`` and ``b`` agree within :data:`TOLERANCE`."""
    return abs(a - b) < TOLERANCE


def determinant(m: np.ndarray) -> float:
    """Determinant of a 3x3 matrix."""
    return float(np.linalg.det(np.asarray(m, np.float64).reshape(3, 3)))


def inverse_matrix(m: np.ndarray) -> np.ndarray:
    """
    Inverse of a 3x3 matrix.

    Raises
    ------
    DegenerateLatticeError
        If the matrix is singular.
    """
    m = np.asarray(m, np.float64).reshape(3, 3)
    if abs(determinant(m)) <= DET_TOLERANCE:
        raise DegenerateLatticeError(f"Matrix is singular:\n{m}")
    return np.linalg.inv(m)


def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Product of two 3x3 matrices, or of a 3x3 matrix and a vector."""
    return np.asarray(a, np.float64) @ np.asarray(b, np.float64)


def inside_cell(u: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Fold fractional coordinates into [0, 1).

    Values lying within ``INSIDE_CELL_SLOP`` below an integer are folded
    to 0, so that 0.9999999999999 and 1.0 land on the same face.
    """
    y = np.mod(np.asarray(u, np.float64) + INSIDE_CELL_SLOP, 1.0) - INSIDE_CELL_SLOP
    y = np.where(y < 0.0, 0.0, y)
    if np.ndim(y) == 0:
        return float(y)
    return y


class Lattice:
    """
    Three lattice vectors spanning a periodic cell.

    The basis vectors are stored as the rows of a 3x3 matrix, so that
    Cartesian coordinates are ``frac @ basis``.

    Parameters
    ----------
    basis : int, float, Iterable[float], np.ndarray, or Lattice
        Defines the lattice:

        * **int/float**: cubic lattice with given edge length
        * **Iterable[float] of length 3**: orthogonal lattice [a, b, c]
        * **Iterable of length 9 or np.ndarray of shape (3,3)**: full matrix
          with basis vectors as rows
        * **Lattice**: copy of an existing lattice

    Raises
    ------
    DegenerateLatticeError
        If the basis vectors are (nearly) coplanar.
    ValueError
        If the input has a wrong shape or contains non-finite numbers.
    TypeError
        If the input type is not supported.

    Examples
    --------
    .. code-block:: python

        from pbcnn.lattice import Lattice

        cubic = Lattice(3.615)
        hcp = Lattice([[2.95, 0, 0], [-1.475, 2.555, 0], [0, 0, 4.68]])
        cart = hcp.to_cartesian([1 / 3, 2 / 3, 0.25])
    """

    def __init__(self, basis: Union[int, float, Iterable[float], np.ndarray, Lattice]):
        if isinstance(basis, Lattice):
            self.__basis = basis.basis.copy()
        else:
            self.__basis = self.__get_basis(basis)
        self.__det = float(np.linalg.det(self.__basis))
        if abs(self.__det) <= DET_TOLERANCE:
            raise DegenerateLatticeError(
                f"Lattice vectors are coplanar, determinant is {self.__det}:\n{self.__basis}"
            )
        self.__inverse = np.linalg.inv(self.__basis)

    def __get_basis(
        self, basis: Union[int, float, Iterable[float], np.ndarray]
    ) -> np.ndarray:
        if isinstance(basis, (int, float)):
            basis = np.eye(3, dtype=np.float64) * basis
        elif isinstance(basis, (list, tuple, np.ndarray)):
            basis = np.array(basis, np.float64)
            if basis.shape == (3,):
                basis = np.diag(basis)
            elif basis.shape == (9,):
                basis = basis.reshape(3, 3)
            elif basis.shape != (3, 3):
                raise ValueError(f"Invalid lattice shape: {basis.shape}")
        else:
            raise TypeError(f"Invalid lattice type: {type(basis)}")
        if not np.all(np.isfinite(basis)):
            raise ValueError(f"Lattice contains non-finite values:\n{basis}")
        return basis

    @property
    def basis(self) -> np.ndarray:
        """3x3 matrix with lattice vectors as rows."""
        return self.__basis

    @property
    def inverse(self) -> np.ndarray:
        """Inverse of :attr:`basis`, maps Cartesian rows to fractional rows."""
        return self.__inverse

    @property
    def det(self) -> float:
        """Signed determinant a1.(a2 x a3)."""
        return self.__det

    @property
    def volume(self) -> float:
        return abs(self.__det)

    def __repr__(self) -> str:
        return f"Lattice information:\n{self.basis}\nVolume: {self.volume}"

    def to_cartesian(self, frac: np.ndarray) -> np.ndarray:
        """Convert fractional coordinates (shape (3,) or (N, 3)) to Cartesian."""
        return np.asarray(frac, np.float64) @ self.basis

    def to_fractional(self, cart: np.ndarray) -> np.ndarray:
        """Convert Cartesian coordinates (shape (3,) or (N, 3)) to fractional."""
        return np.asarray(cart, np.float64) @ self.inverse

    @staticmethod
    def fold(frac: np.ndarray) -> np.ndarray:
        """Fold fractional coordinates into [0, 1), see :func:`inside_cell`."""
        return inside_cell(frac)

    @staticmethod
    def minimum_image(dfrac: np.ndarray) -> np.ndarray:
        """
        Fold fractional differences into (-0.5, 0.5] along each axis.

        Parameters
        ----------
        dfrac : np.ndarray
            Fractional coordinate differences, any shape ending in 3.

        Returns
        -------
        np.ndarray
            Periodic translate of ``dfrac`` closest to zero.
        """
        dfrac = np.asarray(dfrac, np.float64)
        return dfrac - np.ceil(dfrac - 0.5)

    def pbc(self, rij: np.ndarray) -> np.ndarray:
        """
        Apply periodic boundary conditions to a Cartesian displacement.

        Parameters
        ----------
        rij : np.ndarray
            Displacement vector(s) in Cartesian coordinates.

        Returns
        -------
        np.ndarray
            Wrapped displacement following the minimum image convention.
        """
        return self.to_cartesian(self.minimum_image(self.to_fractional(rij)))

    def get_thickness(self) -> np.ndarray:
        """
        Calculate the perpendicular spacing between opposite cell faces.

        Returns
        -------
        np.ndarray
            Array [t0, t1, t2], where ``t_i = volume / |a_j x a_k|``.
        """
        a = self.basis
        return np.array(
            [
                self.volume / np.linalg.norm(np.cross(a[1], a[2])),
                self.volume / np.linalg.norm(np.cross(a[2], a[0])),
                self.volume / np.linalg.norm(np.cross(a[0], a[1])),
            ],
            dtype=np.float64,
        )

    def shortest_translation(self, search_range: int = IMAGE_SEARCH_RANGE) -> float:
        """
        Length of the shortest nonzero lattice translation.

        Only translations with integer components in
        ``[-search_range, search_range]`` are tried. This is a practical
        heuristic, very skewed cells may hide a shorter vector outside the
        window.

        Parameters
        ----------
        search_range : int, optional
            Half-width of the image window. Defaults to 3.

        Returns
        -------
        float
            Shortest translation length found.
        """
        assert search_range >= 1, "search_range should be at least 1."
        n = np.arange(-search_range, search_range + 1)
        shifts = np.stack(np.meshgrid(n, n, n, indexing="ij"), axis=-1).reshape(-1, 3)
        shifts = shifts[np.any(shifts != 0, axis=1)]
        return float(np.sqrt(np.min(np.sum((shifts @ self.basis) ** 2, axis=1))))
