# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

"""
Elastic constants of the crystal classes
========================================

Any crystal has at most 21 independent elastic constants ``C_mn`` in Voigt
notation (1->11, 2->22, 3->33, 4->23, 5->13, 6->12). Symmetry reduces that
number; the tables here follow J. F. Nye, *Physical Properties of Crystals*
(1969), p. 140-141.

In :data:`CIJ_MATRIX`, an entry ``k > 0`` means ``C_mn`` is the ``k``-th
independent constant of the class, ``-k`` the same constant with opposite
sign, ``0`` a vanishing component and ``99`` the combination
``(C11 - C12) / 2``.
"""

from __future__ import annotations
from enum import IntEnum
from typing import Dict, Iterable, Union
import numpy as np


class CrystalClass(IntEnum):
    TRICLINIC = 0
    MONOCLINIC_X2 = 1
    MONOCLINIC_X3 = 2
    ORTHORHOMBIC = 3
    CUBIC = 4
    TETRAGONAL_NO45 = 5
    TETRAGONAL = 6
    TRIGONAL_NOMIRROR = 7
    TRIGONAL = 8
    HEXAGONAL = 9
    ISOTROPIC = 10


NCLASSES = len(CrystalClass)

CLASS_NAME_INVERSION = (
    "triclinic (a!=b!=c, alpha!=beta!=gamma): -1, order=2",
    "monoclinic (a!=b!=c, alpha==gamma==90): 2|m, order=4",
    "monoclinic (a!=b!=c, alpha==beta==90): 2|m, order=4",
    "orthorhombic (a!=b!=c, alpha=beta=gamma=90): mmm, order=8",
    "cubic (a=b=c, alpha=beta=gamma=90): m3m, order = 48  or  m3, order=24",
    "tetragonal--no diag mirror plane (a=b!=c, alpha=beta=gamma=90): 4|m, order=8",
    "tetragonal (a=b!=c, alpha=beta=gamma=90): 4|mmm, order=16",
    "trigonal--no diag mirror plane (a=b!=c, alpha=beta=90, gamma=120): -3, order=6",
    "trigonal (a=b!=c, alpha=beta=90, gamma=120): -3m, order=12",
    "hexagonal (a=b!=c, alpha=beta=90, gamma=120): 6|mmm, order=24  or  6|m, order=12",
    "isotropic",
)

CLASS_NAME_NOINVERSION = (
    "triclinic (a!=b!=c, alpha!=beta!=gamma): 1, order=1",
    "monoclinic (a!=b!=c, alpha==gamma==90): 2 m, order=2",
    "monoclinic (a!=b!=c, alpha==beta==90): 2 m, order=2",
    "orthorhombic (a!=b!=c, alpha=beta=gamma=90): 222 mm2, order=4",
    "cubic (a=b=c, alpha=beta=gamma=90): -43m 432, order = 24  or  23, order=12",
    "tetragonal--no diag mirror plane (a=b!=c, alpha=beta=gamma=90): 4 -4, order=4",
    "tetragonal (a=b!=c, alpha=beta=gamma=90): -42m 4mm 422, order=8",
    "trigonal--no diag mirror plane (a=b!=c, alpha=beta=90, gamma=120): 3, order=3",
    "trigonal (a=b!=c, alpha=beta=90, gamma=120): 3m 32, order=6",
    "hexagonal (a=b!=c, alpha=beta=90, gamma=120): -6m2 6mm 622, order=12  or  6 -6, order=6",
    "isotropic",
)

HALF_DIFFERENCE = 99

CIJ_MATRIX = np.array(
    [
        # triclinic
        [
            [1, 2, 3, 4, 5, 6],
            [2, 7, 8, 9, 10, 11],
            [3, 8, 12, 13, 14, 15],
            [4, 9, 13, 16, 17, 18],
            [5, 10, 14, 17, 19, 20],
            [6, 11, 15, 18, 20, 21],
        ],
        # monoclinic, diad || x_2
        [
            [1, 2, 3, 0, 4, 0],
            [2, 5, 6, 0, 7, 0],
            [3, 6, 8, 0, 9, 0],
            [0, 0, 0, 10, 0, 11],
            [4, 7, 9, 0, 12, 0],
            [0, 0, 0, 11, 0, 13],
        ],
        # monoclinic, diad || x_3
        [
            [1, 2, 3, 0, 0, 4],
            [2, 5, 6, 0, 0, 7],
            [3, 6, 8, 0, 0, 9],
            [0, 0, 0, 10, 11, 0],
            [0, 0, 0, 11, 12, 0],
            [4, 7, 9, 0, 0, 13],
        ],
        # orthorhombic
        [
            [1, 2, 3, 0, 0, 0],
            [2, 4, 5, 0, 0, 0],
            [3, 5, 6, 0, 0, 0],
            [0, 0, 0, 7, 0, 0],
            [0, 0, 0, 0, 8, 0],
            [0, 0, 0, 0, 0, 9],
        ],
        # cubic
        [
            [1, 2, 2, 0, 0, 0],
            [2, 1, 2, 0, 0, 0],
            [2, 2, 1, 0, 0, 0],
            [0, 0, 0, 3, 0, 0],
            [0, 0, 0, 0, 3, 0],
            [0, 0, 0, 0, 0, 3],
        ],
        # tetragonal, 4 -4 4|m
        [
            [1, 2, 3, 0, 0, 4],
            [2, 1, 3, 0, 0, -4],
            [3, 3, 5, 0, 0, 0],
            [0, 0, 0, 6, 0, 0],
            [0, 0, 0, 0, 6, 0],
            [4, -4, 0, 0, 0, 7],
        ],
        # tetragonal, 4mm -42m 422 4|mmm
        [
            [1, 2, 3, 0, 0, 0],
            [2, 1, 3, 0, 0, 0],
            [3, 3, 4, 0, 0, 0],
            [0, 0, 0, 5, 0, 0],
            [0, 0, 0, 0, 5, 0],
            [0, 0, 0, 0, 0, 6],
        ],
        # trigonal, 3 -3
        [
            [1, 2, 3, 4, -5, 0],
            [2, 1, 3, -4, 5, 0],
            [3, 3, 6, 0, 0, 0],
            [4, -4, 0, 7, 0, 5],
            [-5, 5, 0, 0, 7, -4],
            [0, 0, 0, 5, -4, 99],
        ],
        # trigonal, 32 3m -3m
        [
            [1, 2, 3, 4, 0, 0],
            [2, 1, 3, -4, 0, 0],
            [3, 3, 5, 0, 0, 0],
            [4, -4, 0, 6, 0, 0],
            [0, 0, 0, 0, 6, -4],
            [0, 0, 0, 0, -4, 99],
        ],
        # hexagonal
        [
            [1, 2, 3, 0, 0, 0],
            [2, 1, 3, 0, 0, 0],
            [3, 3, 4, 0, 0, 0],
            [0, 0, 0, 5, 0, 0],
            [0, 0, 0, 0, 5, 0],
            [0, 0, 0, 0, 0, 99],
        ],
        # isotropic
        [
            [1, 2, 2, 0, 0, 0],
            [2, 1, 2, 0, 0, 0],
            [2, 2, 1, 0, 0, 0],
            [0, 0, 0, 99, 0, 0],
            [0, 0, 0, 0, 99, 0],
            [0, 0, 0, 0, 0, 99],
        ],
    ],
    dtype=np.int32,
)

# Voigt labels of the independent constants, in input order.
CLASS_CIJ = (
    (11, 12, 13, 14, 15, 16, 22, 23, 24, 25, 26, 33, 34, 35, 36, 44, 45, 46, 55, 56, 66),
    (11, 12, 13, 15, 22, 23, 25, 33, 35, 44, 46, 55, 66),
    (11, 12, 13, 16, 22, 23, 26, 33, 36, 44, 45, 55, 66),
    (11, 12, 13, 22, 23, 33, 44, 55, 66),
    (11, 12, 44),
    (11, 12, 13, 16, 33, 44, 66),
    (11, 12, 13, 33, 44, 66),
    (11, 12, 13, 14, 25, 33, 44),
    (11, 12, 13, 14, 33, 44),
    (11, 12, 13, 33, 44),
    (11, 12),
)

CLASS_LEN = tuple(len(labels) for labels in CLASS_CIJ)

# (i, j) -> Voigt index m, zero based
IJ2M = np.array([[0, 5, 4], [5, 1, 3], [4, 3, 2]], dtype=np.int32)


def _check_constants(
    crystal_class: Union[int, CrystalClass], cmn: Iterable[float]
) -> tuple:
    crystal_class = CrystalClass(crystal_class)
    cmn = np.asarray(cmn, np.float64).ravel()
    if cmn.shape[0] != CLASS_LEN[crystal_class]:
        raise ValueError(
            f"{crystal_class.name.lower()} needs {CLASS_LEN[crystal_class]} elastic constants "
            f"{CLASS_CIJ[crystal_class]}, got {cmn.shape[0]}."
        )
    return crystal_class, cmn


def make_cij(crystal_class: Union[int, CrystalClass], cmn: Iterable[float]) -> np.ndarray:
    """
    Expand the independent constants of a class into the 6x6 Voigt matrix.

    Parameters
    ----------
    crystal_class : int or CrystalClass
        Class index, 0 (triclinic) to 10 (isotropic).
    cmn : Iterable[float]
        Independent constants ordered as in :data:`CLASS_CIJ`.

    Returns
    -------
    np.ndarray
        Symmetric ``(6, 6)`` stiffness matrix.

    Raises
    ------
    ValueError
        If the number of constants does not match the class.
    """
    crystal_class, cmn = _check_constants(crystal_class, cmn)
    table = CIJ_MATRIX[crystal_class]
    c99 = 0.5 * (cmn[table[0, 0] - 1] - cmn[table[0, 1] - 1])
    values = np.concatenate([[0.0], cmn])
    cij = np.sign(table) * values[np.where(table == HALF_DIFFERENCE, 0, np.abs(table))]
    cij[table == HALF_DIFFERENCE] = c99
    return cij


def make_cijkl(crystal_class: Union[int, CrystalClass], cmn: Iterable[float]) -> np.ndarray:
    """
    Expand the independent constants of a class into the full tensor.

    Parameters
    ----------
    crystal_class : int or CrystalClass
        Class index, 0 (triclinic) to 10 (isotropic).
    cmn : Iterable[float]
        Independent constants ordered as in :data:`CLASS_CIJ`.

    Returns
    -------
    np.ndarray
        ``(3, 3, 3, 3)`` tensor with ``C[i, j, k, l] = C_mn`` where
        ``m = IJ2M[i, j]`` and ``n = IJ2M[k, l]``. Reshape to ``(9, 9)``
        for the ``3i + j`` row layout.
    """
    cij = make_cij(crystal_class, cmn)
    return cij[IJ2M[:, :, np.newaxis, np.newaxis], IJ2M[np.newaxis, np.newaxis, :, :]]


class ElasticTensor:
    """
    Elastic stiffness of a crystal from its symmetry class.

    Parameters
    ----------
    crystal_class : int or CrystalClass
        Symmetry class of the crystal.
    cmn : Iterable[float]
        Independent constants in the order of :data:`CLASS_CIJ`, e.g.
        ``[C11, C12, C44]`` for a cubic crystal.

    Attributes
    ----------
    Cij : np.ndarray
        ``(6, 6)`` Voigt matrix.
    Cijkl : np.ndarray
        ``(3, 3, 3, 3)`` tensor.

    Examples
    --------
    .. code-block:: python

        from pbcnn.elastic import ElasticTensor, CrystalClass

        Cu = ElasticTensor(CrystalClass.CUBIC, [168.4, 121.4, 75.4])
        print(Cu.Cij)
    """

    def __init__(self, crystal_class: Union[int, CrystalClass], cmn: Iterable[float]):
        self.crystal_class, self.cmn = _check_constants(crystal_class, cmn)
        self.Cij = make_cij(self.crystal_class, self.cmn)
        self.Cijkl = make_cijkl(self.crystal_class, self.cmn)

    def cmn_dict(self) -> Dict[str, float]:
        """Independent constants keyed by their Voigt label, e.g. ``"C11"``."""
        return {
            f"C{label}": float(value)
            for label, value in zip(CLASS_CIJ[self.crystal_class], self.cmn)
        }

    def describe(self, inversion: bool = True) -> str:
        if inversion:
            return CLASS_NAME_INVERSION[self.crystal_class]
        return CLASS_NAME_NOINVERSION[self.crystal_class]

    def __repr__(self) -> str:
        return f"Elastic constants of {self.describe()}:\n{self.Cij}"
