# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from pbcnn.lattice import Lattice
from pbcnn.spatial_binning import Grid, calc_grid
from pbcnn.neighbor import Neighbor, PairList
from pbcnn.adjacency import NeighborTable, build_adjacency
from pbcnn.crystal import Crystal
from pbcnn.elastic import CrystalClass, ElasticTensor, make_cij, make_cijkl
from pbcnn.slab import Slab, build_cylinder_slab
from pbcnn.drawfig import FigWriter
from pbcnn.timer import timer
from pbcnn.exceptions import (
    CapacityExceededError,
    DegenerateLatticeError,
    InconsistentBinningError,
)

__all__ = [
    "Lattice",
    "Grid",
    "calc_grid",
    "Neighbor",
    "PairList",
    "NeighborTable",
    "build_adjacency",
    "Crystal",
    "CrystalClass",
    "ElasticTensor",
    "make_cij",
    "make_cijkl",
    "Slab",
    "build_cylinder_slab",
    "FigWriter",
    "timer",
    "CapacityExceededError",
    "DegenerateLatticeError",
    "InconsistentBinningError",
]
__author__ = "mushroomfire aka HerrWu"
__version__ = "0.1.0"
__license__ = "BSD License"
