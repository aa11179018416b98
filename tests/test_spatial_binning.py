from pbcnn.spatial_binning import Grid, calc_grid
from pbcnn.lattice import Lattice
from pbcnn.exceptions import InconsistentBinningError
import numpy as np
import pytest


def test_calc_grid():
    assert np.array_equal(calc_grid(Lattice(10.0), 3.0), [3, 3, 3])
    assert np.array_equal(calc_grid(Lattice([10.0, 4.0, 2.0]), 3.0), [3, 1, 1])
    assert np.array_equal(calc_grid(Lattice(1.0), 20.0), [1, 1, 1]), (
        "grid should have at least one cell per axis."
    )
    hexa = Lattice([[6.0, 0, 0], [3.0, 3 * np.sqrt(3), 0], [0, 0, 9.0]])
    # perpendicular spacing is 3 sqrt(3) ~ 5.196 along a1 and a2
    assert np.array_equal(calc_grid(hexa, 2.0), [2, 2, 4])
    for rc in [0.0, -1.0, np.nan]:
        with pytest.raises(ValueError):
            calc_grid(Lattice(1.0), rc)


def test_neighbor_list():
    grid = Grid([4, 4, 4])
    assert grid.neighbor_list.shape == (64, 27)
    for cell in [0, 21, 63]:
        assert len(np.unique(grid.neighbor_list[cell])) == 27, (
            "4x4x4 grid should have 27 distinct neighbor cells."
        )
        assert cell in grid.neighbor_list[cell]
    # cell (0, 0, 0) wraps to (3, 3, 3) first
    assert grid.neighbor_list[0, 0] == grid.cell_index(np.array([3, 3, 3]))
    assert grid.neighbor_list[0, 13] == 0

    small = Grid([1, 2, 3])
    assert small.nneigh == 6
    assert small.neighbor_list[0].tolist() == [4, 0, 2, 5, 1, 3]

    single = Grid([1, 1, 1])
    assert single.neighbor_list.tolist() == [[0]]


def test_cell_index():
    grid = Grid([2, 3, 4])
    assert grid.cell_index(np.array([1, 2, 3])) == 1 + 2 * (2 + 3 * 3)
    assert grid.ncell == 24


@pytest.mark.parametrize("N", [0, 1, 7, 100, 1000])
def test_populate_counts(N):
    frac = np.random.default_rng(N).random((N, 3)) * 3.0 - 1.0
    grid = Grid([3, 4, 5]).populate(frac)
    assert grid.population.sum() == N, "binned atoms should equal input atoms."
    assert np.array_equal(np.sort(grid.cell_atoms), np.arange(N)), (
        "each atom should be binned exactly once."
    )


def test_populate_location_and_order():
    frac = np.array(
        [[0.1, 0.1, 0.1], [0.9, 0.9, 0.9], [0.2, 0.05, 0.3], [1.1, 0.1, 0.1], [-0.1, 0.95, 0.6]]
    )
    grid = Grid([2, 2, 2]).populate(frac)
    assert grid.cell_atoms_of(0).tolist() == [0, 2, 3], (
        "atoms should keep input order inside a cell, out of cell atoms are folded."
    )
    assert grid.cell_atoms_of(7).tolist() == [1, 4]
    assert grid.max_population == 3
    assert grid.estimated_capacity == 4


def test_populate_edge_of_cell():
    frac = np.array([[1.0 - 1e-17, 0.0, 0.0], [np.nextafter(1.0, 0.0), 0.5, 0.999999999999]])
    grid = Grid([7, 7, 7]).populate(frac)
    assert grid.population.sum() == 2


def test_populate_rebuilds():
    grid = Grid([2, 2, 2])
    grid.populate(np.random.default_rng(0).random((50, 3)))
    grid.populate(np.array([[0.1, 0.1, 0.1]]))
    assert grid.N == 1 and grid.population.sum() == 1


def test_inconsistent_binning():
    frac = np.array([[0.1, 0.1, 0.1], [np.nan, 0.5, 0.5], [0.5, np.inf, 0.5]])
    with pytest.raises(InconsistentBinningError) as err:
        Grid([2, 2, 2]).populate(frac)
    assert err.value.found == 1 and err.value.expected == 3


def test_from_lattice_max_cells():
    assert np.array_equal(Grid.from_lattice(Lattice(10.0), 3.0).ngrid, [3, 3, 3])
    assert np.array_equal(Grid.from_lattice(Lattice(10.0), 3.0, max_cells=100).ngrid, [3, 3, 3])
    grid = Grid.from_lattice(Lattice(100.0), 0.05, max_cells=2)
    assert np.array_equal(grid.ngrid, [1, 1, 1]), "grid should shrink to the cell budget."
    grid = Grid.from_lattice(Lattice([40.0, 20.0, 10.0]), 1.0, max_cells=64)
    assert grid.ncell <= 64
    assert np.all(grid.ngrid >= 1)
