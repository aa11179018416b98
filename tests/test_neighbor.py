from pbcnn.neighbor import Neighbor, PairList
from pbcnn.lattice import Lattice
from pbcnn.exceptions import CapacityExceededError, InconsistentBinningError
from scipy.spatial import cKDTree
import numpy as np
import pytest

FCC_FRAC = np.array(
    [[0.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]]
)


def random_triclinic(N, seed):
    lattice = Lattice([[12.0, 0.0, 0.0], [2.0, 11.0, 0.0], [1.5, -1.0, 13.0]])
    frac = np.random.default_rng(seed).random((N, 3))
    return lattice, frac


def sorted_pairs(pairs):
    order = np.lexsort((pairs.j, pairs.i))
    return pairs.i[order], pairs.j[order], pairs.r[order]


def test_single_atom_images():
    lattice = Lattice(1.0)
    frac = np.zeros((1, 3))
    pairs = Neighbor(lattice, frac, 1.01, method="brute").compute()
    assert len(pairs) == 6, "simple cubic atom should see its 6 images."
    assert np.all(pairs.i == 0) and np.all(pairs.j == 0)
    assert np.allclose(pairs.r, 1.0)
    assert np.array_equal(np.abs(pairs.shift).sum(axis=1), np.ones(6))
    assert len(Neighbor(lattice, frac, 1.01, method="grid").compute()) == 0, (
        "grid search never bonds an atom to itself."
    )


def test_two_atoms_half_cell():
    lattice = Lattice(1.0)
    frac = np.array([[0.0, 0.0, 0.0], [0.5, 0.0, 0.0]])
    pairs = Neighbor(lattice, frac, 0.6, method="grid").compute()
    assert pairs.i.tolist() == [0, 1]
    assert pairs.j.tolist() == [1, 0]
    assert np.allclose(pairs.r, 0.5)

    brute = Neighbor(lattice, frac, 0.6, method="brute").compute()
    assert len(brute) == 4, "brute force should find both images of the partner."
    assert np.allclose(brute.r, 0.5)
    assert sorted(brute.shift[:, 0].tolist()) == [-1, 0, 0, 1]


def test_grid_matches_brute_triclinic():
    lattice, frac = random_triclinic(150, 1)
    rc = 0.45 * lattice.get_thickness().min()
    grid = Neighbor(lattice, frac, rc, method="grid")
    assert grid.grid_is_exact()
    gi, gj, gr = sorted_pairs(grid.compute())
    bi, bj, br = sorted_pairs(Neighbor(lattice, frac, rc, method="brute").compute())
    assert np.array_equal(gi, bi) and np.array_equal(gj, bj), (
        "grid and brute force should find the same pairs."
    )
    assert np.allclose(gr, br)


def test_grid_matches_brute_many_cells():
    lattice, frac = random_triclinic(300, 2)
    rc = 2.5
    neigh = Neighbor(lattice, frac, rc, method="grid")
    gi, gj, gr = sorted_pairs(neigh.compute())
    assert np.all(neigh.grid.ngrid >= 3)
    bi, bj, br = sorted_pairs(Neighbor(lattice, frac, rc, method="brute").compute())
    assert np.array_equal(gi, bi) and np.array_equal(gj, bj)
    assert np.allclose(gr, br)


def test_against_kdtree():
    box = np.array([5.0, 6.0, 7.0])
    lattice = Lattice(box)
    frac = np.random.default_rng(3).random((80, 3))
    pos = Lattice.fold(frac) * box
    rc = 1.5
    pairs = Neighbor(lattice, frac, rc).compute()
    ref = cKDTree(pos, boxsize=box).query_pairs(rc, output_type="ndarray")
    mine = {(i, j) for i, j in zip(pairs.i.tolist(), pairs.j.tolist()) if i < j}
    assert mine == {(int(i), int(j)) for i, j in ref}, "pairs differ from cKDTree."


def test_symmetric_pairs():
    lattice, frac = random_triclinic(100, 4)
    for method in ["grid", "brute"]:
        pairs = Neighbor(lattice, frac, 3.0, method=method).compute()
        assert len(pairs) % 2 == 0, "every pair should be stored twice."
        forward = sorted(zip(pairs.i.tolist(), pairs.j.tolist()))
        backward = sorted(zip(pairs.j.tolist(), pairs.i.tolist()))
        assert forward == backward


def test_unit_vectors():
    lattice, frac = random_triclinic(60, 5)
    neigh = Neighbor(lattice, frac, 6.5, method="brute")
    pairs = neigh.compute()
    assert np.allclose(np.linalg.norm(pairs.vec, axis=1), 1.0)
    disp = lattice.to_cartesian(neigh.frac[pairs.j] + pairs.shift - neigh.frac[pairs.i])
    assert np.allclose(pairs.vec * pairs.r[:, np.newaxis], disp)
    assert np.all(pairs.r <= 6.5)


def test_coincident_atoms():
    frac = np.array([[0.1, 0.1, 0.1], [0.1, 0.1, 0.1]])
    pairs = Neighbor(Lattice(10.0), frac, 1.0).compute()
    assert len(pairs) == 2
    assert np.all(pairs.r == 0.0)
    assert np.all(pairs.vec == 0.0), "coincident atoms should get a zero vector."


def test_contiguous_first_atom():
    lattice, frac = random_triclinic(200, 6)
    for method in ["grid", "brute"]:
        pairs = Neighbor(lattice, frac, 2.5, method=method).compute()
        runs = 1 + np.count_nonzero(np.diff(pairs.i))
        assert runs == len(np.unique(pairs.i)), "pairs of one atom should be contiguous."
    brute = Neighbor(lattice, frac, 2.5, method="brute").compute()
    assert np.all(np.diff(brute.i) >= 0)


def test_fcc_brute():
    a = 3.615
    pairs = Neighbor(Lattice(a), FCC_FRAC, 2.6, method="brute").compute()
    assert len(pairs) == 48
    assert np.array_equal(np.bincount(pairs.i), [12, 12, 12, 12])
    assert np.allclose(pairs.r, a / np.sqrt(2))


def test_auto_method():
    assert Neighbor(Lattice(3.615), FCC_FRAC, 2.6, method="auto").method == "brute"
    assert Neighbor(Lattice(10.845), FCC_FRAC / 3, 2.6, method="auto").method == "grid"


def test_capacity():
    lattice = Lattice(3.615)
    with pytest.raises(CapacityExceededError):
        Neighbor(lattice, FCC_FRAC, 2.6, method="brute", max_pairs=5).compute()
    pairs = Neighbor(lattice, FCC_FRAC, 2.6, method="brute", max_pairs=48).compute()
    assert len(pairs) == 48

    big, frac = random_triclinic(200, 7)
    with pytest.raises(CapacityExceededError):
        Neighbor(big, frac, 3.0, method="grid", max_pairs=10).compute()
    neigh = Neighbor(big, frac, 3.0, method="grid")
    pairs = neigh.compute()
    assert neigh.capacity_estimate >= len(pairs)


def test_invalid_arguments():
    lattice = Lattice(1.0)
    frac = np.zeros((1, 3))
    for rc in [0.0, -0.5, np.inf]:
        with pytest.raises(ValueError):
            Neighbor(lattice, frac, rc)
    with pytest.raises(AssertionError):
        Neighbor(lattice, frac, 0.5, method="kdtree")


def test_empty_and_polars():
    pairs = Neighbor(Lattice(5.0), np.zeros((0, 3)), 1.0).compute()
    assert len(pairs) == 0
    assert pairs.rc == 1.0

    pairs = Neighbor(Lattice(3.615), FCC_FRAC, 2.6, method="brute").compute()
    df = pairs.to_polars()
    assert df.columns == ["i", "j", "r", "vx", "vy", "vz"]
    assert df.shape[0] == 48
    assert np.allclose(df["r"].to_numpy(), pairs.r)


def test_concatenate():
    pairs = Neighbor(Lattice(3.615), FCC_FRAC, 2.6, method="brute").compute()
    both = PairList.concatenate([pairs, pairs], rc=2.6)
    assert len(both) == 96
    assert len(PairList.concatenate([])) == 0
    # four images of each partner share the same triplet
    assert len(pairs.triplets()) == 12


def wide_window_pairs(lattice, frac, rc, width=10):
    n = np.arange(-width, width + 1)
    shifts = np.stack(np.meshgrid(n, n, n, indexing="ij"), axis=-1).reshape(-1, 3)
    u = Lattice.fold(frac)
    found = []
    for i in range(u.shape[0]):
        for j in range(u.shape[0]):
            d = (u[j] - u[i] + shifts) @ lattice.basis
            for s in shifts[np.sum(d * d, axis=1) <= rc * rc]:
                if i != j or np.any(s != 0):
                    found.append((i, j, *s.tolist()))
    return sorted(found)


def test_brute_skewed_cell():
    lattice = Lattice(
        [[0.6514, 0.3188, 0.0534], [0.9565, 0.3427, 0.2175], [0.2664, -0.2163, 1.3501]]
    )
    frac = np.random.default_rng(8).random((3, 3))
    rc = 0.2974
    neigh = Neighbor(lattice, frac, rc, method="auto")
    assert neigh.method == "brute"
    pairs = neigh.compute()
    assert np.all(neigh.max_shift >= np.ceil(rc / lattice.get_thickness()) + 1)
    mine = sorted(
        (i, j, *s) for i, j, s in zip(pairs.i.tolist(), pairs.j.tolist(), pairs.shift.tolist())
    )
    assert mine == wide_window_pairs(lattice, frac, rc), (
        "brute force should find every image of a skewed cell."
    )


def test_non_finite_coordinates():
    frac = np.array([[0.0, 0.0, 0.0], [np.nan, 0.5, 0.5]])
    for method in ["grid", "brute", "auto"]:
        with pytest.raises(InconsistentBinningError) as err:
            Neighbor(Lattice(1.0), frac, 1.01, method=method).compute()
        assert err.value.found == 1 and err.value.expected == 2


def test_grid_capped_by_atoms():
    frac = np.array([[0.1, 0.1, 0.1], [0.1003, 0.1, 0.1]])
    neigh = Neighbor(Lattice(100.0), frac, 0.05)
    pairs = neigh.compute()
    assert neigh.grid.ncell <= 2, "grid should not have more cells than atoms."
    assert len(pairs) == 2
    assert np.allclose(pairs.r, 0.03)
