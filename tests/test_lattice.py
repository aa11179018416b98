from pbcnn.lattice import (
    Lattice,
    dcomp,
    determinant,
    inside_cell,
    inverse_matrix,
    multiply,
)
from pbcnn.exceptions import DegenerateLatticeError
import numpy as np
import pytest


def test_constructors():
    assert np.allclose(Lattice(2.0).basis, np.eye(3) * 2.0), "cubic lattice is wrong."
    assert np.allclose(Lattice([1, 2, 3]).basis, np.diag([1, 2, 3])), (
        "orthogonal lattice is wrong."
    )
    tri = Lattice([[1.0, 0, 0], [0.5, 1.0, 0], [0.2, 0.3, 1.5]])
    assert np.allclose(Lattice(tri).basis, tri.basis), "copy lattice is wrong."
    assert np.allclose(Lattice([2, 0, 0, 0, 2, 0, 0, 0, 2]).basis, np.eye(3) * 2)
    assert np.isclose(tri.det, 1.5) and np.isclose(tri.volume, 1.5)


def test_bad_input():
    with pytest.raises(ValueError):
        Lattice(np.zeros((2, 3)))
    with pytest.raises(ValueError):
        Lattice([[1, 0, 0], [0, np.nan, 0], [0, 0, 1]])
    with pytest.raises(TypeError):
        Lattice("cubic")


def test_coplanar_rejected():
    with pytest.raises(DegenerateLatticeError):
        Lattice([[1.0, 0, 0], [0, 1.0, 0], [1.0, 1.0, 0]])
    with pytest.raises(ValueError):
        # DegenerateLatticeError is a ValueError
        Lattice([[1.0, 0, 0], [2.0, 0, 0], [0, 0, 1.0]])
    with pytest.raises(DegenerateLatticeError):
        inverse_matrix(np.zeros((3, 3)))


def test_conversion():
    lat = Lattice([[2.95, 0, 0], [-1.475, 2.5548, 0], [0, 0, 4.68]])
    frac = np.random.default_rng(1).random((20, 3))
    cart = lat.to_cartesian(frac)
    assert np.allclose(cart[3], frac[3, 0] * lat.basis[0] + frac[3, 1] * lat.basis[1] + frac[3, 2] * lat.basis[2])
    assert np.allclose(lat.to_fractional(cart), frac), "fractional conversion is wrong."
    assert np.allclose(multiply(lat.basis, lat.inverse), np.eye(3))
    assert np.isclose(determinant(lat.basis), lat.det)


def test_fold():
    u = np.array([-0.25, 0.0, 1.0, 2.5, 1.0 - 1e-14, 0.3])
    assert np.allclose(Lattice.fold(u), [0.75, 0.0, 0.0, 0.5, 0.0, 0.3])
    assert np.isclose(inside_cell(-1.0), 0.0, atol=1e-12)
    assert 0.0 <= inside_cell(-1e-20) < 1.0


def test_minimum_image():
    d = np.array([0.5, -0.5, 0.7, -0.7, 0.2, 1.2])
    assert np.allclose(Lattice.minimum_image(d), [0.5, 0.5, -0.3, 0.3, 0.2, 0.2]), (
        "minimum image should fold into (-0.5, 0.5]."
    )
    lat = Lattice(10.0)
    assert np.allclose(lat.pbc(np.array([12.0, -8.0, 5.0])), [2.0, 2.0, 5.0])


def test_thickness():
    assert np.allclose(Lattice([3, 4, 5]).get_thickness(), [3, 4, 5])
    a = np.array([[1.0, 0, 0], [0.5, np.sqrt(3) / 2, 0], [0, 0, 2.0]])
    t = Lattice(a).get_thickness()
    assert np.allclose(t, [np.sqrt(3) / 2, np.sqrt(3) / 2, 2.0]), "thickness is wrong."


def test_shortest_translation():
    a = 3.615
    fcc = Lattice(np.array([[0, 0.5, 0.5], [0.5, 0, 0.5], [0.5, 0.5, 0]]) * a)
    assert np.isclose(fcc.shortest_translation(), a / np.sqrt(2))
    skew = Lattice([[1.0, 0, 0], [3.0, 1.0, 0], [0, 0, 5.0]])
    assert np.isclose(skew.shortest_translation(), 1.0)


def test_dcomp():
    assert dcomp(1.0, 1.0 + 5e-8)
    assert not dcomp(1.0, 1.0 + 2e-7)
