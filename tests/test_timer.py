from pbcnn.timer import timer
from pbcnn.crystal import Crystal
import numpy as np


@timer
def square(x):
    return x * x


@timer(label="neighbor search")
def search(crystal, rc):
    return crystal.build_neighbor(rc, method="brute")


def test_bare_timer(capsys):
    assert square(3) == 9
    out = capsys.readouterr().out
    assert out.startswith("square finished. Time costs ")
    assert square.__name__ == "square"


def test_labelled_timer(capsys):
    pairs = search(Crystal(1.0, frac=np.zeros((1, 3))), 1.01)
    assert len(pairs) == 6
    assert "neighbor search finished." in capsys.readouterr().out
