# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from datetime import datetime
from functools import wraps


def timer(function=None, *, label=None):
    """Print the wall time of each call of the decorated function.

    Can be used bare (``@timer``) or with a label (``@timer(label="grid")``).
    """

    def decorate(func):
        name = func.__qualname__ if label is None else label

        @wraps(func)
        def timed(*args, **kwargs):
            start = datetime.now()
            result = func(*args, **kwargs)
            print(f"{name} finished. Time costs {datetime.now() - start}.")
            return result

        return timed

    if function is None:
        return decorate
    return decorate(function)
