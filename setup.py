# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

from setuptools import setup

description = "Periodic nearest-neighbor search, elastic tensors, cylindrical slabs and fig output for crystal structures."
try:
    readme = []
    with open("README.rst", encoding="utf-8") as f:
        for i in range(25):
            readme.append(f.readline())
    readme = "".join(readme)
except Exception:
    readme = description


setup(
    name="pbcnn",
    version="0.1.0",
    author="mushroomfire aka HerrWu",
    author_email="yongchao_wu@bit.edu.cn",
    description=description,
    long_description=readme,
    long_description_content_type="text/x-rst",
    packages=["pbcnn"],
    zip_safe=False,
    license="BSD 3-Clause License",
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "polars>=0.20.26",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest", "scipy"],
    },
    classifiers=[
        "License :: OSI Approved :: BSD License",
        "Programming Language :: Python :: 3",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
    ],
)
