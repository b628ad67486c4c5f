import runpy
from setuptools import setup, find_packages

__version__ = runpy.run_path("ctceval/__version__.py")["__version__"]

requires = [
    "numpy",
    "imageio",
    "tifffile",
    "networkx",
    "threadpoolctl",
    "tqdm",
]


# optional dependencies for setuptools
extras = {
    "test": ["pytest"],
    "doc": ["pdoc"],
}

setup(
    name="ctceval",
    packages=find_packages(exclude=["test"]),
    version=__version__,
    install_requires=requires,
    extras_require=extras,
    license="MIT",
    entry_points={
        "console_scripts": [
            "ctc_measure = ctceval.cli:main",
            "ctc_consistency = ctceval.cli:consistency_main",
        ]
    },
)
