"""Setup script for elastic-graph-lib."""

from setuptools import find_packages, setup

setup(
    name="elastic-graph-lib",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "elasticsearch>=8.0",
        "prometheus-client>=0.16",
    ],
    extras_require={
        "test": ["pytest>=7.0", "elastic-transport>=8.0"],
    },
)
