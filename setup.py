# With help from: https://github.com/pypa/sampleproject

# Always prefer setuptools over distutils
from setuptools import setup, find_packages
import pathlib

here = pathlib.Path(__file__).parent.resolve()

# Get the long description from the README file
long_description = (here / "README.md").read_text(encoding="utf-8")

# Core code for generating environment covariance matrices
deps_core = [
    "numpy",
]

# Extra packages for the repeated-trial statistics script
deps_scripts = [
    "tqdm",
]

# Extra packages for running the test suite
deps_test = [
    "pytest",
]

setup(
    name="olfactory-environment",
    version="1.0.0",
    description="synthetic odorant environment covariance matrices for olfactory receptor analyses",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["olfactory_environment", "olfactory_environment.*"]),
    python_requires=">=3.9, <4",
    install_requires=deps_core,
    extras_require={
        "scripts": deps_scripts,
        "test": deps_test + deps_scripts,
        "all": deps_scripts + deps_test,
    },
)
