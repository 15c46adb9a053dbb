from setuptools import setup, find_packages

# Metadata and dependencies live in pyproject.toml.
# This shim keeps `python setup.py develop` working for older tooling.
setup(
    packages=find_packages(where="src"),
    package_dir={"": "src"},
)
