"""
Setup file for the Cracks package
"""

from setuptools import setup, find_packages
import os

# Create a minimal pyproject.toml if it does not exist
if not os.path.exists('pyproject.toml'):
    with open('pyproject.toml', 'w') as f:
        f.write('[build-system]\nrequires = ["setuptools"]\nbuild-backend = "setuptools.build_meta"')


setup(name="Cracks",
      description="Staggered phase field fracture driver with adaptive time stepping and mesh refinement.",
      version = '0.1.0',
      packages = find_packages(exclude=["tests", "tests.*"]),
      python_requires = ">=3.9",
      install_requires = ["numpy", "mpi4py", "tqdm", "pandas", "PyYAML"],
      extras_require = {"fem": ["fenics-dolfinx>=0.9", "fenics-basix"],
                        "test": ["pytest"]},
)
