import re
from setuptools import setup

with open("README.md", "r") as fh:
    long_description = fh.read()

with open("pyocto/__init__.py", "r") as fh:
    __version__ = re.search(r'^__version__ = "(.*?)"', fh.read(), re.M).group(1)

setup(
      name='pyocto',
      version=__version__,
      description='Density-based topology optimization of compliance with the Optimality Criteria method',
      long_description=long_description,
      long_description_content_type="text/markdown",
      keywords='Topology Optimization Optimality Criteria Compliance SIMP Density Filter Structural Design',
      packages=['pyocto', 'pyocto.common', 'pyocto.modules', 'pyocto.solvers'],
      install_requires=['numpy', 'sympy', 'scipy>=1.7', 'matplotlib'],
      extras_require={'test': ['pytest']},
      python_requires='>=3.8',
      classifiers=[
            "Programming Language :: Python :: 3",
            "Operating System :: OS Independent",
            "License :: OSI Approved :: MIT License",
            "Topic :: Scientific/Engineering"
      ],
)
