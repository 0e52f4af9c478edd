#!/usr/bin/env python

# Support setuptools only, distutils has a divergent and more annoying API and
# few folks will lack setuptools.
from setuptools import setup, find_packages

# Version info -- read without importing
_locals = {}
with open("assetrun/_version.py") as fp:
    exec(fp.read(), None, _locals)
version = _locals["__version__"]

exclude = ["tests", "tests.*"]

long_description = open("README.rst").read()

testing_deps = ["pytest>=7", "pytest-relaxed>=2", "mock>=4", "icecream>=2.1"]

setup(
    name="assetrun",
    version=version,
    description="Declarative clean, build & watch tasks for web assets",
    license="BSD",
    long_description=long_description,
    python_requires=">=3.7",
    packages=find_packages(exclude=exclude),
    include_package_data=True,
    install_requires=[
        "lexicon>=2.0",
        "PyYAML>=5.4",
        "libsass>=0.21",
        "rcssmin>=1.1",
        "rjsmin>=1.2",
        "watchdog>=2.1",
    ],
    extras_require={"testing": testing_deps},
    entry_points={
        "console_scripts": [
            "assetrun = assetrun.main:program.run",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Operating System :: POSIX",
        "Operating System :: Unix",
        "Operating System :: MacOS :: MacOS X",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Software Development",
        "Topic :: Software Development :: Build Tools",
    ],
)
