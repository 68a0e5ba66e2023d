#!/usr/bin/env python
from setuptools import setup, find_packages
from os import path
import sys

min_py_version = (3, 10)

if sys.version_info < min_py_version:
    sys.exit(
        "dbadmin-mysql is only supported for Python {}.{} or higher".format(*min_py_version)
    )

here = path.abspath(path.dirname(__file__))

long_description = (
    "The MySQL and MariaDB dialect of a database administration tool: "
    "schema introspection and DDL generation."
)

# read in version number into __version__
with open(path.join(here, "src", "dbadmin_mysql", "version.py")) as f:
    exec(f.read())

with open(path.join(here, "requirements.txt")) as f:
    requirements = [line.split("#", 1)[0].rstrip() for line in f.readlines()]
    requirements = [line for line in requirements if line]

setup(
    name="dbadmin-mysql",
    version=__version__,
    description="MySQL and MariaDB schema introspection and DDL generation.",
    long_description=long_description,
    author="dbadmin-mysql contributors",
    license="Apache License 2.0",
    keywords=[
        "database",
        "mysql",
        "mariadb",
        "schema introspection",
        "ddl",
    ],
    package_dir={"": "src"},
    packages=find_packages(where="src", exclude=["tests*"]),
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    python_requires=">={}.{}".format(*min_py_version),
)
