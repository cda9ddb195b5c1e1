#!/usr/bin/env python

import setuptools

setuptools.setup(
    name="virtattrs",
    version="0.1.0",
    description="Persist virtual attributes of SQLAlchemy models as a JSON mapping in a shared text column",
    python_requires=">=3.9",
    packages=setuptools.find_namespace_packages(include=["virtattrs", "virtattrs.*"]),
    install_requires=[
        "sqlalchemy>=2.0",
        "marshmallow>=3.13",
        "marshmallow-sqlalchemy>=0.29",
        "python-json-logger>=2.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
