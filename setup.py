from setuptools import setup, find_packages


with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='socpgen',
    version="0.1.0",
    description="Random feasible second-order cone programs for benchmarking conic solvers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "examples"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy >= 1.17",
        "scs >= 2.0.2",  # 2.0.2 is the oldest version on conda forge
        "scipy >= 1.1.0",
        "threadpoolctl >= 1.1",
        "ecos"],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["socpgen = socpgen.cli:main"],
    },
    license="Apache License, Version 2.0",
    classifiers=[
        "Programming Language :: Python :: 3",
    ],
)
