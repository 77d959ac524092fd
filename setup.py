"""
cugrep

Literal line search accelerated with CUDA providing:
- Memory-mapped, windowed streaming of large files to the device
- Thousands of parallel lanes, one line region each
- Contains / prefix / suffix matching, case folding and inversion
- CPU backend running the same kernel when no GPU is present
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="cugrep",
    version="0.1.0",
    author="cugrep developers",
    description="Literal line search accelerated with CUDA",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Environment :: Console",
        "Topic :: Text Processing :: General",
        "Topic :: Utilities",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.22.0",
        "numba>=0.57.0",
    ],
    extras_require={
        "cuda": [
            "numba-cuda>=0.4.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-benchmark>=4.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cugrep=cugrep.cli:main",
        ],
    },
    package_data={
        "cugrep": ["py.typed"],
    },
)
