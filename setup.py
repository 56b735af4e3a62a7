"""Setup script for tensortrace package."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="tensortrace",
    version="0.1.0",
    description="Pluggable debug sinks that dump traced tensors as text or replayable PyTorch scripts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Software Development :: Debuggers",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.10",
    install_requires=["numpy"],
    extras_require={
        "torch": ["torch"],
        "all": ["torch"],
        "dev": ["pytest", "pytest-cov", "torch"],
    },
    keywords="debugging tensor tracing numpy pytorch runtime",
)
