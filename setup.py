"""
Setup script for the wanemu WAN emulation controller.

This allows the package to be installed in development mode:
    pip install -e .

Or run directly:
    wanemu serve --port 3000
"""

from setuptools import setup, find_packages

setup(
    name="wanemu",
    version="0.1.0",
    description="Linux tc/netem WAN emulation controller for remote hosts",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "paramiko>=3.0",
        "flask>=2.3",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-mock",
            "black",
            "flake8",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "wanemu=wanemu.cli:main",
        ],
    },
)
