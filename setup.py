"""setuptools setup for Tree Timers.

Install for development:
    pip install -e ".[test]"
    treetimers --help
"""

from setuptools import setup, find_packages

setup(
    name="treetimers",
    version="0.2.0",
    description="Nested countdown timers that share one time budget",
    packages=find_packages(include=["treetimers", "treetimers.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.4",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["treetimers = treetimers.cli:main"],
    },
)
