# setup.py
from setuptools import setup, find_packages

setup(
    name="kronos-ns",
    version="0.1.0",
    description="Rate-limited NationStates API client with update boundary searches",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "lxml>=4.9",
        "click>=8.0",
        "tzdata",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["kronos=kronos.cli:cli"],
    },
    python_requires=">=3.11",
)
