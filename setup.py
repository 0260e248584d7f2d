"""Setup script for the bonsai package."""

from setuptools import find_packages, setup

setup(
    name="bonsai-dashboard",
    version="0.1.0",
    description="Bonsai environmental sensor dashboard",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml",
        "python-dotenv",
        "aiohttp",
        "rich",
        "tzdata",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "bonsai-dashboard=bonsai.display:main",
        ],
    },
)
