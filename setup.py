"""
Setup script for the web PDF service.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="webpdf-service",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "playwright>=1.42",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "webpdf-service=webpdf_service.__main__:main",
        ],
    },
)
