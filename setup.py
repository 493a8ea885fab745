"""
Setup script for Ingestion Orchestrator

Priority batch ingestion service: splits submitted item ids into fixed-size
batches and fetches them from an external resource under a global rate limit.
"""

from setuptools import setup, find_packages
import pathlib

here = pathlib.Path(__file__).parent.resolve()

# Get the long description from the README file
try:
    long_description = (here / "README.md").read_text(encoding="utf-8")
except FileNotFoundError:
    long_description = """
    Ingestion Orchestrator

    Priority batch ingestion service: splits submitted item ids into fixed-size
    batches, fetches them one batch at a time under a global rate limit, and
    reports per-submission status.
    """

setup(
    name="ingestion-orchestrator",
    version="1.0.0",
    description="Rate-limited, priority-ordered batch ingestion scheduler with status tracking",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Ingestion Orchestrator Team",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Framework :: AsyncIO",
        "Framework :: FastAPI",
    ],
    keywords="ingestion, batch processing, rate limiting, priority queue, async",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    python_requires=">=3.9",
    install_requires=[
        # Core dependencies
        "click>=8.0.0",

        # Networking
        "httpx>=0.24.0",

        # Configuration and serialization
        "pyyaml>=6.0",
        "pydantic>=2.0.0",

        # HTTP API
        "fastapi>=0.95.0",
        "uvicorn>=0.20.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=22.0.0",
            "isort>=5.10.0",
            "mypy>=1.0.0",
            "coverage>=6.0.0",
            "flake8>=5.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ingestion-orchestrator=ingestion_orchestrator.cli.main:main",
            "ingo=ingestion_orchestrator.cli.main:main",
        ],
    },
)
