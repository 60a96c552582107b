"""Setup script for the rbmkit library."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = (
        "Restricted Boltzmann Machines trained with contrastive divergence."
    )

# Read version from __init__.py
version_file = Path(__file__).parent / "rbmkit" / "__init__.py"
version = "0.1.0"  # Default version
if version_file.exists():
    with open(version_file) as f:
        for line in f:
            if line.startswith("__version__"):
                version = line.split("=")[1].strip().strip('"\'')
                break

setup(
    name="rbmkit",
    version=version,
    author="rbmkit Contributors",
    author_email="",
    description="Restricted Boltzmann Machines with CD-k training in PyTorch",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "docs"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.10",
    install_requires=[
        "torch>=2.2.0",
        "numpy>=1.22.0",
        "matplotlib>=3.5.0",
        "tqdm>=4.60.0",
        "pydantic>=2.0.0",
        "structlog>=21.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=2.0",
            "rich>=12.0",
        ],
        "rich": [
            "rich>=12.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
