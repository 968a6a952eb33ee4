# ============================================
# Veracity - setup.py
# Python packaging setup
# ============================================

from pathlib import Path
from setuptools import setup, find_packages

VERSION = "1.0.0"

# Read README for long description
def get_long_description():
    """Get long description from README.md"""
    readme_path = Path(__file__).parent / "README.md"
    if readme_path.exists():
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return "Typed columnar tables, k-nearest-neighbors models and evaluation metrics"

# Read requirements.txt
def get_requirements():
    """Parse requirements.txt for dependencies"""
    requirements_path = Path(__file__).parent / "requirements.txt"
    requirements = []

    if requirements_path.exists():
        with open(requirements_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip comments and empty lines
                if line and not line.startswith("#"):
                    # Handle inline comments
                    if "#" in line:
                        line = line.split("#")[0].strip()
                    if not line.startswith("-"):
                        requirements.append(line)

    return requirements

# Test dependencies
def get_test_requirements():
    """Get test dependencies"""
    return [
        "pytest>=8.3.2",
        "pytest-cov>=5.0.0",
        # reference values for metric tests
        "scikit-learn>=1.5.0",
    ]

extras_require = {
    "test": get_test_requirements(),
    "dev": get_test_requirements() + [
        "black>=24.8.0",
        "isort>=5.13.2",
        "flake8>=7.1.1",
        "mypy>=1.11.2",
    ],
}

setup(
    name="veracity",
    version=VERSION,
    description="Typed columnar tables, k-nearest-neighbors models and evaluation metrics",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(where="src"),
    package_dir={"": "src"},

    python_requires=">=3.10",

    # Dependencies
    install_requires=get_requirements(),
    extras_require=extras_require,

    # Entry points for CLI commands
    entry_points={
        "console_scripts": [
            "veracity-knn=veracity.cli:main",
        ],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],

    keywords=["knn", "nearest-neighbors", "machine-learning", "metrics", "dataframe"],

    zip_safe=False,
)
