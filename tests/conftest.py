"""
conftest.py

Pytest configuration and fixtures for Veracity tests.
Provides shared tables, training sets and CSV files for reproducible
testing across all test modules.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to Python path so tests.utils is importable
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from veracity.data.column import Column
from veracity.data.table import Table

# ============================================
# PYTEST CONFIGURATION
# ============================================

def pytest_configure(config):
    """Configure pytest settings and markers"""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")

def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location"""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

# ============================================
# TABLE FIXTURES
# ============================================

@pytest.fixture
def numeric_table():
    """Three FLOAT64 columns, four rows"""
    return Table.from_dict({
        'x': [0.0, 1.0, 2.0, 3.0],
        'y': [0.0, 1.0, 4.0, 9.0],
        'z': [1.5, 2.5, 3.5, 4.5],
    })

@pytest.fixture
def mixed_table():
    """Columns of different types with an explicit row index"""
    return Table.from_dict(
        {
            'age': [31, 45, 27],
            'height': [1.72, 1.80, 1.65],
            'name': ['ann', 'bob', 'cid'],
            'member': [True, False, True],
        },
        index=['r0', 'r1', 'r2']
    )

# ============================================
# TRAINING DATA FIXTURES
# ============================================

@pytest.fixture
def two_cluster_data():
    """Two well separated 2-D clusters labelled 'a' and 'b'"""
    features = Table.from_dict({
        'f1': [0.0, 0.1, 0.2, 5.0, 5.1, 5.2],
        'f2': [0.0, 0.2, 0.1, 5.0, 5.2, 5.1],
    })
    labels = Column.from_values(['a', 'a', 'a', 'b', 'b', 'b'], label='label')
    return features, labels

@pytest.fixture
def line_regression_data():
    """Single feature on a line, targets 1, 2, 3, 100"""
    features = Table.from_dict({'x': [1.0, 2.0, 3.0, 4.0]})
    targets = Column.from_values([1.0, 2.0, 3.0, 100.0], label='target')
    return features, targets

@pytest.fixture
def random_features():
    """Seeded random feature matrix with 40 rows and 3 columns"""
    rng = np.random.default_rng(42)
    matrix = rng.normal(size=(40, 3))
    table = Table.from_dict({f'f{i}': matrix[:, i] for i in range(3)})
    return table, matrix

# ============================================
# FILE FIXTURES
# ============================================

@pytest.fixture
def write_csv(tmp_path):
    """Write text to a CSV file in a temporary directory and return its path"""
    def _write(content: str, name: str = "data.csv") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write
