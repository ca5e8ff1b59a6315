"""Pytest configuration and fixtures for Load Simulator tests."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment
os.environ["LOADSIM_RECEIPTS_FILE"] = str(Path(tempfile.gettempdir()) / "loadsim_test_receipts.jsonl")
os.environ["LOADSIM_ENV"] = "test"


@pytest.fixture(autouse=True)
def reset_state():
    """Reset global state before each test."""
    from loadsim.core import reset_receipt_counter, get_receipts_file

    reset_receipt_counter()

    receipts_path = get_receipts_file()
    if receipts_path.exists():
        receipts_path.unlink()

    yield

    if receipts_path.exists():
        receipts_path.unlink()


@pytest.fixture
def small_config():
    """100 subjects, low density, 4 runs."""
    from loadsim.models import create_default_config
    return create_default_config(dataset_size="custom", subject_count=100,
                                 evidence_density="low", parallel_runs=4, seed=42)


@pytest.fixture
def small_dataset(small_config):
    """Generated dataset for small_config."""
    from loadsim.dataset import generate_scalable_dataset
    return generate_scalable_dataset(small_config)


@pytest.fixture
def rng():
    """Seeded source."""
    from loadsim.rng import SeededRandom
    return SeededRandom(42)
