from __future__ import annotations

import sys
from pathlib import Path

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

import pytest  # noqa: E402

from tcexporter.core.metrics import QueueSink, default_descriptors  # noqa: E402


@pytest.fixture
def descriptors():
    return default_descriptors()


@pytest.fixture
def sink():
    return QueueSink()


def samples_by_name(samples) -> dict[str, list]:
    """Group drained samples by metric name."""
    grouped: dict[str, list] = {}
    for s in samples:
        grouped.setdefault(s.descriptor.name, []).append(s)
    return grouped
