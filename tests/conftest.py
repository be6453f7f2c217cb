"""
Pytest configuration and fixtures for influence engine tests.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path so we can import the influence_engine package
sys.path.insert(0, str(Path(__file__).parent.parent))

from influence_engine.edges import EdgeData, GraphEdge
from influence_engine.error_capture import RecordingErrorCapture


@pytest.fixture
def recording_capture():
    """Provide an error capture that keeps events in memory."""
    return RecordingErrorCapture()


@pytest.fixture
def v1_snapshot():
    """Provide a legacy snapshot: no version tag, untyped nodes."""
    return {
        "timestamp": 1700000000000,
        "nodes": [
            {"id": "d1", "position": {"x": 0, "y": 0}, "data": {"label": "Launch product?"}},
            {"id": "o1", "position": {"x": 200, "y": 0}, "data": {"label": "Option A"}},
            {"id": "o2", "position": {"x": 200, "y": 100}, "data": {"label": "Option B"}},
        ],
        "edges": [
            {"id": "e1", "source": "d1", "target": "o1", "label": "60%", "data": {"confidence": 0.6}},
            {"id": "e2", "source": "d1", "target": "o2", "data": {"confidence": 0.4}},
        ],
    }


@pytest.fixture
def v3_snapshot():
    """Provide a v3 snapshot with a single legacy belief value."""
    return {
        "version": 3,
        "timestamp": 1700000000000,
        "nodes": [
            {"id": "f1", "type": "factor", "position": {"x": 0, "y": 0}, "data": {"label": "Marketing spend", "type": "factor"}},
            {"id": "r1", "type": "outcome", "position": {"x": 200, "y": 0}, "data": {"label": "Revenue", "type": "outcome"}},
        ],
        "edges": [
            {
                "id": "e1",
                "source": "f1",
                "target": "r1",
                "data": {
                    "weight": 0.8,
                    "belief": 0.64,
                    "kind": "influence-weight",
                    "functionType": "diminishing_returns",
                    "functionParams": {"curvature": 0.5},
                    "schemaVersion": 3,
                },
            }
        ],
    }


@pytest.fixture
def v4_snapshot():
    """Provide a current snapshot with one decision and three options."""
    return {
        "version": 4,
        "timestamp": 1700000000000,
        "nodes": [
            {"id": "d1", "type": "decision", "position": {"x": 0, "y": 0}, "data": {"label": "Pricing", "type": "decision"}},
            {"id": "o1", "type": "option", "position": {"x": 200, "y": 0}, "data": {"label": "Low", "type": "option"}},
            {"id": "o2", "type": "option", "position": {"x": 200, "y": 100}, "data": {"label": "Mid", "type": "option"}},
            {"id": "o3", "type": "option", "position": {"x": 200, "y": 200}, "data": {"label": "High", "type": "option"}},
        ],
        "edges": [
            {"id": "e1", "source": "d1", "target": "o1", "data": {"confidence": 0.6, "schemaVersion": 4}},
            {"id": "e2", "source": "d1", "target": "o2", "data": {"confidence": 0.3, "schemaVersion": 4}},
            {"id": "e3", "source": "d1", "target": "o3", "data": {"confidence": 0.2, "schemaVersion": 4}},
        ],
    }


@pytest.fixture
def decision_edges():
    """Provide three sibling decision edges summing to 100%."""
    return [
        GraphEdge(id="e1", source="d1", target="o1", data=EdgeData(confidence=0.5)),
        GraphEdge(id="e2", source="d1", target="o2", data=EdgeData(confidence=0.3)),
        GraphEdge(id="e3", source="d1", target="o3", data=EdgeData(confidence=0.2)),
    ]


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "hypothesis: property-based tests"
    )
    config.addinivalue_line(
        "markers", "slow: tests that take >1s"
    )
