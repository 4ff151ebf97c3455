"""Shared fixtures: in-memory repository and an API client wired to it."""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from models.scl90_models import TOTAL_ITEMS


class InMemoryScl90Repository:
    """Dict-backed stand-in for the ArangoDB repository."""

    def __init__(self):
        self.assessments: dict[str, dict[str, Any]] = {}
        self.orders: dict[str, dict[str, Any]] = {}
        self.intake_genders: dict[str, str] = {}
        self.saves: list[tuple[str, dict[str, Any]]] = []

    def get_assessment(self, orden_id):
        doc = self.assessments.get(orden_id)
        return dict(doc) if doc is not None else None

    def save_assessment(self, orden_id, document):
        self.saves.append((orden_id, dict(document)))
        if orden_id in self.assessments:
            self.assessments[orden_id] = {**self.assessments[orden_id], **document}
            return dict(self.assessments[orden_id]), "UPDATE"
        self.assessments[orden_id] = {"_key": orden_id, **document}
        return dict(self.assessments[orden_id]), "INSERT"

    def update_score(self, orden_id, record):
        if orden_id not in self.assessments:
            return None
        self.assessments[orden_id] = {**self.assessments[orden_id], **record}
        return dict(self.assessments[orden_id])

    def get_order(self, orden_id):
        return self.orders.get(orden_id)

    def find_gender(self, numero_id, orden_id):
        if numero_id and numero_id in self.intake_genders:
            return self.intake_genders[numero_id]
        order = self.orders.get(orden_id)
        return order.get("genero") if order else None


def items(value, indices=None):
    """Flat item1..item90 answers, all set to `value` (or only `indices`)."""
    indices = indices if indices is not None else range(1, TOTAL_ITEMS + 1)
    return {f"item{i}": value for i in indices}


@pytest.fixture
def repository():
    return InMemoryScl90Repository()


@pytest.fixture
def client(repository, monkeypatch):
    """Test client with the SCL-90 service bound to the in-memory repository."""
    import main
    from services.scl90_service import Scl90Service, get_scl90_service

    monkeypatch.setattr(main, "ping", lambda: True)
    main.app.dependency_overrides[get_scl90_service] = lambda: Scl90Service(repository)
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()
