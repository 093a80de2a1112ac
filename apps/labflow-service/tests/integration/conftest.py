import pytest
from sqlalchemy.orm import Session

from labflow.db import models
from labflow.utils.vocab import ROLE_ADMIN, ROLE_USER


# Catalog fixtures; created through the API so routes and repositories stay in play

@pytest.fixture
def user_factory(db_session: Session):
    def _create(email: str, is_admin: bool = False, display_name: str = None):
        user = models.User(
            email=email,
            display_name=display_name or email.split('@')[0],
            role=ROLE_ADMIN if is_admin else ROLE_USER,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def assay_factory(client, admin_headers):
    def _create(title: str = "Western blot", steps=("Prepare gel", "Run gel"), **overrides):
        payload = {
            "title": title,
            "description": "Separate proteins by molecular weight.",
            "protocol": "Load samples, run electrophoresis, transfer, then blot.",
            "estimated_time": "2 hours",
        }
        payload.update(overrides)
        r = client.post("/assays/", json=payload, headers=admin_headers)
        assert r.status_code == 201, r.text
        assay = r.json()
        assay["steps"] = []
        for index, step_title in enumerate(steps):
            s = client.post(
                f"/assays/{assay['id']}/steps/",
                json={"title": step_title, "order_index": index, "estimated_time": "15 minutes"},
                headers=admin_headers,
            )
            assert s.status_code == 201, s.text
            assay["steps"].append(s.json())
        return assay
    return _create


@pytest.fixture
def workflow_factory(client, admin_headers, assay_factory):
    def _create(title: str = "Protein expression", assays=(), dependencies=(), status: str = "published", **overrides):
        if status == "published" and not assays:
            # Published workflows need at least one assay
            assays = [assay_factory(f"{title} assay")]
        payload = {
            "title": title,
            "description": "Express and verify a recombinant protein.",
            "category": "Biochemistry",
            "difficulty": "intermediate",
            "status": status,
            "assay_ids": [a["id"] for a in assays],
            "dependencies": [
                {"from_assay_id": src["id"], "to_assay_id": dst["id"]} for src, dst in dependencies
            ],
        }
        payload.update(overrides)
        r = client.post("/workflows/", json=payload, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _create
