"""Tests for the HTTP routers over an in-memory engine."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.dependencies import get_current_actor, get_engine
from api.errors import register_exception_handlers, status_code_for
from api.routers import dashboard, disciplinary, exit_formalities, transfers
from relocation.core.errors import ExitCampNotFoundError, PartialTransitionError, StoreError
from relocation.core.models import CHECKLIST_ITEMS
from relocation.core.policy import Actor


@pytest.fixture
def actor(admin):
    return admin


@pytest.fixture
def client(engine, actor):
    app = FastAPI()
    register_exception_handlers(app)
    for module in (transfers, exit_formalities, disciplinary, dashboard):
        app.include_router(module.router)
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_current_actor] = lambda: actor
    return TestClient(app)


def create_transfer(client, **overrides):
    body = {
        "source_camp_id": "camp-a",
        "target_camp_id": "camp-b",
        "technician_ids": ["tech-1"],
        "external_personnel_ids": ["ext-1"],
        "reason_for_movement": "project_transfer",
    }
    body.update(overrides)
    return client.post("/api/transfers", json=body)


def allocated_transfer(client) -> str:
    request_id = create_transfer(client).json()["id"]
    response = client.post(
        f"/api/transfers/{request_id}/allocate",
        json={"allocations": {"tech-1": "bed-b1", "ext-1": "bed-b2"}},
    )
    assert response.status_code == 200
    return request_id


class TestTransferFlow:
    """Create, allocate, approve, dispatch and arrive over HTTP."""

    def test_create(self, client):
        response = create_transfer(client, notes="project Alpha")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending_allocation"
        assert data["reason_for_movement"] == "project_transfer"
        assert data["technician_ids"] == ["tech-1"]
        assert data["notes"] == "project Alpha"
        assert data["request_date"] == "2026-03-10"

    def test_full_lifecycle(self, client):
        request_id = allocated_transfer(client)

        approved = client.post(f"/api/transfers/{request_id}/approve")
        assert approved.json()["status"] == "approved_for_dispatch"
        assert approved.json()["approved_by"] == "user-admin"

        dispatched = client.post(f"/api/transfers/{request_id}/dispatch")
        assert dispatched.json()["status"] == "technicians_dispatched"

        partial = client.post(f"/api/transfers/{request_id}/arrivals", json={"person_id": "tech-1"})
        assert partial.json()["status"] == "partially_arrived"

        done = client.post(f"/api/transfers/{request_id}/arrivals", json={"person_id": "ext-1"})
        assert done.json()["status"] == "completed"

        assert client.get(f"/api/transfers/{request_id}").json()["status"] == "completed"

    def test_reject(self, client):
        request_id = allocated_transfer(client)

        rejected = client.post(f"/api/transfers/{request_id}/reject", json={"rejection_reason": "Camp B is full"})
        assert rejected.json()["status"] == "allocation_rejected"
        assert rejected.json()["rejection_reason"] == "Camp B is full"

        again = client.post(f"/api/transfers/{request_id}/cancel", json={"reason": "plan changed"})
        assert again.status_code == 409

    def test_cancel(self, client):
        request_id = create_transfer(client).json()["id"]

        cancelled = client.post(f"/api/transfers/{request_id}/cancel", json={"reason": "plan changed"})
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "plan changed"

    def test_list_filters_by_status(self, client):
        allocated_transfer(client)
        create_transfer(client, technician_ids=["tech-2"], external_personnel_ids=[])

        everything = client.get("/api/transfers").json()
        pending = client.get("/api/transfers", params={"status": "pending_allocation"}).json()

        assert len(everything) == 2
        assert [r["technician_ids"] for r in pending] == [["tech-2"]]

    def test_unknown_reason_is_rejected_by_schema(self, client):
        assert create_transfer(client, reason_for_movement="holiday").status_code == 422


class TestErrorMapping:
    """Engine refusals become HTTP errors carrying the error code."""

    def test_validation_error(self, client):
        response = create_transfer(client, target_camp_id="camp-a")

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        assert response.json()["reason"] == "same_source_and_target"

    def test_not_found(self, client):
        response = client.get("/api/transfers/req-missing")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_invalid_transition(self, client):
        request_id = create_transfer(client).json()["id"]

        response = client.post(f"/api/transfers/{request_id}/dispatch")

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"
        assert response.json()["current_state"] == "pending_allocation"

    def test_duplicate_allocation(self, client):
        allocated_transfer(client)
        second = create_transfer(client, target_camp_id="camp-exit", external_personnel_ids=[]).json()["id"]

        response = client.post(f"/api/transfers/{second}/allocate", json={"allocations": {"tech-1": "bed-x1"}})

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_allocation"
        assert response.json()["conflicts"][0]["person_id"] == "tech-1"

    def test_partial_transition_asks_for_retry(self, client, repos):
        request_id = allocated_transfer(client)
        client.post(f"/api/transfers/{request_id}/approve")
        repos.beds.fail_after = repos.beds.writes

        response = client.post(f"/api/transfers/{request_id}/dispatch")

        assert response.status_code == 503
        assert response.json()["error"] == "transition_partially_applied"
        assert response.json()["retry"] is True

    def test_status_code_table(self):
        assert status_code_for(ExitCampNotFoundError("no exit camp")) == 500
        assert status_code_for(StoreError("pocketbase down")) == 502
        assert status_code_for(PartialTransitionError("dispatch", True, [])) == 503


class TestForbidden:
    @pytest.fixture
    def actor(self):
        return Actor(id="user-view", permissions=frozenset())

    def test_missing_permission(self, client, repos):
        response = create_transfer(client)

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"
        assert repos.transfers.records == {}


class TestDisciplinaryAndExit:
    """Disciplinary trigger followed by the exit formalities tracker."""

    def test_termination_stages_exit_transfer(self, client):
        response = client.post(
            "/api/disciplinary/actions",
            json={
                "technician_id": "tech-1",
                "action_type_id": "type-term",
                "termination_reason": "Repeated absence",
                "exit_process_choice": "camp_transfer",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["kind"] == "termination"
        assert data["trigger"]["outcome"] == "transfer_created"
        assert data["trigger"]["exit_camp_id"] == "camp-exit"

        transfer = client.get(f"/api/transfers/{data['trigger']['transfer_request_id']}").json()
        assert transfer["target_camp_id"] == "camp-exit"
        assert transfer["reason_for_movement"] == "exit_case"

    def test_resignation_follow_up(self, client):
        recorded = client.post(
            "/api/disciplinary/actions", json={"technician_id": "tech-1", "action_type_id": "type-resign"}
        ).json()
        assert recorded["follow_up_required"] is True
        assert recorded["trigger"]["outcome"] == "follow_up_pending"

        response = client.post(
            f"/api/disciplinary/actions/{recorded['id']}/exit-process",
            json={"exit_process_choice": "camp_transfer"},
        )
        assert response.status_code == 200
        assert response.json()["outcome"] == "transfer_created"

    def test_deport_to_airport(self, client):
        client.post(
            "/api/disciplinary/actions",
            json={
                "technician_id": "tech-2",
                "action_type_id": "type-term",
                "termination_reason": "Misconduct",
                "exit_process_choice": "direct_deport",
            },
        )

        cases = client.get("/api/exit-formalities").json()
        assert [c["person_id"] for c in cases] == ["tech-2"]
        assert cases[0]["exit_process_status"] == "in_process"
        assert cases[0]["completed_count"] == 0

        for item in CHECKLIST_ITEMS:
            response = client.post("/api/exit-formalities/tech-2/checklist", json={"item": item, "completed": True})
            assert response.status_code == 200

        assert client.post("/api/exit-formalities/tech-2/decision", json={"deport_from_uae": True}).status_code == 200
        scheduled = client.post(
            "/api/exit-formalities/tech-2/vehicle",
            json={"vehicle_number": "DXB-4411", "driver_name": "Rahim", "flight_number": "EK 512"},
        ).json()
        assert scheduled["drop_status"] == "scheduled"
        assert scheduled["flight_number"] == "EK 512"

        assert client.post("/api/exit-formalities/tech-2/driver-dispatched").json()["drop_status"] == "driver_dispatched"

        departed = client.post("/api/exit-formalities/tech-2/departure").json()
        assert departed["drop_status"] == "dropped_at_airport"
        assert departed["exit_process_status"] == "formalities_completed"
        assert client.get("/api/exit-formalities").json() == []

    def test_unknown_checklist_item(self, client):
        client.post(
            "/api/disciplinary/actions",
            json={
                "technician_id": "tech-2",
                "action_type_id": "type-term",
                "termination_reason": "Misconduct",
                "exit_process_choice": "direct_deport",
            },
        )
        response = client.post("/api/exit-formalities/tech-2/checklist", json={"item": "library_card", "completed": True})
        assert response.status_code == 422
        assert response.json()["reason"] == "unknown_checklist_item"


class TestDashboard:
    def test_summary(self, client):
        client.post(f"/api/transfers/{allocated_transfer(client)}/approve")
        create_transfer(client, technician_ids=["tech-2"], external_personnel_ids=[])

        data = client.get("/api/dashboard/summary").json()

        assert data["pending_allocation"] == 1
        assert data["awaiting_dispatch"] == 1
        assert data["transfers_by_status"]["approved_for_dispatch"] == 1
        assert data["in_exit_formalities"] == 0
