"""
Root test configuration and fixtures for the relocation project.

This conftest.py provides common fixtures for all test categories:
- a mock PocketBase client for repository and config tests
- an in-memory camp world for engine tests (see fixtures/in_memory.py)

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fixtures.in_memory import StaticConfig, build_repositories  # noqa: E402
from relocation.core.interfaces import Repositories  # noqa: E402
from relocation.core.models import (  # noqa: E402
    Bed,
    BedStatus,
    Camp,
    CampType,
    DisciplinaryActionType,
    ExitActionKind,
    Person,
    PersonKind,
)
from relocation.core.policy import Actor  # noqa: E402
from relocation.engine import Engine, build_engine  # noqa: E402

TODAY = date(2026, 3, 10)


def create_mock_pocketbase():
    """Create a mock PocketBase instance with a shared collection mock."""
    mock_pb = Mock()

    mock_collection = Mock()
    mock_collection.auth_with_password = Mock(return_value=True)
    mock_collection.get_full_list = Mock(return_value=[])
    mock_collection.get_one = Mock()
    mock_collection.get_first_list_item = Mock()
    mock_collection.create = Mock(return_value=Mock(id="mock-id"))
    mock_collection.update = Mock()
    mock_collection.delete = Mock()

    mock_pb.collection = Mock(return_value=mock_collection)
    return mock_pb


@pytest.fixture(autouse=True)
def mock_all_external_services():
    """Keep every test away from a real PocketBase server."""
    mock_pb = create_mock_pocketbase()
    with patch("pocketbase.PocketBase", return_value=mock_pb), patch("pocketbase.Client", return_value=mock_pb):
        yield mock_pb


@pytest.fixture
def mock_pb():
    return create_mock_pocketbase()


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Reset ConfigLoader singleton between tests."""
    yield
    from relocation.config import ConfigLoader

    ConfigLoader.reset()


# ========================================
# Engine world
# ========================================


@pytest.fixture
def repos() -> Repositories:
    """Four camps, a handful of beds and four people.

    camp-a (regular):      bed-a1 occupied by tech-1, bed-a2 occupied by tech-2
    camp-b (regular):      bed-b1, bed-b2, bed-b3 available
    camp-ind (induction):  bed-i1 occupied by tech-3
    camp-exit (exit camp): bed-x1, bed-x2 available
    ext-1 is an external contractor at camp-a without a bed.
    """
    repos = build_repositories()
    repos.camps.seed(
        Camp(id="camp-a", name="Camp A", code="CA"),
        Camp(id="camp-b", name="Camp B", code="CB"),
        Camp(id="camp-ind", name="Induction Camp", code="IND", camp_type=CampType.INDUCTION_CAMP),
        Camp(id="camp-exit", name="Sonapur Exit Camp", code="SEC", camp_type=CampType.EXIT_CAMP),
    )
    repos.beds.seed(
        Bed(
            id="bed-a1",
            camp_id="camp-a",
            status=BedStatus.OCCUPIED,
            occupant_id="tech-1",
            occupant_kind=PersonKind.TECHNICIAN,
        ),
        Bed(
            id="bed-a2",
            camp_id="camp-a",
            status=BedStatus.OCCUPIED,
            occupant_id="tech-2",
            occupant_kind=PersonKind.TECHNICIAN,
        ),
        Bed(id="bed-b1", camp_id="camp-b"),
        Bed(id="bed-b2", camp_id="camp-b"),
        Bed(id="bed-b3", camp_id="camp-b"),
        Bed(
            id="bed-i1",
            camp_id="camp-ind",
            status=BedStatus.OCCUPIED,
            occupant_id="tech-3",
            occupant_kind=PersonKind.TECHNICIAN,
        ),
        Bed(id="bed-x1", camp_id="camp-exit"),
        Bed(id="bed-x2", camp_id="camp-exit"),
    )
    repos.persons.seed(
        Person(id="tech-1", kind=PersonKind.TECHNICIAN, full_name="Ravi Kumar", camp_id="camp-a", bed_id="bed-a1"),
        Person(id="tech-2", kind=PersonKind.TECHNICIAN, full_name="Ali Hassan", camp_id="camp-a", bed_id="bed-a2"),
        Person(id="tech-3", kind=PersonKind.TECHNICIAN, full_name="Sam Joseph", camp_id="camp-ind", bed_id="bed-i1"),
        Person(id="ext-1", kind=PersonKind.EXTERNAL, full_name="Omar Saleh", employee_id="Acme", camp_id="camp-a"),
    )
    repos.action_types.seed(
        DisciplinaryActionType(id="type-term", name="Termination", code="TERM", kind=ExitActionKind.TERMINATION),
        DisciplinaryActionType(id="type-resign", name="Resignation", code="RES", kind=ExitActionKind.RESIGNATION),
        DisciplinaryActionType(id="type-warn", name="Written Warning", code="WARN", kind=ExitActionKind.OTHER),
    )
    return repos


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def config() -> StaticConfig:
    return StaticConfig()


@pytest.fixture
def engine(repos: Repositories, config: StaticConfig) -> Engine:
    return build_engine(repos, config, today=lambda: TODAY)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="user-admin", email="admin@camp.local", is_admin=True)


@pytest.fixture
def coordinator() -> Actor:
    """A camp coordinator who can request and allocate but not approve."""
    return Actor(
        id="user-coord",
        email="coord@camp.local",
        permissions=frozenset({"create_transfer_requests", "allocate_beds"}),
    )
