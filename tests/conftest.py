"""Shared fixtures for the alliance report test suite."""

import pytest

from alliance_report.report.models import (
    OwnedItemRecord,
    ReportCategory,
    TeamCatalog,
    TeamDefinition,
)


def rec(item_id, owner_id, power, **extra):
    return OwnedItemRecord(item_id=item_id, owner_id=owner_id, power=power, attributes=extra)


@pytest.fixture
def hulk_category():
    return ReportCategory(
        name="Offense",
        teams=(TeamDefinition(label="HLK", name="Hulk", member_ids=("hulk",)),),
    )


@pytest.fixture
def two_team_category():
    return ReportCategory(
        name="Raid",
        teams=(
            TeamDefinition(label="ASG", name="Asgardian", member_ids=("thor", "loki")),
            TeamDefinition(label="AVG", name="Avengers", member_ids=("hulk", "thor")),
        ),
    )


@pytest.fixture
def small_catalog(hulk_category, two_team_category):
    return TeamCatalog(version="test", categories=(hulk_category, two_team_category))


@pytest.fixture
def roster_records():
    return [
        rec("Thor", "carl", 51, level=70),
        rec("hulk", "alice", 100),
        rec("loki", "carl", 30),
        rec("thor", "bob", 20),
        rec("groot", "dana", 999),
        rec("HULK", "bob", 40),
    ]
