from __future__ import annotations

from ledger_core.naming import allocate_display_names, organization_stats


def test_unique_names_are_left_alone(make_record):
    records = [make_record("Chess Club"), make_record("SGA"), make_record("Robotics")]
    named = allocate_display_names(records)
    assert [r.display_name for r in named] == ["Chess Club", "SGA", "Robotics"]
    assert all(r.display_name == r.organization_name for r in named)


def test_repeated_names_are_numbered_in_input_order(make_record):
    records = [make_record("Acme"), make_record("acme"), make_record("Beta")]
    named = allocate_display_names(records)
    assert [r.display_name for r in named] == ["Acme 1", "acme 2", "Beta"]


def test_numbering_follows_each_group_independently(make_record):
    records = [
        make_record("SGA"),
        make_record("Chess"),
        make_record("SGA"),
        make_record("Chess"),
        make_record("SGA"),
    ]
    named = allocate_display_names(records)
    assert [r.display_name for r in named] == ["SGA 1", "Chess 1", "SGA 2", "Chess 2", "SGA 3"]


def test_input_records_are_not_modified(make_record):
    records = [make_record("SGA"), make_record("SGA")]
    allocate_display_names(records)
    assert [r.display_name for r in records] == [None, None]
    assert records[0].label == "SGA"


def test_blank_names_group_together(make_record):
    named = allocate_display_names([make_record(""), make_record("  ")])
    assert [r.display_name for r in named] == [" 1", "   2"]


def test_empty_batch():
    assert allocate_display_names([]) == []


def test_organization_stats(make_record):
    stats = organization_stats([make_record("SGA"), make_record("sga"), make_record("Chess")])
    assert stats["total_organizations"] == 2
    assert stats["orgs_with_multiple_requests"] == 1
    assert stats["requests_per_org"] == {"SGA": 2, "Chess": 1}
