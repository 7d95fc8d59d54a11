"""Tests for leaderboard assembly."""

from footprint_tracker.leaderboard import ANONYMOUS_NAME, build_leaderboard, rank_entries


def test_leaderboard_sorted_ascending_with_names():
    rows = [
        {"user_id": "u1", "total_emissions": 300.0},
        {"user_id": "u2", "total_emissions": 120.5},
        {"user_id": "u3", "total_emissions": 120.5},
    ]
    entries = build_leaderboard(rows, {"u1": "Ada", "u2": "Grace"})

    assert [entry.user_id for entry in entries] == ["u2", "u3", "u1"]
    assert entries[0].display_name == "Grace"
    assert entries[1].display_name == ANONYMOUS_NAME
    assert entries[2].display_name == "Ada"


def test_leaderboard_skips_malformed_rows():
    rows = [
        {"user_id": "u1", "total_emissions": "lots"},
        {"total_emissions": 10},
        {"user_id": "", "total_emissions": 10},
        {"user_id": "u2", "total_emissions": float("nan")},
        {"user_id": "u3", "total_emissions": 5},
    ]
    entries = build_leaderboard(rows)
    assert [entry.user_id for entry in entries] == ["u3"]
    assert entries[0].total_emissions == 5.0


def test_rank_entries_is_one_based():
    entries = build_leaderboard(
        [{"user_id": "a", "total_emissions": 2}, {"user_id": "b", "total_emissions": 1}]
    )
    assert [(rank, entry.user_id) for rank, entry in rank_entries(entries)] == [
        (1, "b"),
        (2, "a"),
    ]
