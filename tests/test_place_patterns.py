from __future__ import annotations

import pandas as pd

from restoration_subset.place_patterns import (
    PATTERN_VERSION,
    PLACE_PATTERNS,
    closest_names,
    find_name_collisions,
    matched_patterns,
    text_match,
)


def test_pattern_list_is_versioned_and_named():
    assert PATTERN_VERSION
    names = [p.name for p in PLACE_PATTERNS]
    assert len(names) == len(set(names))
    assert all(p.description for p in PLACE_PATTERNS)


def test_county_field_variants():
    df = pd.DataFrame(
        {
            "county_name": [
                "Humboldt",
                "HUMBOLDT",
                "humboldt county",
                "Humboldt; Trinity",
                "Del Norte, Humboldt",
                "Mendocino / Humboldt / Trinity",
                "North Humboldt Bay",
                "Humboldtville",
                None,
            ],
            "project_name": ["x"] * 9,
        }
    )
    mask = text_match(df, "Humboldt")
    assert mask.tolist() == [True, True, True, True, True, True, False, False, False]


def test_project_name_pattern():
    df = pd.DataFrame(
        {
            "county_name": [None, None, None],
            "project_name": ["Humboldt County fish passage", "Upper Humboldt Co. weir", "Humboldt Bay eelgrass"],
        }
    )
    hits = matched_patterns(df, "humboldt")
    assert hits.tolist() == ["project_name_county", "project_name_county", ""]


def test_empty_frame_is_valid():
    df = pd.DataFrame({"county_name": [], "project_name": []})
    assert text_match(df, "Humboldt").empty


def test_collisions_flagged(all_counties):
    extra = all_counties.iloc[[0]].copy()
    extra["NAME"] = "North Humboldt"
    counties = pd.concat([all_counties, extra], ignore_index=True)

    got = find_name_collisions("Humboldt", counties, "06")
    assert got == ["Humboldt (STATEFP 19)", "Humboldt (STATEFP 32)", "North Humboldt (same state)"]
    assert find_name_collisions("Trinity", all_counties, "06") == []


def test_closest_names():
    assert closest_names("Humbolt", ["Humboldt", "Trinity", "Marin"])[0] == "Humboldt"
