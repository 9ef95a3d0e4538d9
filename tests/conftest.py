"""Shared test fixtures for the narrative tests."""

import pandas as pd
import pytest

from narrative.records import RecordCollection, load_records


def _row(survived, pclass, sex, age, name="Doe, Mr. John", fare=10.0):
    return {
        "survived": survived,
        "pclass": pclass,
        "name": name,
        "sex": sex,
        "age": age,
        "sibsp": 0,
        "parch": 0,
        "ticket": "A/5 21171",
        "fare": fare,
    }


# 20 valid passengers (10 survived) plus 4 rows missing required data.
# Class 1: 6 (5 survived), class 2: 6 (2 survived), class 3: 8 (3 survived).
# Four have no age and one has an unrecognized sex.
MANIFEST_ROWS = [
    _row(1, 1, "female", 30, name="Allen, Miss. Elisabeth Walton"),
    _row(1, 1, "female", 10),
    _row(0, 1, "male", 40),
    _row(1, 1, "male", 5),
    _row(1, 1, "male", 50),
    _row(1, 1, "female", None),
    _row(1, 2, "female", 25),
    _row(1, 2, "female", 8),
    _row(0, 2, "male", 35),
    _row(0, 2, "male", 12),
    _row(0, 2, "male", None),
    _row(0, 2, "female", 45),
    _row(0, 3, "female", 22),
    _row(1, 3, "female", 3),
    _row(0, 3, "male", 28),
    _row(0, 3, "male", 2),
    _row(0, 3, "male", 19),
    _row(1, 3, "male", None),
    _row(0, 3, "female", None),
    _row(1, 3, "other", 30),
    _row("", 1, "male", 20),
    _row(1, 4, "female", 20),
    _row(0, 2, "", 33),
    _row(2, 3, "male", 41),
]


@pytest.fixture()
def manifest_rows():
    return [dict(r) for r in MANIFEST_ROWS]


@pytest.fixture()
def records(manifest_rows) -> RecordCollection:
    return load_records(manifest_rows)


@pytest.fixture()
def manifest_csv(tmp_path, manifest_rows):
    """The same manifest written as a titanic3-style CSV."""
    path = tmp_path / "titanic3.csv"
    pd.DataFrame(manifest_rows).to_csv(path, index=False)
    return path


@pytest.fixture()
def full_manifest() -> RecordCollection:
    """1309 passengers, 500 of whom survived, spread over classes and sexes."""
    rows = []
    for i in range(1309):
        rows.append(
            _row(
                1 if i < 500 else 0,
                (i % 3) + 1,
                "female" if i % 2 else "male",
                None if i % 5 == 0 else float(i % 70),
                name=f"Passenger{i}, Mr. Test",
            )
        )
    return load_records(rows)
