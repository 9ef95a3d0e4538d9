from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE = "titanic3.csv"
DATA_PATH_ENV = "TITANIC_DATA_PATH"

PASSENGER_CLASSES = (1, 2, 3)
SEX_VALUES = ("male", "female")
UNKNOWN_SEX = "unknown"
UNKNOWN_TEXT = "Unknown"

RECORD_COLUMNS = ["survived", "pclass", "name", "sex", "age", "sibsp", "parch", "ticket", "fare"]
REQUIRED_COLUMNS = ["survived", "pclass", "sex"]
FRAME_COLUMNS = ["id", "survived", "pclass", "sex", "age", "fare", "name", "sibsp", "parch", "ticket"]

# Header names are lowercased and stripped before lookup.
COLUMN_ALIASES = {
    "survived": "survived",
    "pclass": "pclass",
    "passenger_class": "pclass",
    "name": "name",
    "sex": "sex",
    "gender": "sex",
    "age": "age",
    "sibsp": "sibsp",
    "parch": "parch",
    "ticket": "ticket",
    "fare": "fare",
}


class DataLoadError(RuntimeError):
    """The passenger dataset could not be read; nothing was loaded."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not load passenger data from {self.path}: {reason}")


@dataclass(frozen=True)
class PassengerRecord:
    id: str
    survived: bool
    pclass: int
    sex: str
    age: Optional[float] = None
    fare: Optional[float] = None
    name: str = UNKNOWN_TEXT
    sibsp: int = 0
    parch: int = 0
    ticket: str = UNKNOWN_TEXT

    @property
    def has_age(self) -> bool:
        return self.age is not None


@dataclass(frozen=True)
class RecordCollection:
    """Immutable working set of passengers, fixed once loaded."""

    records: Tuple[PassengerRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PassengerRecord]:
        return iter(self.records)

    @cached_property
    def _frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([asdict(r) for r in self.records], columns=FRAME_COLUMNS)
        frame["survived"] = frame["survived"].astype(bool)
        frame["pclass"] = frame["pclass"].astype(int)
        frame["age"] = pd.to_numeric(frame["age"], errors="coerce")
        frame["fare"] = pd.to_numeric(frame["fare"], errors="coerce")
        return frame

    def to_frame(self) -> pd.DataFrame:
        """Tabular view of the records; callers get their own copy."""
        return self._frame.copy()


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def canonical_column(name: object) -> str:
    key = str(name).strip().lower()
    return COLUMN_ALIASES.get(key, key)


def missing_required_columns(df: pd.DataFrame) -> List[str]:
    present = {canonical_column(c) for c in df.columns}
    return [c for c in REQUIRED_COLUMNS if c not in present]


def normalize_sex(value: object) -> Optional[str]:
    """Map a raw sex value onto male/female/unknown; blank means missing."""
    if value is None or pd.isna(value):
        return None
    s = str(value).strip().lower()
    if not s:
        return None
    return s if s in SEX_VALUES else UNKNOWN_SEX


def passenger_id_from_name(name: object) -> str:
    if name is None or pd.isna(name):
        return UNKNOWN_TEXT
    surname = str(name).split(",")[0].strip()
    return surname or UNKNOWN_TEXT


def _optional_float(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def clean_passenger_frame(raw: pd.DataFrame) -> pd.DataFrame:
    """Normalize raw manifest columns and drop rows missing survived/pclass/sex.

    Age and fare keep their gaps (NaN); negative or infinite values count as gaps too.
    """
    df = raw.rename(columns=canonical_column)
    df = drop_duplicate_columns(df)
    for col in RECORD_COLUMNS:
        if col not in df.columns:
            df[col] = pd.NA
    df = df[RECORD_COLUMNS].copy()

    df = coerce_str_safe(df, ["name", "sex", "ticket"])
    numeric = ["survived", "pclass", "age", "sibsp", "parch", "fare"]
    df = numericize(df, numeric)
    df[numeric] = df[numeric].replace([np.inf, -np.inf], np.nan)
    df["sex"] = df["sex"].apply(normalize_sex)

    valid = df["survived"].isin([0, 1]) & df["pclass"].isin(PASSENGER_CLASSES) & df["sex"].notna()
    df = df[valid].copy()

    df["survived"] = df["survived"].astype(int).astype(bool)
    df["pclass"] = df["pclass"].astype(int)
    df["age"] = df["age"].where(df["age"] >= 0)
    df["fare"] = df["fare"].where(df["fare"] >= 0)
    for col in ["sibsp", "parch"]:
        df[col] = df[col].fillna(0).clip(lower=0).astype(int)
    df["id"] = df["name"].apply(passenger_id_from_name)
    df["name"] = df["name"].fillna(UNKNOWN_TEXT)
    df["ticket"] = df["ticket"].fillna(UNKNOWN_TEXT)
    return df.reset_index(drop=True)


def _record_from_row(row: Mapping[str, Any]) -> PassengerRecord:
    return PassengerRecord(
        id=str(row["id"]),
        survived=bool(row["survived"]),
        pclass=int(row["pclass"]),
        sex=str(row["sex"]),
        age=_optional_float(row["age"]),
        fare=_optional_float(row["fare"]),
        name=str(row["name"]),
        sibsp=int(row["sibsp"]),
        parch=int(row["parch"]),
        ticket=str(row["ticket"]),
    )


def load_records(raw_rows: Union[pd.DataFrame, Iterable[Mapping[str, Any]]]) -> RecordCollection:
    """Build the working set from raw manifest rows (a frame or an iterable of dicts)."""
    frame = raw_rows.copy() if isinstance(raw_rows, pd.DataFrame) else pd.DataFrame(list(raw_rows))
    if frame.empty:
        logger.info("Loaded 0 passenger records (source was empty)")
        return RecordCollection()

    cleaned = clean_passenger_frame(frame)
    records = tuple(_record_from_row(row) for row in cleaned.to_dict(orient="records"))
    dropped = len(frame) - len(records)
    logger.info("Loaded %d passenger records (%d rows dropped for missing survived/pclass/sex)", len(records), dropped)
    return RecordCollection(records)


def load_records_from_csv(path: Union[str, Path]) -> RecordCollection:
    path = Path(path)
    if not path.is_file():
        raise DataLoadError(path, "file not found")
    try:
        raw = pd.read_csv(path, dtype=str)
    except (OSError, ValueError) as exc:
        raise DataLoadError(path, str(exc)) from exc

    missing = missing_required_columns(raw)
    if missing:
        raise DataLoadError(path, f"missing required columns: {', '.join(missing)}")
    if raw.empty:
        raise DataLoadError(path, "no passenger rows")
    try:
        records = load_records(raw)
    except (TypeError, ValueError) as exc:
        raise DataLoadError(path, str(exc)) from exc
    if len(records) == 0:
        raise DataLoadError(path, "no rows with survived, pclass and sex")
    return records


def resolve_data_path(path: Optional[Union[str, Path]] = None) -> Path:
    if path is not None:
        return Path(path)
    override = os.environ.get(DATA_PATH_ENV)
    if override:
        return Path(override)
    return DATA_DIR / DATA_FILE


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path.resolve()), path.stat().st_mtime


@lru_cache(maxsize=4)
def _load_story_data_cached(file_sig: Tuple[str, float]) -> RecordCollection:
    return load_records_from_csv(file_sig[0])


def load_story_data(path: Optional[Union[str, Path]] = None) -> RecordCollection:
    resolved = resolve_data_path(path)
    if not resolved.is_file():
        raise DataLoadError(resolved, "file not found")
    return _load_story_data_cached(file_signature(resolved))
