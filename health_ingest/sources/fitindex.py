# sources/fitindex.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ..csv_tokens import normalize_header, split_lines, tokenize
from ..models import ImportReport, StatsRow
from ..utils import parse_num, round_2dp

logger = structlog.get_logger()

SOURCE = "fitindex"
KG_TO_LB = 2.20462

TIME_HEADERS = {"Time", "Time of Measurement"}

# header text (both spellings the app has used) -> FitindexRow attribute
COLUMN_FIELDS: Dict[str, str] = {
    "Weight (kg)": "weight_kg",
    "Weight(lb)": "weight_lb",
    "Weight (lb)": "weight_lb",
    "BMI": "bmi",
    "Body Fat (%)": "body_fat_pct",
    "Body Fat(%)": "body_fat_pct",
    "Fat-free Body Weight (kg)": "fat_free_weight_kg",
    "Fat-free Body Weight(lb)": "fat_free_weight_lb",
    "Fat-free Body Weight (lb)": "fat_free_weight_lb",
    "Subcutaneous Fat (%)": "subcutaneous_fat_pct",
    "Subcutaneous Fat(%)": "subcutaneous_fat_pct",
    "Visceral Fat": "visceral_fat",
    "Body Water (%)": "body_water_pct",
    "Body Water(%)": "body_water_pct",
    "Skeletal Muscle (%)": "skeletal_muscle_pct",
    "Skeletal Muscle(%)": "skeletal_muscle_pct",
    "Muscle Mass (kg)": "muscle_mass_kg",
    "Muscle Mass(lb)": "muscle_mass_lb",
    "Muscle Mass (lb)": "muscle_mass_lb",
    "Bone Mass (kg)": "bone_mass_kg",
    "Bone Mass(lb)": "bone_mass_lb",
    "Bone Mass (lb)": "bone_mass_lb",
    "Protein (%)": "protein_pct",
    "Protein(%)": "protein_pct",
    "BMR (kcal)": "bmr_kcal",
    "BMR(kcal)": "bmr_kcal",
    "Metabolic Age": "metabolic_age",
}

# Standard export column order (0 = Time), used when header text differs
POSITIONAL_FIELDS: List[str] = [
    "weight_lb",
    "bmi",
    "body_fat_pct",
    "fat_free_weight_lb",
    "subcutaneous_fat_pct",
    "visceral_fat",
    "body_water_pct",
    "skeletal_muscle_pct",
    "muscle_mass_lb",
    "bone_mass_lb",
    "protein_pct",
    "bmr_kcal",
    "metabolic_age",
]

_MDY_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_YMD_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


@dataclass
class FitindexRow:
    date: str = ""
    time: str = ""
    weight_kg: Optional[float] = None
    weight_lb: Optional[float] = None
    bmi: Optional[float] = None
    body_fat_pct: Optional[float] = None
    fat_free_weight_kg: Optional[float] = None
    fat_free_weight_lb: Optional[float] = None
    subcutaneous_fat_pct: Optional[float] = None
    visceral_fat: Optional[float] = None
    body_water_pct: Optional[float] = None
    skeletal_muscle_pct: Optional[float] = None
    muscle_mass_kg: Optional[float] = None
    muscle_mass_lb: Optional[float] = None
    bone_mass_kg: Optional[float] = None
    bone_mass_lb: Optional[float] = None
    protein_pct: Optional[float] = None
    bmr_kcal: Optional[float] = None
    metabolic_age: Optional[float] = None
    extra: Dict[str, str] = field(default_factory=dict)


def is_fitindex_file_name(file_name: str) -> bool:
    return "FITINDEX" in file_name.upper() and file_name.lower().endswith(".csv")


def parse_fitindex_date(raw: str) -> str:
    """ "09/02/2024, 07:15:00" or "2024-09-02 ..." -> "2024-09-02"; "" when neither."""
    m = _MDY_RE.search(raw)
    if m:
        month, day, year = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    m = _YMD_RE.match(raw)
    return f"{m.group(1)}-{m.group(2)}-{m.group(3)}" if m else ""


def _apply_positional(row: FitindexRow, values: List[str]) -> None:
    if len(values) < len(POSITIONAL_FIELDS) + 1:
        return
    if not row.date:
        row.date = parse_fitindex_date(values[0])
        row.time = values[0]
    for idx, attr in enumerate(POSITIONAL_FIELDS, start=1):
        if getattr(row, attr) is None:
            setattr(row, attr, parse_num(values[idx]))


def parse_fitindex_csv(csv_text: str) -> List[FitindexRow]:
    lines = split_lines(csv_text)
    if len(lines) < 2:
        return []
    headers = [normalize_header(h) for h in tokenize(lines[0])]

    rows: List[FitindexRow] = []
    for line in lines[1:]:
        values = tokenize(line)
        row = FitindexRow()
        for header, raw in zip(headers, values):
            if header in TIME_HEADERS:
                row.time = raw
                row.date = parse_fitindex_date(raw)
            elif header in COLUMN_FIELDS:
                setattr(row, COLUMN_FIELDS[header], parse_num(raw))
            elif header and raw:
                row.extra[header] = raw
        _apply_positional(row, values)
        if row.date:
            rows.append(row)
        else:
            logger.debug("fitindex_row_without_date", line=line[:40])
    return rows


def _lb(lb: Optional[float], kg: Optional[float]) -> Optional[float]:
    if lb is not None:
        return round_2dp(lb)
    if kg is not None:
        return round_2dp(kg * KG_TO_LB)
    return None


def fitindex_stats(row: FitindexRow) -> StatsRow:
    candidates = {
        "weight": _lb(row.weight_lb, row.weight_kg),
        "bmi": row.bmi,
        "bfp": row.body_fat_pct,
        "lbm": _lb(row.fat_free_weight_lb, row.fat_free_weight_kg),
        "subcutaneousFat": row.subcutaneous_fat_pct,
        "visceralFat": row.visceral_fat,
        "bodyWater": row.body_water_pct,
        "skeletalMuscle": row.skeletal_muscle_pct,
        "muscleMass": _lb(row.muscle_mass_lb, row.muscle_mass_kg),
        "boneMass": _lb(row.bone_mass_lb, row.bone_mass_kg),
        "protein": row.protein_pct,
        "bmr": row.bmr_kcal,
        "metabolicAge": row.metabolic_age,
    }
    values = {k: v for k, v in candidates.items() if v is not None}
    return StatsRow(date=row.date, source=SOURCE, values=values)


def load_file(path: Path) -> ImportReport:
    report = ImportReport()
    for row in parse_fitindex_csv(path.read_text(encoding="utf-8", errors="replace")):
        report.stats.append(fitindex_stats(row))
        report.success += 1
    return report
