import os
import json
import time
import logging
from typing import Dict, Optional, List

import pandas as pd

from nobel_tables.data.nobel_tables import PRIZE_KEYS, TABLE_KEYS
from nobel_tables.data.nobel_write import extension_for, read_table

logger = logging.getLogger(__name__)

EXPECTED_TABLES = list(TABLE_KEYS)
CHILD_TABLES = ("affiliations", "residences", "prize_links")

THRESHOLDS_DEFAULT = {
    "min_laureates": 1,
    "max_missing_rate": 0.5,  # any key field may be missing for at most half of the rows
}


def file_ok(path: str) -> bool:
    return os.path.exists(path) and os.path.getsize(path) > 0


def load_thresholds(path: Optional[str]) -> Dict[str, float]:
    thresholds = dict(THRESHOLDS_DEFAULT)
    if not path or not os.path.exists(path):
        return thresholds
    try:
        with open(path, "r", encoding="utf-8") as f:
            thresholds.update(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load thresholds from %s: %s", path, e)
    return thresholds


def missing_rate(df: pd.DataFrame, col: str) -> float:
    if col not in df.columns or len(df) == 0:
        return 1.0 if len(df) else 0.0
    return round(float(df[col].isna().mean()), 4)


def orphan_rows(child: pd.DataFrame, prizes: pd.DataFrame) -> int:
    if len(child) == 0:
        return 0
    known = prizes[PRIZE_KEYS].drop_duplicates()
    merged = child[PRIZE_KEYS].merge(known, on=PRIZE_KEYS, how="left", indicator=True)
    return int((merged["_merge"] == "left_only").sum())


def eval_tables(tables_dir: str, sep: str = ",", thresholds_override: Optional[dict] = None,
                out_dir: Optional[str] = None) -> dict:
    ext = extension_for(sep)
    paths = {name: os.path.join(tables_dir, f"{name}{ext}") for name in EXPECTED_TABLES}
    checks = {f"{name}_exists": file_ok(p) for name, p in paths.items()}
    tables = {name: read_table(p, sep=sep) for name, p in paths.items() if checks[f"{name}_exists"]}

    metrics = {}
    notes: List[str] = []
    for name, df in tables.items():
        metrics[f"rows_{name}"] = int(len(df))

    laureates = tables.get("laureates")
    prizes = tables.get("prizes")
    if laureates is not None:
        metrics["laureates_unique"] = int(laureates["laureate_id"].nunique())
        metrics["laureate_id_duplicates"] = int(laureates["laureate_id"].duplicated().sum())
        metrics["gender_missing_rate"] = missing_rate(laureates, "gender")
    if prizes is not None:
        metrics["prize_key_duplicates"] = int(prizes.duplicated(subset=PRIZE_KEYS).sum())
        metrics["award_year_missing_rate"] = missing_rate(prizes, "award_year")
        metrics["category_missing_rate"] = missing_rate(prizes, "category")
        years = prizes["award_year"].dropna()
        if len(years) > 0:
            metrics["year_min"] = int(years.min())
            metrics["year_max"] = int(years.max())
        else:
            metrics["year_min"] = None
            metrics["year_max"] = None
            notes.append("No award year present in prizes.")
        metrics["orphan_rows"] = sum(
            orphan_rows(tables[name], prizes) for name in CHILD_TABLES if name in tables
        )
    same_as = tables.get("same_as")
    if same_as is not None:
        metrics["same_as_key_duplicates"] = int(same_as.duplicated(subset=TABLE_KEYS["same_as"]).sum())

    thresholds = dict(THRESHOLDS_DEFAULT)
    thresholds.update(thresholds_override or {})
    max_missing = thresholds["max_missing_rate"]
    rubric = {
        "tables_ok": all(checks.values()),
        "data_volume_ok": metrics.get("laureates_unique", 0) >= thresholds["min_laureates"],
        "laureate_keys_unique": metrics.get("laureate_id_duplicates", 1) == 0,
        "prize_keys_unique": metrics.get("prize_key_duplicates", 1) == 0,
        "same_as_keys_unique": metrics.get("same_as_key_duplicates", 1) == 0,
        "no_orphans": metrics.get("orphan_rows", 1) == 0,
        "year_missing_ok": metrics.get("award_year_missing_rate", 1.0) <= max_missing,
        "category_missing_ok": metrics.get("category_missing_rate", 1.0) <= max_missing,
        "gender_missing_ok": metrics.get("gender_missing_rate", 1.0) <= max_missing,
    }

    report = {
        "timestamp": int(time.time()),
        "checks": checks,
        "metrics": metrics,
        "rubric": rubric,
        "thresholds": thresholds,
        "status_ok": all(rubric.values()),
        "notes": notes,
        "artifacts": {"tables_dir": tables_dir, "tables": paths},
    }

    out_dir = out_dir or tables_dir
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, f"eval_{report['timestamp']}.json")
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)
    report["report_path"] = out_path
    logger.info("Eval complete. Report saved -> %s", out_path)
    return report


def failed_rubric(report: dict) -> List[str]:
    return [k for k, v in (report.get("rubric") or {}).items() if v is False]


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Evaluate Nobel table outputs")
    parser.add_argument("--tables-dir", type=str, required=True, help="Directory holding the written tables.")
    parser.add_argument("--sep", type=str, default=",", help="Field separator used when writing.")
    parser.add_argument("--thresholds", type=str, default=None, help="Optional JSON file overriding thresholds.")
    parser.add_argument("--out-dir", type=str, default=None, help="Where to write the report.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    report = eval_tables(args.tables_dir, sep=args.sep, thresholds_override=load_thresholds(args.thresholds),
                         out_dir=args.out_dir)
    print(f"Eval status_ok={report['status_ok']}. Report saved -> {report['report_path']}")


if __name__ == "__main__":
    main()
