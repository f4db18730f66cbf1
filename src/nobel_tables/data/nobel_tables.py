import logging
from typing import Dict, List, Any, Optional

import pandas as pd

from nobel_tables.data.nobel_flatten import flatten_record, explode, explode_links

logger = logging.getLogger(__name__)

LAUREATE_KEYS = ["laureate_id"]
PRIZE_KEYS = ["laureate_id", "award_year", "category"]
INT_KEYS = ("laureate_id", "award_year", "affiliation_index", "residence_index")

# list fields unnested into their own tables; every other list of strings is a cross-reference
PRIZES_FIELD = "nobelPrizes"
CHILD_FIELDS = ("affiliations", "residences")
LINKS_FIELD = "links"

TABLE_KEYS = {
    "laureates": LAUREATE_KEYS,
    "prizes": PRIZE_KEYS + ["prize_index"],
    "affiliations": PRIZE_KEYS + ["affiliation_index"],
    "residences": PRIZE_KEYS + ["residence_index"],
    "laureate_links": LAUREATE_KEYS + ["link_index"],
    "prize_links": PRIZE_KEYS + ["link_index"],
    "same_as": PRIZE_KEYS + ["affiliation_index", "residence_index", "source", "position"],
    "laureates_prizes": PRIZE_KEYS,
}


def coerce_keys(df: pd.DataFrame) -> pd.DataFrame:
    for col in INT_KEYS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
    if "category" in df.columns:
        # all-null categories read back as float; keep the join dtype stable
        df["category"] = df["category"].astype(object)
    return df


def frame(rows: List[Dict[str, Any]], keys: List[str]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    for k in keys:
        if k not in df.columns:
            df[k] = None
    rest = [c for c in df.columns if c not in keys]
    return coerce_keys(df[keys + rest])


def _link_items(items) -> List[Dict[str, Any]]:
    out = []
    for item in items or []:
        if isinstance(item, dict):
            out.append(item)
        elif isinstance(item, str) and item:
            out.append({"href": item})
    return out


def _cross_refs(lists: Dict[str, list], keys: Dict[str, Any], skip, source_prefix: str = "") -> List[Dict[str, Any]]:
    rows = []
    for path, items in lists.items():
        if path in skip:
            continue
        if any(isinstance(i, str) for i in items):
            rows.extend(explode_links(items, keys, source_prefix + path))
    return rows


def _category(flat: Dict[str, Any], language: Optional[str]):
    if "category" in flat:
        return flat["category"]
    return flat.get(f"category_{language or 'en'}")


def build_tables(laureates: List[Dict[str, Any]], sep: str = "_",
                 language: Optional[str] = "en") -> Dict[str, pd.DataFrame]:
    """
    Split raw laureate records into normalized tables keyed by
    laureate id, award year and prize category, plus the denormalized
    ``laureates_prizes`` outer join.
    """
    laureate_rows = []
    prize_parents = []
    laureate_link_parents = []
    same_as_rows = []

    for record in laureates:
        if not isinstance(record, dict):
            continue
        flat, lists = flatten_record(record, sep=sep, language=language)
        row = {"laureate_id": flat.pop("id", None)}
        row.update(flat)
        laureate_rows.append(row)

        keys = {"laureate_id": row["laureate_id"]}
        prize_parents.append((keys, lists))
        laureate_link_parents.append((keys, {LINKS_FIELD: _link_items(lists.get(LINKS_FIELD))}))
        ref_keys = {"laureate_id": row["laureate_id"], "award_year": None, "category": None}
        same_as_rows.extend(_cross_refs(lists, ref_keys, skip=(PRIZES_FIELD, LINKS_FIELD)))

    prize_rows = []
    child_parents = []
    for raw_row, lists in explode(prize_parents, PRIZES_FIELD, "prize_index", sep=sep, language=language):
        row = {
            "laureate_id": raw_row.pop("laureate_id"),
            "award_year": raw_row.pop("awardYear", None),
            "category": _category(raw_row, language),
            "prize_index": raw_row.pop("prize_index"),
        }
        raw_row.pop("category", None)
        row.update(raw_row)
        prize_rows.append(row)

        keys = {k: row[k] for k in PRIZE_KEYS}
        child_parents.append((keys, lists))
        same_as_rows.extend(_cross_refs(lists, keys, skip=CHILD_FIELDS + (LINKS_FIELD,), source_prefix="prize_"))

    children = {}
    for field in CHILD_FIELDS:
        singular = field[:-1] if field.endswith("s") else field
        rows = []
        for row, lists in explode(child_parents, field, f"{singular}_index", sep=sep, language=language):
            rows.append(row)
            keys = {k: row[k] for k in PRIZE_KEYS}
            keys[f"{singular}_index"] = row[f"{singular}_index"]
            same_as_rows.extend(_cross_refs(lists, keys, skip=(), source_prefix=f"{singular}_"))
        children[field] = rows

    prize_link_parents = [(keys, {LINKS_FIELD: _link_items(lists.get(LINKS_FIELD))}) for keys, lists in child_parents]
    laureate_links = [row for row, _ in explode(laureate_link_parents, LINKS_FIELD, "link_index", sep=sep, language=language)]
    prize_links = [row for row, _ in explode(prize_link_parents, LINKS_FIELD, "link_index", sep=sep, language=language)]

    tables = {
        "laureates": frame(laureate_rows, TABLE_KEYS["laureates"]),
        "prizes": frame(prize_rows, TABLE_KEYS["prizes"]),
        "affiliations": frame(children["affiliations"], TABLE_KEYS["affiliations"]),
        "residences": frame(children["residences"], TABLE_KEYS["residences"]),
        "laureate_links": frame(laureate_links, TABLE_KEYS["laureate_links"]),
        "prize_links": frame(prize_links, TABLE_KEYS["prize_links"]),
        "same_as": frame(same_as_rows, TABLE_KEYS["same_as"]),
    }
    tables["laureates_prizes"] = joined(tables["laureates"], tables["prizes"], tables["affiliations"])
    logger.info("Built tables: %s", ", ".join(f"{k}={len(v)}" for k, v in tables.items()))
    return tables


def joined(laureates: pd.DataFrame, prizes: pd.DataFrame, affiliations: pd.DataFrame) -> pd.DataFrame:
    """Outer-join laureates -> prizes -> affiliations; affiliation columns get an ``aff_`` prefix."""
    lp = laureates.merge(prizes, on="laureate_id", how="outer", suffixes=("", "_prize"))
    aff = affiliations.rename(columns={c: f"aff_{c}" for c in affiliations.columns if c not in PRIZE_KEYS})
    out = lp.merge(aff, on=PRIZE_KEYS, how="outer", suffixes=("", "_aff"))
    out = coerce_keys(out)
    out = out.sort_values(PRIZE_KEYS, na_position="last", kind="mergesort").reset_index(drop=True)
    rest = [c for c in out.columns if c not in PRIZE_KEYS]
    return out[PRIZE_KEYS + rest]


def table_metrics(tables: Dict[str, pd.DataFrame]) -> Dict[str, int]:
    metrics = {f"rows_{name}": int(len(df)) for name, df in tables.items()}
    laureates = tables.get("laureates")
    if laureates is not None:
        metrics["laureates_unique"] = int(laureates["laureate_id"].nunique())
    return metrics
