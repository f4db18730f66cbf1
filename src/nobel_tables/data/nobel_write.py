import os
import logging
from typing import Dict

import pandas as pd

from nobel_tables.data.nobel_tables import TABLE_KEYS, coerce_keys

logger = logging.getLogger(__name__)


def extension_for(sep: str) -> str:
    if sep == ",":
        return ".csv"
    if sep == "\t":
        return ".tsv"
    return ".txt"


def write_tables(tables: Dict[str, pd.DataFrame], out_dir: str, sep: str = ",",
                 encoding: str = "utf-8") -> Dict[str, str]:
    os.makedirs(out_dir, exist_ok=True)
    ext = extension_for(sep)
    paths = {}
    for name, df in tables.items():
        keys = [k for k in TABLE_KEYS.get(name, []) if k in df.columns]
        df = df[keys + [c for c in df.columns if c not in keys]]
        path = os.path.join(out_dir, f"{name}{ext}")
        df.to_csv(path, index=False, sep=sep, encoding=encoding)
        logger.info("Saved %d rows -> %s", len(df), path)
        paths[name] = path
    return paths


def read_table(path: str, sep: str = ",", encoding: str = "utf-8") -> pd.DataFrame:
    df = pd.read_csv(path, sep=sep, encoding=encoding, low_memory=False)
    return coerce_keys(df)
