import os
import json
import time
import logging
from typing import Optional, List, Dict, Any

import requests

logger = logging.getLogger(__name__)

API_URL = "https://api.nobelprize.org/2.1/laureates"
DEFAULT_LIMIT = 25
DEFAULT_DELAY = 0.2
DEFAULT_TIMEOUT = 60

# query parameters the laureates endpoint accepts besides offset/limit
FILTER_PARAMS = ("nobelPrizeYear", "yearTo", "nobelPrizeCategory", "gender", "sort")


class NobelApiError(RuntimeError):
    """Raised when the API answers with something that is not a laureates page."""


def fetch_page(url: str, offset: int, limit: int, params: Optional[dict] = None,
               timeout: float = DEFAULT_TIMEOUT, session=None) -> dict:
    query = {"offset": offset, "limit": limit}
    for k, v in (params or {}).items():
        if k in FILTER_PARAMS and v is not None:
            query[k] = v
    http = session or requests
    r = http.get(url, params=query, headers={"accept": "application/json"}, timeout=timeout)
    r.raise_for_status()
    try:
        data = r.json()
    except ValueError as e:
        raise NobelApiError(f"Response at offset {offset} is not JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("laureates"), list):
        raise NobelApiError(f"Response at offset {offset} has no 'laureates' list")
    return data


def fetch_laureates(url: str = API_URL, limit: int = DEFAULT_LIMIT, params: Optional[dict] = None,
                    delay: float = DEFAULT_DELAY, timeout: float = DEFAULT_TIMEOUT,
                    session=None, max_records: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Accumulate every laureate record by walking the endpoint with offset/limit.

    The total comes from ``meta.count`` of the first page; a page without a
    count is treated as the only one. An empty page ends the walk even when
    the count says otherwise.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    if max_records is not None and max_records < 0:
        raise ValueError("max_records must not be negative")
    if max_records == 0:
        return []
    all_data: List[Dict[str, Any]] = []
    offset = 0
    total_count = None

    while total_count is None or offset < total_count:
        if offset > 0 and delay:
            time.sleep(delay)
        logger.info("Fetching laureates %d to %d", offset, offset + limit)
        data = fetch_page(url, offset, limit, params=params, timeout=timeout, session=session)

        if total_count is None:
            meta = data.get("meta") or {}
            count = meta.get("count")
            total_count = int(count) if count is not None else len(data["laureates"])
            logger.info("API reports %d laureates", total_count)

        page = data["laureates"]
        if not page:
            if offset < total_count:
                logger.warning("Empty page at offset %d before reaching count %d", offset, total_count)
            break
        all_data.extend(page)
        offset += limit

        if max_records is not None and len(all_data) >= max_records:
            all_data = all_data[:max_records]
            break

    logger.info("Fetched %d laureate records", len(all_data))
    return all_data


def save_raw(laureates: List[Dict[str, Any]], path: str) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"laureates": laureates}, f, ensure_ascii=False, indent=2)
    return path


def load_raw(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("laureates"), list):
        return data["laureates"]
    raise NobelApiError(f"{path} does not hold a laureates list")
