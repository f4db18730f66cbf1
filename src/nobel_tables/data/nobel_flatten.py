from typing import Dict, List, Tuple, Any, Iterable, Optional
from urllib.parse import urlparse

# translation keys used by the API for localized strings
LANGUAGE_CODES = ("en", "se", "no")


def flatten_record(record: Dict[str, Any], sep: str = "_", language: Optional[str] = "en",
                   prefix: str = "") -> Tuple[Dict[str, Any], Dict[str, list]]:
    """
    Flatten nested dicts into a single level of ``sep``-joined column names.

    Returns ``(flat, lists)``: scalar columns, and every list found keyed by
    its flattened path. Lists are left for the caller to explode.

    With ``language`` set, translated leaves (``{"en": .., "se": .., "no": ..}``)
    collapse to the chosen language under the parent's name; other
    translations are dropped. ``language=None`` keeps all of them suffixed.
    """
    flat: Dict[str, Any] = {}
    lists: Dict[str, list] = {}
    for key, value in record.items():
        name = f"{prefix}{sep}{key}" if prefix else str(key)
        if isinstance(value, dict):
            sub_flat, sub_lists = flatten_record(value, sep=sep, language=language, prefix=name)
            flat.update(sub_flat)
            lists.update(sub_lists)
        elif isinstance(value, list):
            lists[name] = value
        elif language and prefix and key in LANGUAGE_CODES:
            if key == language:
                flat[prefix] = value
        else:
            flat[name] = value
    return flat, lists


def _dict_items(items: Iterable[Any]) -> List[Dict[str, Any]]:
    # affiliations occasionally arrive wrapped in an extra list
    out = []
    for item in items or []:
        if isinstance(item, dict):
            out.append(item)
        elif isinstance(item, list):
            for sub in item:
                if isinstance(sub, dict):
                    out.append(sub)
    return out


def explode(parents: Iterable[Tuple[Dict[str, Any], Dict[str, list]]], field: str, index_name: str,
            sep: str = "_", language: Optional[str] = "en") -> List[Tuple[Dict[str, Any], Dict[str, list]]]:
    """
    Unnest the list stored under ``field`` of each parent.

    ``parents`` yields ``(keys, lists)`` pairs: the parent's key values and the
    ``lists`` half of its flattened record. Each child dict becomes one row
    carrying the parent keys and its position in ``index_name``; parent keys
    win over child columns of the same name.
    """
    children = []
    for keys, lists in parents:
        for i, item in enumerate(_dict_items(lists.get(field))):
            flat, sub_lists = flatten_record(item, sep=sep, language=language)
            row = dict(keys)
            row[index_name] = i
            for k, v in flat.items():
                if k not in row:
                    row[k] = v
            children.append((row, sub_lists))
    return children


def _host_in(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def link_kind(url: str) -> str:
    host = urlparse(url).hostname or ""
    if _host_in(host, "wikidata.org"):
        return "wikidata"
    if _host_in(host, "wikipedia.org"):
        return "wikipedia"
    return "other"


def explode_links(items: Iterable[Any], parent_keys: Dict[str, Any], source: str) -> List[Dict[str, Any]]:
    rows = []
    position = 0
    for item in items or []:
        if not isinstance(item, str) or not item:
            continue
        row = dict(parent_keys)
        row.update({"source": source, "position": position, "url": item, "kind": link_kind(item)})
        rows.append(row)
        position += 1
    return rows
