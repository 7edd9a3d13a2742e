"""
Canonical shapes for heterogeneous JSON field values
"""

import os
from datetime import datetime
from typing import Any, List, NamedTuple, Optional
from urllib.parse import urlparse

from dateutil import parser as date_parser


class AssetDescriptor(NamedTuple):
    """One asset reference found in a record"""
    src: str
    title: Optional[str] = None


def normalize_asset_descriptors(value: Any, multiple: bool = False) -> List[AssetDescriptor]:
    """
    Turn an images value into an ordered list of descriptors.

    Accepted shapes:
    - ``"https://.../a.jpg"``
    - ``"https://.../a.jpg, https://.../b.jpg"`` (only split when ``multiple``)
    - ``{"src": "...", "title": "..."}``
    - a list mixing URL strings and ``{"src", "title"}`` objects

    Entries with a blank ``src`` are dropped; a blank title becomes None.
    """
    if isinstance(value, dict):
        items = [value] if isinstance(value.get("src"), str) else []
    elif isinstance(value, list):
        items = value
    else:
        text = str(value)
        items = text.split(",") if multiple else [text]

    descriptors = []
    for item in items:
        if isinstance(item, dict):
            src = item.get("src")
            title = item.get("title")
        elif isinstance(item, str):
            src, title = item, None
        else:
            continue

        if not isinstance(src, str) or not src.strip():
            continue

        title = str(title).strip() if title is not None else None
        descriptors.append(AssetDescriptor(src=src.strip(), title=title or None))

    return descriptors


def normalize_term_titles(value: Any) -> List[str]:
    """Turn a taxonomy value (list or comma separated string) into titles"""
    if isinstance(value, list):
        items = value
    else:
        items = str(value).split(",")

    titles = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        title = str(item).strip()
        if title:
            titles.append(title)

    return titles


def asset_key(url: str) -> str:
    """Deduplication key of an asset: the basename of the URL path"""
    return os.path.basename(urlparse(url).path)


def parse_date(value: Any, input_format: Optional[str] = None) -> Optional[datetime]:
    """
    Parse a date value.

    With ``input_format`` the value must match it exactly (strptime
    directives); without it a best-effort parse is attempted. Empty or
    unparsable input returns None.
    """
    if value is None or value == "" or value is False:
        return None

    if isinstance(value, datetime):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        if input_format:
            return datetime.strptime(text, input_format)
        return date_parser.parse(text)
    except (ValueError, OverflowError, TypeError):
        return None
