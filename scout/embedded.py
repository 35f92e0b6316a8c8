"""
Embedded application state.

Client-rendered storefronts ship their data twice: once as markup and once as a
hydration payload (Next.js `__NEXT_DATA__`, `window.___INITIAL_STATE___`,
`application/json` script blocks). The payload survives class-name churn, so
it is the first thing the extractors look at.
"""
import json
import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]
JsonPath = Tuple[Union[str, int], ...]

MAX_DEPTH = 15

_decoder = json.JSONDecoder()
_GLOBAL_RE = re.compile(r"window\.([A-Za-z_$][\w$]*)\s*=\s*")


def _safe_json_loads(text: Optional[str]) -> Optional[JsonValue]:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _raw_decode(text: str, start: int) -> Optional[JsonValue]:
    # raw_decode stops at the end of the first complete value, which takes
    # care of trailing `;` and the rest of the inline script.
    while start < len(text) and text[start].isspace():
        start += 1
    if start >= len(text) or text[start] not in "{[":
        return None
    try:
        value, _ = _decoder.raw_decode(text, start)
    except ValueError:
        return None
    return value


def find_global_assignments(html: str, names: Sequence[str]) -> List[Tuple[str, JsonValue]]:
    """
    Parse `window.<NAME> = {...}` blobs for the given global names, in the
    order they appear in the page.
    """
    if not html or not names:
        return []
    wanted = set(names)
    found = []
    for m in _GLOBAL_RE.finditer(html):
        name = m.group(1)
        if name not in wanted:
            continue
        value = _raw_decode(html, m.end())
        if value is None:
            logger.debug("Global %s found but its payload is not JSON", name)
            continue
        found.append((name, value))
    return found


def find_state_payloads(soup: BeautifulSoup, html: str, global_names: Sequence[str] = ()) -> List[JsonValue]:
    """
    Every JSON payload a page embeds, most structured first: `__NEXT_DATA__`,
    declared JSON script blocks, then known `window.*` globals.
    """
    payloads: List[JsonValue] = []

    next_data = soup.select_one("script#__NEXT_DATA__")
    if next_data is not None:
        data = _safe_json_loads(next_data.string or next_data.get_text())
        if data is not None:
            payloads.append(data)

    for tag in soup.select('script[type="application/json"]'):
        if tag.get("id") == "__NEXT_DATA__":
            continue
        data = _safe_json_loads(tag.string or tag.get_text())
        if isinstance(data, (dict, list)):
            payloads.append(data)

    for _, data in find_global_assignments(html, global_names):
        payloads.append(data)

    return payloads


def walk(
    value: JsonValue,
    match: Callable[[Dict[str, JsonValue]], bool],
    descend: Optional[Callable[[str], bool]] = None,
    max_depth: int = MAX_DEPTH,
) -> Iterator[Tuple[JsonPath, Dict[str, JsonValue]]]:
    """
    Depth-first search for objects accepted by `match`.

    Matching objects are yielded and not descended into. Arrays are always
    entered; object keys only when `descend(key)` says so (all keys when
    `descend` is None). Nothing below `max_depth` is visited.
    """
    stack: List[Tuple[JsonPath, JsonValue]] = [((), value)]
    while stack:
        path, node = stack.pop()
        if len(path) > max_depth:
            continue
        if isinstance(node, dict):
            if path and match(node):
                yield path, node
                continue
            children = [
                (path + (key,), child)
                for key, child in node.items()
                if isinstance(child, (dict, list)) and (descend is None or descend(key))
            ]
        elif isinstance(node, list):
            children = [
                (path + (idx,), child)
                for idx, child in enumerate(node)
                if isinstance(child, (dict, list))
            ]
        else:
            continue
        # reversed so the stack pops in document order
        stack.extend(reversed(children))


def walk_strings(
    value: JsonValue,
    key_filter: Callable[[str], bool],
    max_depth: int = MAX_DEPTH,
) -> Iterator[str]:
    """Yield string leaves reachable only through keys accepted by `key_filter`."""
    stack: List[Tuple[int, JsonValue, bool]] = [(0, value, False)]
    while stack:
        depth, node, keyed = stack.pop()
        if depth > max_depth:
            continue
        if isinstance(node, str):
            if keyed:
                yield node
        elif isinstance(node, dict):
            stack.extend(reversed([
                (depth + 1, child, True)
                for key, child in node.items()
                if key_filter(key)
            ]))
        elif isinstance(node, list):
            stack.extend(reversed([(depth + 1, child, keyed) for child in node]))


def dig(value: JsonValue, *path: Union[str, int]) -> Optional[JsonValue]:
    """Follow a fixed key path, returning None on any miss."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(value, list) or step >= len(value):
                return None
            value = value[step]
        else:
            if not isinstance(value, dict):
                return None
            value = value.get(step)
        if value is None:
            return None
    return value


def first_value(node: Dict[str, Any], keys: Sequence[str]) -> Any:
    """First key in `keys` whose value is present and not an empty string."""
    for key in keys:
        value = node.get(key)
        if value is None or value == "":
            continue
        return value
    return None
