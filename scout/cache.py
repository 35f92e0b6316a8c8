from pathlib import Path
from typing import Optional

import orjson

from .config import get_settings


def out_dir(base: Optional[Path] = None) -> Path:
    path = Path(base) if base is not None else get_settings().output_dir
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_raw(filename: str, html: str, base: Optional[Path] = None) -> Path:
    path = out_dir(base) / filename
    path.write_text(html, encoding="utf-8")
    return path


def load_raw(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


def save_json(filename: str, obj, base: Optional[Path] = None) -> Path:
    path = out_dir(base) / filename
    path.write_bytes(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    return path


def append_jsonl(filename: str, obj: dict, base: Optional[Path] = None):
    with open(out_dir(base) / filename, "ab") as f:
        f.write(orjson.dumps(obj) + b"\n")
