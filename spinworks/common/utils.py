from __future__ import annotations

import re


def safe_stem(name: str) -> str:
    name = name.strip()
    name = re.sub(r"[<>:\"/\\|?*\n\r\t]+", "_", name)
    name = re.sub(r"\s+", " ", name).strip()
    return name or "Untitled"
