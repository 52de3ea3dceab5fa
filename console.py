# console.py
"""
Console status lines: [INFO] / [WARN] / [ERROR] / [DEBUG] prefixes, plain print.
Debug output is enabled with AZTAG_DEBUG=1 or set_debug(True).
"""

import os

_DEBUG = os.getenv("AZTAG_DEBUG", "").strip().lower() in ("1", "true", "yes")

SEPARATOR = "--------------------"


def set_debug(enabled: bool) -> None:
    global _DEBUG
    _DEBUG = bool(enabled)


def debug(msg: str) -> None:
    if _DEBUG:
        print(f"[DEBUG] {msg}")


def info(msg: str) -> None:
    print(f"[INFO] {msg}")


def warn(msg: str) -> None:
    print(f"[WARN] {msg}")


def error(msg: str) -> None:
    print(f"[ERROR] {msg}")


def banner(title: str) -> None:
    print(f"\n=== {title} ===\n")


def separator() -> None:
    print(SEPARATOR)
