"""Detect which API description dialect a file uses."""

import json
from pathlib import Path

import yaml


def detect_format(file_path: Path) -> str:
    """Detect the dialect of an API description file.

    Returns: 'openapi' (3.x), 'swagger' (2.0) or 'unknown'.
    """
    text = file_path.read_text(encoding="utf-8")

    # YAML is a superset of JSON, so this covers both
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        data = None

    # Some JSON (tabs in strings, duplicate keys) trips the YAML loader
    if data is None:
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return "unknown"

    if isinstance(data, dict):
        if str(data.get("openapi", "")).startswith("3"):
            return "openapi"
        if str(data.get("swagger", "")).startswith("2"):
            return "swagger"
    return "unknown"
