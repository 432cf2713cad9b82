"""
Reading requests and writing search artifacts.
"""

import json
import os

import yaml

from arcellipse.models import SearchRequest
from arcellipse.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def save_json(data, path, indent=2):
    """
    Save a dictionary, list or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_text(text, path):
    """Save plain text to file."""
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)

    tracer.event(f"Saved text: {path}")


def load_request(path):
    """
    Load a SearchRequest from a YAML or JSON file.

    JSON is a subset of YAML, so both go through yaml.safe_load.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Request file must contain a mapping: {path}")

    if "chord" in data:
        from arcellipse.geometry.anchors import angle_from_chord
        chord = data.pop("chord")
        data.setdefault("central_angle_deg", angle_from_chord(data["radius"], chord))

    return SearchRequest.model_validate(data)
