"""
Shared helpers for the record models.

Every scalar in a client record is a free-form string that defaults to "".
Payloads may come from forms that send numbers or nulls, or from documents
written by the earlier revision of the system that used different key names,
so each model runs its input through `normalize_payload` first.
"""
from datetime import datetime, timezone
from typing import Any, Dict
import uuid


def new_uid() -> str:
    return uuid.uuid4().hex


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_payload(data: Any, legacy_keys: Dict[str, str] = None) -> Any:
    """
    Prepare a raw mapping for model validation.

    - Legacy keys are renamed to their current names (current names win if both are present)
    - None values are dropped so the field default applies
    - Numbers are turned into strings, matching how the document stores them
    """
    if not isinstance(data, dict):
        return data

    normalized = {}
    for key, value in data.items():
        if legacy_keys and key in legacy_keys:
            key_name = legacy_keys[key]
            if key_name in data:
                continue
        else:
            key_name = key

        if value is None:
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        normalized[key_name] = value
    return normalized
