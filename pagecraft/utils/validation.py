from __future__ import annotations

from typing import Optional


def validate_message(message: Optional[str], app_id: Optional[str]) -> None:
    if not (message or "").strip():
        raise ValueError("Message is required")
    if not (app_id or "").strip():
        raise ValueError("App ID is required")


def validate_app_name(name: Optional[str]) -> None:
    if not (name or "").strip():
        raise ValueError("App name is required")
