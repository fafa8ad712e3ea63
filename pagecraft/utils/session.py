from __future__ import annotations

from typing import Optional

from fastapi import Request

FLASH_KEY = "flash_error"


def flash_error(request: Request, message: str) -> None:
    request.session[FLASH_KEY] = message


def pop_flash_error(request: Request) -> Optional[str]:
    return request.session.pop(FLASH_KEY, None)
