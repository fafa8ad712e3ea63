from __future__ import annotations

import logging
import sqlite3
from typing import Dict, List, Optional, Sequence

from pagecraft.schemas import App, GeneratedCode, Message, Preview, UpdateAppData
from pagecraft.services import apps as app_service
from pagecraft.services import conversation as conversation_service
from pagecraft.services.model_client import ModelClient, ModelError, get_model_client
from pagecraft.services.prompt import get_system_prompt
from pagecraft.services.response_parser import parse_model_response
from pagecraft.utils.validation import validate_message

logger = logging.getLogger(__name__)

ERROR_EXPLANATION = "Sorry, I encountered an error processing your request. Please try again."


def _append_turn(turns: List[Dict[str, str]], role: str, content: str) -> None:
    if not content.strip():
        return
    if turns and turns[-1]["role"] == role:
        turns[-1]["content"] += "\n\n" + content
        return
    turns.append({"role": role, "content": content})


def build_model_messages(history: Sequence[Message], user_message: str) -> List[Dict[str, str]]:
    """Map stored messages plus the new user message to chat turns.

    The caller persists the user message before reading the history, so a
    trailing copy of it is dropped here. Chat APIs want the turns to start
    with the user and alternate, so same-role neighbours are merged and
    leading assistant turns are discarded.
    """
    previous = list(history)
    if previous and previous[-1].role == "user" and previous[-1].content.strip() == user_message.strip():
        previous = previous[:-1]

    turns: List[Dict[str, str]] = []
    for message in previous:
        _append_turn(turns, "user" if message.role == "user" else "assistant", message.content)
    _append_turn(turns, "user", user_message)

    while turns and turns[0]["role"] != "user":
        turns.pop(0)
    return turns


async def generate_app_code(
    user_message: str,
    history: Sequence[Message],
    current: Optional[Preview] = None,
    app_name: Optional[str] = None,
    client: Optional[ModelClient] = None,
) -> GeneratedCode:
    current = current or Preview()
    system_prompt = get_system_prompt(app_name or "User App", current.html, current.css, current.js)
    turns = build_model_messages(history, user_message.strip())
    try:
        model = client or get_model_client()
        text = await model.generate(system_prompt, turns)
    except ModelError as exc:
        logger.error("Error calling model API: %s", exc)
        return GeneratedCode(explanation=ERROR_EXPLANATION)
    return parse_model_response(text)


def merge_preview(current: Optional[Preview], result: GeneratedCode) -> Preview:
    current = current or Preview()
    return Preview(
        html=result.html or current.html or "",
        css=result.css or current.css or "",
        js=result.js or current.js or "",
    )


async def process_ai_request(
    app: App,
    user_message: str,
    conversation_messages: Sequence[Message],
    client: Optional[ModelClient] = None,
) -> GeneratedCode:
    try:
        result = await generate_app_code(
            user_message,
            conversation_messages,
            current=app.preview,
            app_name=app.name,
            client=client,
        )
        conversation_service.add_message(app.id, "assistant", result.explanation)
        if result.has_code():
            app_service.update_app(app.id, UpdateAppData(preview=merge_preview(app.preview, result)))
        return result
    except Exception:
        logger.exception("Error in AI request processing for app %s", app.id)
        try:
            conversation_service.add_message(app.id, "assistant", ERROR_EXPLANATION)
        except sqlite3.Error:
            logger.exception("Error adding error message for app %s", app.id)
        raise


async def send_message(app_id: str, message: str, client: Optional[ModelClient] = None) -> GeneratedCode:
    validate_message(message, app_id)
    app = app_service.get_app(app_id)
    if not app:
        raise app_service.AppNotFoundError(f"App not found: {app_id}")

    conversation_service.add_message(app_id, "user", message.strip())
    conversation = conversation_service.get_conversation(app_id)
    return await process_ai_request(app, message, conversation.messages, client=client)
