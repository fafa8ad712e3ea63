import json
import sqlite3
from datetime import datetime, timezone

import pytest

from pagecraft.schemas import CreateAppData, GeneratedCode, Message, Preview
from pagecraft.services import apps as app_service
from pagecraft.services import conversation as conversation_service
from pagecraft.services import generation
from pagecraft.services.model_client import ModelError

from conftest import FakeModelClient


def _message(role, content):
    return Message(
        id=f"{role}-{content}",
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc),
        app_id="app-1",
    )


def _reply(**fields):
    return json.dumps(fields)


def test_build_model_messages_drops_persisted_copy_of_current_message():
    history = [
        _message("user", "make a todo list"),
        _message("assistant", "Here is a todo list"),
        _message("user", "add dark mode"),
    ]
    turns = generation.build_model_messages(history, "add dark mode")
    assert turns == [
        {"role": "user", "content": "make a todo list"},
        {"role": "assistant", "content": "Here is a todo list"},
        {"role": "user", "content": "add dark mode"},
    ]


def test_build_model_messages_merges_and_trims_turns():
    history = [
        _message("assistant", "Welcome!"),
        _message("user", "first try"),
        _message("user", "second try"),
        _message("assistant", "   "),
    ]
    turns = generation.build_model_messages(history, "third try")
    assert turns == [{"role": "user", "content": "first try\n\nsecond try\n\nthird try"}]


def test_merge_preview_prefers_new_non_empty_fragments():
    current = Preview(html="<p>old</p>", css="p{}", js="old()")
    merged = generation.merge_preview(current, GeneratedCode(html="<p>new</p>", css="", explanation="x"))
    assert merged == Preview(html="<p>new</p>", css="p{}", js="old()")


def test_merge_preview_defaults_to_empty_strings():
    merged = generation.merge_preview(None, GeneratedCode(js="run()", explanation="x"))
    assert merged == Preview(html="", css="", js="run()")


@pytest.mark.asyncio
async def test_generate_app_code_sends_prompt_with_current_artifact():
    fake = FakeModelClient([_reply(html="<h1>Hi</h1>", explanation="Heading")])
    result = await generation.generate_app_code(
        "  add a heading ",
        [],
        current=Preview(html="<p>current</p>", css="", js=""),
        app_name="Greeter",
        client=fake,
    )

    assert result.html == "<h1>Hi</h1>"
    call = fake.calls[0]
    assert "App name: Greeter" in call["system"]
    assert "Current HTML: <p>current</p>" in call["system"]
    assert "Current CSS: No existing CSS" in call["system"]
    assert call["messages"] == [{"role": "user", "content": "add a heading"}]


@pytest.mark.asyncio
async def test_generate_app_code_turns_model_errors_into_apology():
    fake = FakeModelClient(error=ModelError("boom"))
    result = await generation.generate_app_code("hello", [], client=fake)
    assert result.explanation == generation.ERROR_EXPLANATION
    assert not result.has_code()


@pytest.mark.asyncio
async def test_send_message_persists_conversation_and_merged_preview(db):
    app = app_service.create_app(CreateAppData(name="Counter"))
    fake = FakeModelClient([_reply(html="<button>0</button>", js="count()", explanation="Added a counter")])

    result = await generation.send_message(app.id, "  add a counter  ", client=fake)

    assert result.explanation == "Added a counter"
    messages = conversation_service.get_conversation(app.id).messages
    assert [(m.role, m.content) for m in messages] == [
        ("user", "add a counter"),
        ("assistant", "Added a counter"),
    ]
    updated = app_service.get_app(app.id)
    assert updated.preview.html == "<button>0</button>"
    assert updated.preview.css == app.preview.css
    assert updated.preview.js == "count()"


@pytest.mark.asyncio
async def test_follow_up_message_includes_history(db):
    app = app_service.create_app(CreateAppData(name="Notes"))
    fake = FakeModelClient([
        _reply(html="<ul></ul>", explanation="List added"),
        _reply(css="ul{color:red}", explanation="Styled"),
    ])

    await generation.send_message(app.id, "add a list", client=fake)
    await generation.send_message(app.id, "make it red", client=fake)

    assert fake.calls[1]["messages"] == [
        {"role": "user", "content": "add a list"},
        {"role": "assistant", "content": "List added"},
        {"role": "user", "content": "make it red"},
    ]
    assert "Current HTML: <ul></ul>" in fake.calls[1]["system"]
    preview = app_service.get_app(app.id).preview
    assert preview.html == "<ul></ul>"
    assert preview.css == "ul{color:red}"


@pytest.mark.asyncio
async def test_explanation_only_reply_keeps_preview(db):
    app = app_service.create_app(CreateAppData(name="Static"))
    fake = FakeModelClient(["Could you tell me more about the layout?"])

    await generation.send_message(app.id, "build something", client=fake)

    assert app_service.get_app(app.id).preview == app.preview
    assert conversation_service.get_conversation(app.id).messages[-1].content == (
        "Could you tell me more about the layout?"
    )


@pytest.mark.asyncio
async def test_model_failure_stores_apology(db):
    app = app_service.create_app(CreateAppData(name="Broken"))
    fake = FakeModelClient(error=ModelError("down"))

    result = await generation.send_message(app.id, "hello", client=fake)

    assert result.explanation == generation.ERROR_EXPLANATION
    assert conversation_service.get_conversation(app.id).messages[-1].content == generation.ERROR_EXPLANATION
    assert app_service.get_app(app.id).preview == app.preview


@pytest.mark.asyncio
async def test_persistence_failure_is_logged_and_reraised(db, monkeypatch):
    app = app_service.create_app(CreateAppData(name="Flaky"))
    fake = FakeModelClient([_reply(html="<p>x</p>", explanation="ok")])

    def failing_update(app_id, data):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(app_service, "update_app", failing_update)

    with pytest.raises(sqlite3.OperationalError):
        await generation.send_message(app.id, "hello", client=fake)

    contents = [m.content for m in conversation_service.get_conversation(app.id).messages]
    assert contents == ["hello", "ok", generation.ERROR_EXPLANATION]


@pytest.mark.asyncio
async def test_send_message_validates_and_checks_app(db):
    with pytest.raises(ValueError, match="Message is required"):
        await generation.send_message("app-1", "  ", client=FakeModelClient())
    with pytest.raises(app_service.AppNotFoundError):
        await generation.send_message("missing", "hello", client=FakeModelClient())


@pytest.mark.asyncio
async def test_default_client_comes_from_configuration(db, fake_model):
    app = app_service.create_app(CreateAppData(name="Configured"))
    fake_model.replies.append(_reply(html="<p>cfg</p>", explanation="Configured"))

    await generation.send_message(app.id, "go")

    assert len(fake_model.calls) == 1
    assert app_service.get_app(app.id).preview.html == "<p>cfg</p>"


@pytest.mark.asyncio
async def test_failed_apology_is_logged_and_original_error_reraised(db, monkeypatch, caplog):
    app = app_service.create_app(CreateAppData(name="Read Only"))
    fake = FakeModelClient([_reply(html="<p>x</p>", explanation="ok")])
    attempted = []

    def failing_add(app_id, role, content):
        attempted.append(content)
        raise sqlite3.OperationalError(f"attempt {len(attempted)} is read-only")

    monkeypatch.setattr(conversation_service, "add_message", failing_add)

    with pytest.raises(sqlite3.OperationalError, match="attempt 1"):
        await generation.process_ai_request(app, "hello", [], client=fake)

    assert attempted == ["ok", generation.ERROR_EXPLANATION]
    assert "Error adding error message" in caplog.text
