import threading

import pytest

from app.flow.dispatcher import dispatch_update
from app.flow.states import SessionState
from utils.constants import (
    DELETE_WEBHOOK_SUCCESS,
    GENERIC_ERROR_MESSAGE,
    NO_FILES_MESSAGE,
    RESPONSE_TOO_LARGE_MESSAGE,
    SET_WEBHOOK_FAILED,
    SET_WEBHOOK_SUCCESS,
    TOKEN_RECEIVED_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    WELCOME_MESSAGE,
)

USER = 42
TOKEN = "123456:ABCdef"


def document(file_id, file_name, size=None):
    doc = {"file_id": file_id, "file_unique_id": f"u-{file_id}", "file_name": file_name}
    if size is not None:
        doc["file_size"] = size
    return doc


async def send(ctx, make_update, text=None, doc=None, user_id=USER):
    return await dispatch_update(make_update(text=text, document=doc, user_id=user_id), ctx)


async def upload(ctx, telegram, make_update, name, content, file_id=None):
    # Telegram file ids are path-safe; the display name may not be
    file_id = file_id or f"id-{len(telegram.uploads)}"
    telegram.add_upload(file_id, content)
    return await send(ctx, make_update, doc=document(file_id, name, size=len(content)))


# ============================================================
# Commands
# ============================================================

@pytest.mark.asyncio
async def test_start_creates_directory_and_welcomes(ctx, telegram, make_update):
    result = await send(ctx, make_update, "/start")

    assert result == {"status": "success"}
    assert ctx.files.user_dir(USER).is_dir()
    assert telegram.last_text == WELCOME_MESSAGE

    body = telegram.calls_to("sendMessage")[0]["body"]
    assert body["chat_id"] == USER
    assert body["parse_mode"] == "HTML"
    assert body["reply_to_message_id"] == 101


@pytest.mark.asyncio
async def test_unknown_command(ctx, telegram, make_update):
    await send(ctx, make_update, "hello there")
    assert telegram.last_text == UNKNOWN_COMMAND_MESSAGE


@pytest.mark.asyncio
async def test_command_with_bot_mention(ctx, telegram, make_update):
    await send(ctx, make_update, "/list@HostBot")
    assert telegram.last_text == NO_FILES_MESSAGE


@pytest.mark.asyncio
async def test_list_shows_uploaded_file(ctx, telegram, make_update):
    await upload(ctx, telegram, make_update, "hello.txt", b"x" * 50)
    await send(ctx, make_update, "/list")

    text = telegram.last_text
    assert "<code>hello.txt</code> (50 B, Last Modified:" in text
    assert f"{ctx.settings.PUBLIC_BASE_URL}/{USER}/" in text


@pytest.mark.asyncio
async def test_upload_prompt_mentions_limits(make_context, telegram, make_update):
    ctx = make_context(UPLOAD_POLICY="script")
    await send(ctx, make_update, "/upload")

    text = telegram.last_text
    assert "10.00 MB" in text
    assert "10 files" in text
    assert ".php" in text


@pytest.mark.asyncio
async def test_updates_without_message_are_ignored(ctx, telegram):
    from app.schemas.webhook import TelegramUpdate

    update = TelegramUpdate.model_validate({
        "update_id": 5,
        "edited_message": {"message_id": 1, "chat": {"id": USER}, "text": "/list"},
    })
    assert await dispatch_update(update, ctx) == {"status": "ignored"}
    assert telegram.calls == []


# ============================================================
# Uploads
# ============================================================

@pytest.mark.asyncio
async def test_upload_success(ctx, telegram, make_update):
    await upload(ctx, telegram, make_update, "bot.php", b"<?php echo 'hi';")

    assert (ctx.files.user_dir(USER) / "bot.php").read_bytes() == b"<?php echo 'hi';"
    assert "uploaded successfully" in telegram.last_text


@pytest.mark.asyncio
async def test_upload_sanitizes_name(ctx, telegram, make_update):
    await upload(ctx, telegram, make_update, "../../my bot.php", b"<?php", file_id="doc-1")

    assert "uploaded successfully" in telegram.last_text
    assert "my_bot.php" in telegram.last_text
    assert ctx.files.exists(USER, "my_bot.php")
    assert (ctx.files.user_dir(USER) / "my_bot.php").read_bytes() == b"<?php"


@pytest.mark.asyncio
async def test_upload_writes_off_the_event_loop(ctx, telegram, make_update, monkeypatch):
    save = ctx.files.save
    threads = []

    def recording_save(*args, **kwargs):
        threads.append(threading.get_ident())
        return save(*args, **kwargs)

    monkeypatch.setattr(ctx.files, "save", recording_save)
    await upload(ctx, telegram, make_update, "bot.php", b"<?php")

    assert "uploaded successfully" in telegram.last_text
    assert len(threads) == 1
    assert threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_upload_quota(ctx, telegram, make_update):
    for i in range(ctx.files.policy.max_files):
        ctx.files.save(USER, f"f{i}.txt", b"x")

    await upload(ctx, telegram, make_update, "extra.txt", b"x")

    assert "Upload limit reached" in telegram.last_text
    assert telegram.calls_to("getFile") == []
    assert ctx.files.count(USER) == 10


@pytest.mark.asyncio
async def test_upload_too_large_is_refused_before_download(make_context, telegram, make_update):
    ctx = make_context(MAX_FILE_SIZE=10)
    await send(ctx, make_update, doc=document("big", "big.bin", size=11))

    assert "File too large" in telegram.last_text
    assert telegram.calls_to("getFile") == []


@pytest.mark.asyncio
async def test_upload_name_conflict(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"original")
    await upload(ctx, telegram, make_update, "bot.php", b"replacement")

    assert "already exists" in telegram.last_text
    assert (ctx.files.user_dir(USER) / "bot.php").read_bytes() == b"original"


@pytest.mark.asyncio
async def test_upload_download_failure(ctx, telegram, make_update):
    await send(ctx, make_update, doc=document("unknown", "bot.php", size=5))

    assert "Failed to download" in telegram.last_text
    assert not ctx.files.exists(USER, "bot.php")


@pytest.mark.asyncio
async def test_script_policy_rejects_other_extensions(make_context, telegram, make_update):
    ctx = make_context(UPLOAD_POLICY="script")
    await upload(ctx, telegram, make_update, "notes.txt", b"hello")

    assert "Invalid file type" in telegram.last_text
    assert not ctx.files.exists(USER, "notes.txt")


@pytest.mark.asyncio
async def test_script_policy_rejects_disallowed_functions(make_context, telegram, make_update):
    ctx = make_context(UPLOAD_POLICY="script")
    await upload(ctx, telegram, make_update, "evil.php", b"<?php system('rm -rf /'); eval($x);")

    assert "disallowed function(s)" in telegram.last_text
    assert "eval, system" in telegram.last_text
    assert not ctx.files.exists(USER, "evil.php")


@pytest.mark.asyncio
async def test_upload_does_not_disturb_workflow(ctx, telegram, make_update):
    await send(ctx, make_update, "/webhook")
    await upload(ctx, telegram, make_update, "bot.php", b"<?php")

    assert ctx.sessions.get(USER) == SessionState.AWAITING_WEBHOOK_TOKEN


# ============================================================
# Delete workflow
# ============================================================

@pytest.mark.asyncio
async def test_delete_with_no_files(ctx, telegram, make_update):
    await send(ctx, make_update, "/delete")

    assert telegram.last_text == NO_FILES_MESSAGE
    assert ctx.sessions.get(USER) == SessionState.NONE


@pytest.mark.asyncio
async def test_delete_workflow(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    await send(ctx, make_update, "/delete")
    assert "bot.php" in telegram.last_text
    assert ctx.sessions.get(USER) == SessionState.AWAITING_DELETE_FILENAME

    await send(ctx, make_update, "bot.php")
    assert "deleted successfully" in telegram.last_text
    assert not ctx.files.exists(USER, "bot.php")
    assert ctx.sessions.get(USER) == SessionState.NONE


@pytest.mark.asyncio
async def test_commands_are_data_inside_a_workflow(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    await send(ctx, make_update, "/delete")
    await send(ctx, make_update, "/list")

    assert "not found" in telegram.last_text
    assert ctx.files.exists(USER, "bot.php")
    assert ctx.sessions.get(USER) == SessionState.NONE


# ============================================================
# Webhook workflows
# ============================================================

@pytest.mark.asyncio
async def test_set_webhook_workflow(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    await send(ctx, make_update, "/webhook")
    assert ctx.sessions.get(USER) == SessionState.AWAITING_WEBHOOK_TOKEN

    await send(ctx, make_update, TOKEN)
    assert telegram.last_text == TOKEN_RECEIVED_MESSAGE
    assert ctx.sessions.get(USER) == SessionState.AWAITING_WEBHOOK_FILENAME
    assert ctx.sessions.has_pending_secret(USER)

    await send(ctx, make_update, "bot.php")

    calls = telegram.calls_to("setWebhook")
    assert len(calls) == 1
    assert calls[0]["token"] == TOKEN
    assert calls[0]["body"]["url"] == f"{ctx.settings.PUBLIC_BASE_URL}/{USER}/bot.php"

    assert telegram.last_text.startswith(SET_WEBHOOK_SUCCESS)
    assert "Webhook was set" in telegram.last_text
    assert ctx.sessions.get(USER) == SessionState.NONE
    assert not ctx.sessions.has_pending_secret(USER)


@pytest.mark.asyncio
async def test_missing_file_aborts_without_api_call(ctx, telegram, make_update):
    await send(ctx, make_update, "/webhook")
    await send(ctx, make_update, TOKEN)
    await send(ctx, make_update, "missing.php")

    assert "missing.php" in telegram.last_text
    assert "not found" in telegram.last_text
    assert telegram.calls_to("setWebhook") == []
    assert ctx.sessions.get(USER) == SessionState.NONE
    assert not ctx.sessions.has_pending_secret(USER)


@pytest.mark.asyncio
async def test_malformed_token_resets_session(ctx, telegram, make_update):
    await send(ctx, make_update, "/webhook")
    await send(ctx, make_update, "not a token")

    assert "Invalid bot token" in telegram.last_text
    assert "/webhook" in telegram.last_text
    assert ctx.sessions.get(USER) == SessionState.NONE
    assert not ctx.sessions.has_pending_secret(USER)


WEBHOOK_COMMANDS = ["/webhook", "/getwebhookinfo", "/deletewebhook"]
WEBHOOK_METHODS = ("setWebhook", "getWebhookInfo", "deleteWebhook")


def assert_workflow_aborted(ctx, telegram):
    assert ctx.sessions.get(USER) == SessionState.NONE
    assert not ctx.sessions.has_pending_secret(USER)
    for method in WEBHOOK_METHODS:
        assert telegram.calls_to(method) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("command", WEBHOOK_COMMANDS)
@pytest.mark.parametrize("filename", ["..", "/", "missing.php"])
async def test_bad_filename_aborts_every_webhook_workflow(ctx, telegram, make_update, command, filename):
    ctx.files.save(USER, "bot.php", b"<?php")

    for text in (command, TOKEN, filename):
        await send(ctx, make_update, text)

    assert telegram.last_text != TOKEN_RECEIVED_MESSAGE
    assert_workflow_aborted(ctx, telegram)


@pytest.mark.asyncio
@pytest.mark.parametrize("command", WEBHOOK_COMMANDS)
@pytest.mark.parametrize("token", ["not a token", "123:abc/../getMe", "123:abc?x=1"])
async def test_bad_token_aborts_every_webhook_workflow(ctx, telegram, make_update, command, token):
    ctx.files.save(USER, "bot.php", b"<?php")

    await send(ctx, make_update, command)
    await send(ctx, make_update, token)

    assert "Invalid bot token" in telegram.last_text
    assert command in telegram.last_text
    assert_workflow_aborted(ctx, telegram)

    # The following filename is an unknown command, not a continuation
    await send(ctx, make_update, "bot.php")
    assert telegram.last_text == UNKNOWN_COMMAND_MESSAGE
    assert_workflow_aborted(ctx, telegram)


@pytest.mark.asyncio
async def test_register_then_query_reports_same_url(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    for text in ("/webhook", TOKEN, "bot.php"):
        await send(ctx, make_update, text)
    for text in ("/getwebhookinfo", TOKEN, "bot.php"):
        await send(ctx, make_update, text)

    info = telegram.last_text
    assert "Webhook Information" in info
    assert "<b>Status:</b> Set" in info
    assert f"{ctx.settings.PUBLIC_BASE_URL}/{USER}/bot.php" in info


@pytest.mark.asyncio
async def test_delete_webhook_workflow(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")
    telegram.webhooks[TOKEN] = "https://elsewhere.test/hook"

    for text in ("/deletewebhook", TOKEN, "bot.php"):
        await send(ctx, make_update, text)

    assert telegram.last_text.startswith(DELETE_WEBHOOK_SUCCESS)
    assert TOKEN not in telegram.webhooks

    for text in ("/getwebhookinfo", TOKEN, "bot.php"):
        await send(ctx, make_update, text)
    assert "<b>Status:</b> Not Set" in telegram.last_text


@pytest.mark.asyncio
async def test_platform_failure_is_reported(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    for text in ("/webhook", "bad:TOKEN", "bot.php"):
        await send(ctx, make_update, text)

    assert telegram.last_text.startswith(SET_WEBHOOK_FAILED)
    assert "HTTP status code: 401 (Unauthorized)" in telegram.last_text
    assert ctx.sessions.get(USER) == SessionState.NONE


@pytest.mark.asyncio
async def test_connection_failure_hides_token(ctx, telegram, make_update):
    ctx.files.save(USER, "bot.php", b"<?php")

    for text in ("/webhook", "down:SECRET", "bot.php"):
        await send(ctx, make_update, text)

    assert "Connection error" in telegram.last_text
    assert "down:SECRET" not in telegram.last_text


@pytest.mark.asyncio
async def test_restarting_a_workflow_drops_stale_token(ctx, telegram, make_update):
    ctx.sessions.save_pending_secret(USER, "stale:TOKEN")

    await send(ctx, make_update, "/getwebhookinfo")

    assert not ctx.sessions.has_pending_secret(USER)
    assert ctx.sessions.get(USER) == SessionState.AWAITING_GETINFO_TOKEN


@pytest.mark.asyncio
async def test_handler_failure_resets_session(ctx, telegram, make_update, monkeypatch):
    ctx.files.save(USER, "bot.php", b"<?php")

    async def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(ctx.webhooks, "register", broken)

    await send(ctx, make_update, "/webhook")
    await send(ctx, make_update, TOKEN)
    result = await send(ctx, make_update, "bot.php")

    assert result == {"status": "error"}
    assert telegram.last_text == GENERIC_ERROR_MESSAGE
    assert ctx.sessions.get(USER) == SessionState.NONE
    assert not ctx.sessions.has_pending_secret(USER)


# ============================================================
# Oversized responses
# ============================================================

@pytest.mark.asyncio
async def test_oversized_api_response_is_sent_as_document(make_context, telegram, make_update):
    ctx = make_context(INLINE_RESPONSE_LIMIT=60)
    ctx.files.save(USER, "bot.php", b"<?php")

    for text in ("/webhook", TOKEN, "bot.php"):
        await send(ctx, make_update, text)

    documents = telegram.calls_to("sendDocument")
    assert len(documents) == 1
    assert b"Webhook was set" in documents[0]["body"]
    assert b"_response.json" in documents[0]["body"]
    assert list(ctx.temp_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_oversized_plain_message_falls_back(make_context, telegram, make_update):
    ctx = make_context(INLINE_RESPONSE_LIMIT=60)
    await send(ctx, make_update, "/start")

    assert telegram.last_text == RESPONSE_TOO_LARGE_MESSAGE
    assert telegram.calls_to("sendDocument") == []
