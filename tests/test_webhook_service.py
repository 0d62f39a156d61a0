import pytest

from app.core.exceptions import NotFoundError, ValidationError


def test_derive_url(ctx):
    assert ctx.webhooks.derive_url(42, "bot.php") == f"{ctx.settings.PUBLIC_BASE_URL}/42/bot.php"
    assert ctx.webhooks.derive_url(42, "../x/my bot.php") == f"{ctx.settings.PUBLIC_BASE_URL}/42/my_bot.php"
    with pytest.raises(ValidationError):
        ctx.webhooks.derive_url(42, "")


def test_require_file(ctx):
    ctx.files.save(42, "bot.php", b"<?php")
    assert ctx.webhooks.require_file(42, "bot.php") == "bot.php"

    with pytest.raises(NotFoundError) as exc_info:
        ctx.webhooks.require_file(42, "missing.php")
    assert exc_info.value.details == {"name": "missing.php"}


@pytest.mark.asyncio
async def test_register_missing_file_makes_no_call(ctx, telegram):
    with pytest.raises(NotFoundError):
        await ctx.webhooks.register(42, "123:ABC", "missing.php")
    assert telegram.calls == []


@pytest.mark.asyncio
async def test_register_then_query_round_trip(ctx, telegram):
    ctx.files.save(42, "bot.php", b"<?php")

    result = await ctx.webhooks.register(42, "123:ABC", "bot.php")
    assert result.ok
    assert telegram.calls_to("setWebhook")[0]["body"] == {"url": f"{ctx.settings.PUBLIC_BASE_URL}/42/bot.php"}

    info = await ctx.webhooks.query("123:ABC")
    assert info.ok
    assert info.result["url"] == f"{ctx.settings.PUBLIC_BASE_URL}/42/bot.php"

    deleted = await ctx.webhooks.unregister("123:ABC")
    assert deleted.ok
    assert (await ctx.webhooks.query("123:ABC")).result["url"] == ""


@pytest.mark.asyncio
async def test_platform_error_is_normalized(ctx):
    result = await ctx.webhooks.query("bad:TOKEN")
    assert not result.ok
    assert result.error_code == 401
    assert result.description == "HTTP status code: 401 (Unauthorized)"


@pytest.mark.asyncio
async def test_connection_error_does_not_leak_token(ctx):
    result = await ctx.webhooks.query("down:SECRET")
    assert not result.ok
    assert result.transport_error
    assert result.description.startswith("Connection error:")
    assert "down:SECRET" not in result.description
