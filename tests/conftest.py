import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from app.core.config import Settings
from app.flow.context import build_context, set_context
from app.schemas.webhook import TelegramUpdate

API_BASE = "https://api.telegram.test"
PUBLIC_BASE_URL = "https://bots.example.test/user_bots"
HOSTING_TOKEN = "999:HOSTING"


class FakeTelegram:
    """
    In-memory Bot API behind an httpx.MockTransport.

    Tokens starting with "bad" are rejected with 401, tokens starting with
    "down" fail with a connection error.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.webhooks: Dict[str, str] = {}
        self.uploads: Dict[str, bytes] = {}
        self.transport = httpx.MockTransport(self.handle)
        self._next_message_id = 1000

    def add_upload(self, file_id: str, content: bytes):
        self.uploads[file_id] = content

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method]

    @property
    def sent_texts(self) -> List[str]:
        return [call["body"]["text"] for call in self.calls_to("sendMessage")]

    @property
    def last_text(self) -> Optional[str]:
        texts = self.sent_texts
        return texts[-1] if texts else None

    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        parts = request.url.path.strip("/").split("/")

        if parts[0] == "file":
            token = parts[1][len("bot"):]
            file_id = parts[-1]
            self.calls.append({"token": token, "method": "download", "body": file_id})
            if file_id not in self.uploads:
                return httpx.Response(404)
            return httpx.Response(200, content=self.uploads[file_id])

        token = parts[0][len("bot"):]
        method = parts[1]

        if request.headers.get("content-type", "").startswith("application/json"):
            body = json.loads(request.content or b"{}")
        else:
            body = request.content

        self.calls.append({"token": token, "method": method, "body": body})

        if token.startswith("down"):
            raise httpx.ConnectError(f"connection refused for {request.url}", request=request)
        if token.startswith("bad"):
            return httpx.Response(401, json={"ok": False, "error_code": 401, "description": "Unauthorized"})

        handler = getattr(self, f"_{method}", None)
        if handler is None:
            return httpx.Response(404, json={"ok": False, "error_code": 404, "description": "Not Found"})
        return handler(token, body)

    def _message_ok(self):
        self._next_message_id += 1
        return httpx.Response(200, json={"ok": True, "result": {"message_id": self._next_message_id}})

    def _sendMessage(self, token, body):
        return self._message_ok()

    def _sendDocument(self, token, body):
        return self._message_ok()

    def _getFile(self, token, body):
        file_id = body["file_id"]
        if file_id not in self.uploads:
            return httpx.Response(
                400,
                json={"ok": False, "error_code": 400, "description": "Bad Request: invalid file_id"}
            )
        return httpx.Response(
            200,
            json={"ok": True, "result": {"file_id": file_id, "file_path": f"documents/{file_id}"}}
        )

    def _setWebhook(self, token, body):
        self.webhooks[token] = body["url"]
        return httpx.Response(200, json={"ok": True, "result": True, "description": "Webhook was set"})

    def _getWebhookInfo(self, token, body):
        return httpx.Response(200, json={
            "ok": True,
            "result": {
                "url": self.webhooks.get(token, ""),
                "has_custom_certificate": False,
                "pending_update_count": 0,
            }
        })

    def _deleteWebhook(self, token, body):
        self.webhooks.pop(token, None)
        return httpx.Response(200, json={"ok": True, "result": True, "description": "Webhook was deleted"})


def _settings(tmp_path, **overrides) -> Settings:
    values = {
        "ENVIRONMENT": "development",
        "HOSTING_BOT_TOKEN": HOSTING_TOKEN,
        "TELEGRAM_API_BASE": API_BASE,
        "PUBLIC_BASE_URL": PUBLIC_BASE_URL,
        "USER_FILES_DIR": str(tmp_path / "user_bots"),
        "STATES_DIR": str(tmp_path / "states"),
        "TEMP_DIR": str(tmp_path / "temp"),
        "UPLOAD_POLICY": "general",
    }
    values.update(overrides)
    return Settings(**values)


def _update(
    text: Optional[str] = None,
    document: Optional[Dict[str, Any]] = None,
    user_id: int = 42,
    update_id: int = 1,
) -> TelegramUpdate:
    message: Dict[str, Any] = {
        "message_id": update_id + 100,
        "date": 1700000000,
        "chat": {"id": user_id, "type": "private"},
        "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
    }
    if text is not None:
        message["text"] = text
    if document is not None:
        message["document"] = document
    return TelegramUpdate.model_validate({"update_id": update_id, "message": message})


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def make_context(tmp_path, telegram):
    def _make(**overrides):
        ctx = build_context(_settings(tmp_path, **overrides), transport=telegram.transport)
        ctx.ensure_directories()
        return ctx
    return _make


@pytest.fixture
def ctx(make_context):
    return make_context()


@pytest.fixture
def app_context(ctx):
    set_context(ctx)
    yield ctx
    set_context(None)


@pytest.fixture
def settings_factory(tmp_path):
    def _make(**overrides):
        return _settings(tmp_path, **overrides)
    return _make


@pytest.fixture
def make_update():
    return _update
