"""Test doubles for the language model and responders."""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

Reply = Union[str, Exception, Callable[[List[Dict[str, Any]]], str]]


class FakeChatModel:
    """
    Scripted chat model.

    Each call consumes the next reply: a string is returned, an exception is
    raised, a callable is called with the messages. When the script runs out
    `default` is used.
    """

    def __init__(self, replies: Optional[List[Reply]] = None, default: Reply = "", delay: float = 0.0):
        self.replies = list(replies or [])
        self.default = default
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages, *, max_tokens, temperature=None, json_mode=False, operation="chat"):
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
            "operation": operation,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply


class GatedResponder:
    """Responder that holds every call until `release()`."""

    name = "gated"

    def __init__(self, reply: str = "Take your time. What feels most important here?"):
        self.reply_text = reply
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def open(self, context):
        return await self._wait()

    async def reply(self, context, history, user_text):
        return await self._wait()

    async def _wait(self) -> str:
        self.started.set()
        await self._gate.wait()
        return self.reply_text


class FailingResponder:
    """Responder whose replies fail with ResponseFailure until `recover()`."""

    name = "failing"

    def __init__(self, opening: str = "Thank you for sharing this. What stands out to you most?"):
        self.opening = opening
        self.failing = True
        self.reply_calls: List[Dict[str, Any]] = []

    def recover(self) -> None:
        self.failing = False

    async def open(self, context):
        return self.opening

    async def reply(self, context, history, user_text):
        from unpack.shared.errors import ResponseFailure

        self.reply_calls.append({"history": list(history), "user_text": user_text})
        if self.failing:
            raise ResponseFailure("I couldn't respond just now. Please try again.")
        return "I hear you. What would help right now?"


class FakeExtractor:
    """Extractor returning canned per-page text, optionally delayed per page."""

    def __init__(self, texts: List[str], confidences: List[float], delays: Optional[List[float]] = None):
        self.texts = texts
        self.confidences = confidences
        self.delays = delays or [0.0] * len(texts)
        self.started = asyncio.Event()
        self.calls: List[int] = []

    async def extract(self, page, page_index: int = 0):
        from unpack.features.extraction.ocr import ExtractionResult

        self.calls.append(page_index)
        self.started.set()
        await asyncio.sleep(self.delays[page_index])
        return ExtractionResult(text=self.texts[page_index], confidence=self.confidences[page_index])


class _Result:
    def __init__(self, data):
        self.data = data


class _Query:
    """Just enough of the supabase-py query builder for the repositories."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.order_by: Optional[tuple] = None
        self.limit_to: Optional[int] = None

    def select(self, columns="*"):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if self.table in self.client.fail_tables.get(self.action, ()):
            raise RuntimeError(f"{self.action} on {self.table} rejected")

        rows = self.client.tables.setdefault(self.table, [])
        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(dict(row) for row in new_rows)
            return _Result([dict(row) for row in new_rows])
        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return _Result(updated)
        if self.action == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.client.tables[self.table] = [row for row in rows if not self._matches(row)]
            return _Result(removed)

        selected = [dict(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            selected.sort(key=lambda row: row[column], reverse=desc)
        if self.limit_to is not None:
            selected = selected[: self.limit_to]
        return _Result(selected)


class _Bucket:
    def __init__(self, client: "FakeSupabaseClient", name: str):
        self.client = client
        self.name = name

    def upload(self, path, file, file_options=None):
        self.client.objects[(self.name, path)] = file
        return {"Key": f"{self.name}/{path}"}

    def create_signed_url(self, path, expires_in):
        self.client.signed.append((path, expires_in))
        return {"signedURL": f"https://storage.example.com/{self.name}/{path}?token=abc"}


class _Storage:
    def __init__(self, client: "FakeSupabaseClient"):
        self.client = client

    def from_(self, bucket):
        return _Bucket(self.client, bucket)


class FakeSupabaseClient:
    """In-memory tables and storage behind the supabase-py call chain."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_tables: Dict[str, tuple] = {}
        self.objects: Dict[tuple, bytes] = {}
        self.signed: List[tuple] = []
        self.storage = _Storage(self)

    def table(self, name: str) -> _Query:
        return _Query(self, name)
