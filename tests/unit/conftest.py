import asyncio

import pytest


class ScriptedModel:
    """ModelCall stand-in: returns (or raises) scripted replies in order and records every prompt."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, messages):
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeResponder:
    """ResponderCall stand-in with optional delay and failure."""

    def __init__(self, text="", error=None, delay=0.0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    async def answer(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def fake_responder():
    return FakeResponder
