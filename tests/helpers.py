import asyncio
import json
from datetime import datetime, timedelta
from types import SimpleNamespace

import jwt

import models  # noqa: F401  (registers the tables on Base)
from database import Base, engine, init_db

TEST_SECRET = "test-secret"


def make_token(user_id, expires_in=timedelta(hours=1), **claims):
    payload = {"uid": user_id, "exp": datetime.utcnow() + expires_in}
    payload.update(claims)
    return jwt.encode(payload, TEST_SECRET, algorithm="HS256")


def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def reset_database():
    Base.metadata.drop_all(bind=engine)
    init_db()


class FakeGeminiModel:
    """Stands in for genai.GenerativeModel; records what it was sent."""

    def __init__(self, text="", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def model_reply(data, fenced=False):
    text = json.dumps(data)
    if fenced:
        return f"```json\n{text}\n```"
    return text
