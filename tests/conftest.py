from __future__ import annotations

import os
from typing import Any, Awaitable, Callable
from unittest.mock import MagicMock

import django
import pytest
from botocore.exceptions import ClientError
from redis.exceptions import WatchError

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "sandbox_bridge_site.settings")
django.setup()


def client_error(code: str, message: str = "", operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` with bytes responses."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[bytes, bytes]] = {}
        self.versions: dict[str, int] = {}
        # Runs once inside the next transaction, between WATCH and EXEC.
        self.before_exec: Callable[[], Awaitable[None]] | None = None

    @staticmethod
    def _b(value: Any) -> bytes:
        return value if isinstance(value, bytes) else str(value).encode()

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        return dict(self.hashes.get(key, {}))

    async def hset(self, key: str, mapping: dict[str, Any]) -> int:
        self.hashes.setdefault(key, {}).update({self._b(k): self._b(v) for k, v in mapping.items()})
        self._touch(key)
        return len(mapping)

    async def hsetnx(self, key: str, field: str, value: Any) -> int:
        hash_ = self.hashes.setdefault(key, {})
        if self._b(field) in hash_:
            return 0
        hash_[self._b(field)] = self._b(value)
        self._touch(key)
        return 1

    async def hget(self, key: str, field: str) -> bytes | None:
        return self.hashes.get(key, {}).get(self._b(field))

    async def exists(self, key: str) -> int:
        return int(key in self.hashes)

    async def delete(self, key: str) -> int:
        removed = self.hashes.pop(key, None)
        self._touch(key)
        return int(removed is not None)

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._watched: dict[str, int] = {}
        self._queued: list[tuple[str, dict[str, Any]]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False

    async def watch(self, key: str) -> None:
        self._watched[key] = self._redis.versions.get(key, 0)

    async def unwatch(self) -> None:
        self._watched.clear()

    async def exists(self, key: str) -> int:
        return await self._redis.exists(key)

    def multi(self) -> None:
        pass

    def hset(self, key: str, mapping: dict[str, Any]) -> None:
        self._queued.append((key, mapping))

    async def execute(self) -> list[int]:
        hook, self._redis.before_exec = self._redis.before_exec, None
        if hook is not None:
            await hook()
        for key, version in self._watched.items():
            if self._redis.versions.get(key, 0) != version:
                raise WatchError(f"watched key {key} changed")
        return [await self._redis.hset(key, mapping) for key, mapping in self._queued]


class FakeSession:
    """boto3 session double; ``clients`` maps service name to a MagicMock."""

    def __init__(self, clients: dict[str, MagicMock], **credentials: Any) -> None:
        self.clients = clients
        self.credentials = credentials

    def client(self, service_name: str, region_name: str | None = None) -> MagicMock:
        return self.clients[service_name]


def sts_response(tag: str) -> dict[str, Any]:
    return {
        "Credentials": {
            "AccessKeyId": f"AKIA{tag}",
            "SecretAccessKey": f"secret-{tag}",
            "SessionToken": f"token-{tag}",
            "Expiration": "2026-01-01T00:00:00Z",
        }
    }


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def aws_clients() -> dict[str, MagicMock]:
    sts = MagicMock(name="sts")
    sts.assume_role.side_effect = lambda **kwargs: sts_response(kwargs["RoleArn"].split(":")[4])
    return {
        "sts": sts,
        "organizations": MagicMock(name="organizations"),
        "sso-admin": MagicMock(name="sso-admin"),
        "events": MagicMock(name="events"),
        "ce": MagicMock(name="ce"),
    }


@pytest.fixture
def session_factory(aws_clients):
    sessions: list[FakeSession] = []

    def factory(**credentials: Any) -> FakeSession:
        session = FakeSession(aws_clients, **credentials)
        sessions.append(session)
        return session

    factory.sessions = sessions
    return factory
