#!/usr/bin/env python3
"""
Per-phone order locks.

Confirmations for the same (project, phone) must not interleave between the
"find latest confirmed order" read and the supersession write. Locks live in
Redis when it is reachable so several workers share them; otherwise an
in-process lock per key is used.
"""

import threading
from contextlib import contextmanager
from typing import Dict

import redis

from .config import Config
from ..utils.logger import get_logger
from ..utils.security import mask_phone

logger = get_logger(__name__)


class LockTimeout(Exception):
    """The order lock for a phone could not be acquired in time."""


class OrderLockManager:
    """Hands out a lock per (project, phone)."""

    def __init__(self, use_redis: bool = None, timeout: float = None):
        """Initialize with a Redis connection or fall back to in-memory locks."""
        self.timeout = timeout or Config.ORDER_LOCK_TIMEOUT
        self.use_redis = Config.USE_REDIS_LOCKS if use_redis is None else use_redis
        self.redis_client = None
        # key -> [lock, number of holders and waiters]
        self._local_locks: Dict[str, list] = {}
        self._registry_guard = threading.Lock()

        if self.use_redis:
            try:
                self.redis_client = redis.Redis(
                    host=Config.REDIS_HOST,
                    port=Config.REDIS_PORT,
                    db=Config.REDIS_DB,
                    decode_responses=True,
                    socket_connect_timeout=2,
                )
                # Test Redis connection
                self.redis_client.ping()
                logger.info("Using Redis for order locks")
            except redis.RedisError as e:
                logger.warning("Redis not available (%s), using in-process order locks", e)
                self.use_redis = False
                self.redis_client = None

    @staticmethod
    def _key(project_id: str, phone: str) -> str:
        return f"order-lock:{project_id}:{phone}"

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_guard:
            entry = self._local_locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str):
        with self._registry_guard:
            entry = self._local_locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._local_locks[key]

    @contextmanager
    def hold(self, project_id: str, phone: str):
        """Hold the lock for one phone; raises LockTimeout when it stays busy."""
        key = self._key(project_id, phone)
        if self.use_redis:
            lock = self.redis_client.lock(key, timeout=self.timeout * 3, blocking_timeout=self.timeout)
            if not lock.acquire():
                raise LockTimeout(f"order lock busy for {mask_phone(phone)}")
            try:
                yield
            finally:
                try:
                    lock.release()
                except redis.exceptions.LockError:
                    logger.warning("Order lock for %s expired before release", mask_phone(phone))
            return

        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self.timeout):
                raise LockTimeout(f"order lock busy for {mask_phone(phone)}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)
