"""In-memory stand-ins for the Supabase table client and the media service."""

import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from fastapi import HTTPException


class _FakeQuery:
    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._action = "select"
        self._payload = None
        self._filters = []
        self._order = None
        self._limit = None
        self._offset = 0

    def select(self, *columns, **kwargs):
        self._action = "select"
        return self

    def insert(self, payload):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._action = "update"
        self._payload = payload
        return self

    def delete(self):
        self._action = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def filter(self, column, operator, criteria):
        if operator != "imatch":
            raise NotImplementedError(operator)
        pattern = re.compile(criteria, re.IGNORECASE)
        self._filters.append(lambda row: row.get(column) is not None and bool(pattern.search(str(row[column]))))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    def offset(self, size):
        self._offset = size
        return self

    def _matches(self):
        return [row for row in self._db.rows(self._table) if all(f(row) for f in self._filters)]

    def execute(self):
        self._db.calls.append((self._table, self._action))
        if (self._table, self._action) in self._db.failing:
            raise RuntimeError(f"{self._action} on {self._table} failed")
        if self._action == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                row = copy.deepcopy(payload)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", self._db.next_timestamp())
                self._db.rows(self._table).append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        matches = self._matches()
        if self._action == "update":
            for row in matches:
                row.update(copy.deepcopy(self._payload))
            return SimpleNamespace(data=copy.deepcopy(matches))
        if self._action == "delete":
            table = self._db.rows(self._table)
            table[:] = [row for row in table if row not in matches]
            return SimpleNamespace(data=copy.deepcopy(matches))

        if self._order:
            column, desc = self._order
            matches.sort(key=lambda row: (row.get(column) is None, row.get(column) or ""), reverse=desc)
        matches = matches[self._offset:]
        if self._limit is not None:
            matches = matches[:self._limit]
        return SimpleNamespace(data=copy.deepcopy(matches))


class FakeSupabase:
    """Supports the table query subset used by the services."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        # (table, action) pairs whose execute() raises
        self.failing = set()
        self._last_timestamp = None

    def table(self, name):
        return _FakeQuery(self, name)

    def rows(self, name):
        return self.tables.setdefault(name, [])

    def next_timestamp(self):
        # strictly increasing so "newest first" ordering is deterministic
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat()


class FakeMediaService:
    def __init__(self, fail_uploads=False):
        self.fail_uploads = fail_uploads
        self.uploaded = []
        self.deleted = []

    def upload(self, file, folder, resource_type):
        key = f"{folder}/{len(self.uploaded) + 1}-{file.filename}"
        asset = {
            "public_id": key,
            "url": f"https://cdn.test/{key}",
            "secure_url": f"https://cdn.test/{key}",
            "resource_type": resource_type,
        }
        self.uploaded.append(asset)
        return asset

    async def upload_many(self, files, folder, resource_type):
        if self.fail_uploads:
            raise HTTPException(status_code=500, detail="Failed to upload media")
        return [self.upload(f, folder, resource_type) for f in files]

    def delete(self, asset):
        self.deleted.append(asset["public_id"])
        return True

    async def delete_many(self, assets):
        for asset in assets:
            self.delete(asset)
        return len(assets)

    def url_for(self, public_id):
        return f"https://cdn.test/signed/{public_id}"
