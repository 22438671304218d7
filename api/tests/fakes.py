"""
In-memory stand-ins for the data API, Redis, the auth provider and the CDN
"""
from typing import Any, Callable, Dict, List, Optional
import copy

from tripsantai.services.data_store import DataStoreError
from tripsantai.services.media import DestroyResult, MediaService


class FakeDataStore:
    """Same surface as DataStoreClient, backed by lists of dicts"""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.unique: Dict[str, List[str]] = {}
        self.functions: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.fail_on: set = set()
        self.http = None

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def _check(self, action: str, table: str):
        if action in self.fail_on:
            raise DataStoreError(f"{action} {table} failed", 500, "simulated failure")

    @staticmethod
    def _matches(row, filters) -> bool:
        return all(row.get(column) == value for column, value in (filters or {}).items())

    async def select(self, table, filters=None, columns="*", order=None, limit=None):
        self._check("select", table)
        result = [copy.deepcopy(r) for r in self.rows(table) if self._matches(r, filters)]
        if order:
            column, _, direction = order.partition(".")
            result.sort(
                key=lambda r: (r.get(column) is None, r.get(column)),
                reverse=direction == "desc",
            )
        return result[:limit] if limit else result

    async def select_one(self, table, filters, columns="*"):
        rows = await self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None

    async def insert(self, table, rows):
        self._check("insert", table)
        inserted = []
        for row in rows:
            for column in self.unique.get(table, []):
                if any(r.get(column) == row.get(column) for r in self.rows(table)):
                    raise DataStoreError(f"insert {table} failed", 409, "duplicate key value")
            self.rows(table).append(dict(row))
            inserted.append(copy.deepcopy(row))
        return inserted

    async def upsert(self, table, rows, on_conflict="id"):
        self._check("upsert", table)
        result = []
        for row in rows:
            existing = next((r for r in self.rows(table) if r.get(on_conflict) == row.get(on_conflict)), None)
            if existing is not None:
                existing.update(row)
                result.append(copy.deepcopy(existing))
            else:
                self.rows(table).append(dict(row))
                result.append(copy.deepcopy(row))
        return result

    async def update(self, table, filters, patch):
        self._check("update", table)
        updated = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(copy.deepcopy(dict(patch)))
                updated.append(copy.deepcopy(row))
        return updated

    async def delete(self, table, filters):
        self._check("delete", table)
        kept, deleted = [], []
        for row in self.rows(table):
            (deleted if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return deleted

    async def rpc(self, function, params):
        self._check("rpc", function)
        return self.functions[function](dict(params))

    async def ping(self) -> bool:
        return True


class FakeRedis:
    """The handful of redis.asyncio commands CacheService uses"""

    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.ttls: Dict[str, int] = {}

    async def ping(self):
        return True

    async def getdel(self, key):
        self.ttls.pop(key, None)
        return self.values.pop(key, None)

    async def setex(self, key, ttl, value):
        self.values[key] = value if isinstance(value, str) else str(value)
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if key in self.values:
                removed += 1
            self.values.pop(key, None)
            self.ttls.pop(key, None)
        return removed

    async def incrby(self, key, amount=1):
        value = int(self.values.get(key, 0)) + amount
        self.values[key] = str(value)
        return value

    async def expire(self, key, ttl):
        if key not in self.values:
            return False
        self.ttls[key] = ttl
        return True

    async def ttl(self, key):
        if key not in self.values:
            return -2
        return self.ttls.get(key, -1)


class FakeAuthProvider:
    """Tokens map to users; (email, password) pairs map to sessions"""

    def __init__(self, users=None, accounts=None):
        self.users = users or {}
        self.accounts = accounts or {}

    async def get_user(self, access_token):
        return self.users.get(access_token)

    async def sign_in_with_password(self, email, password):
        account = self.accounts.get(email)
        if not account or account["password"] != password:
            return None
        return {"access_token": account["token"], "token_type": "bearer", "user": {"email": email}}


class FakeMedia(MediaService):
    """Records destroyed public ids instead of calling the CDN"""

    def __init__(self):
        super().__init__(cloud_name="demo", api_key="key", api_secret="secret")
        self.destroyed: List[str] = []

    async def destroy(self, public_ids):
        result = DestroyResult()
        for public_id in public_ids:
            if public_id:
                self.destroyed.append(public_id)
                result.deleted.append(public_id)
        return result


BROMO_TIERS = [
    {"minPeople": 2, "price": 1200000},
    {"minPeople": 5, "price": 1100000},
    {"minPeople": 9, "price": 1000000},
]


def destination_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": 7,
        "title": "Bromo Sunrise",
        "slug": "bromo-sunrise",
        "shortdescription": "Sunrise jeep tour",
        "imageurl": "https://res.cloudinary.com/demo/image/upload/v1712/destinations/bromo.jpg",
        "image_public_id": "destinations/bromo",
        "galleryimages": [],
        "gallery_public_ids": ["destinations/bromo-1", "destinations/bromo-2"],
        "pricetiers": BROMO_TIERS,
        "minpeople": 2,
        "categories": ["Gunung"],
    }
    row.update(overrides)
    return row
