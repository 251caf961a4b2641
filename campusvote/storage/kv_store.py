# campusvote/storage/kv_store.py
"""Key-value backends behind the profile, candidate and ballot stores.

Every backend speaks the same small contract:

    load(key) -> Optional[str]
    save(key, blob) -> bool
    delete(key) -> None

Blobs are opaque text. There is no transaction spanning several keys: a caller
that writes two keys must tolerate the first write succeeding while the second
one fails.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from flask import session
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class KeyValueStore:
    def load(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def save(self, key: str, blob: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Dict[str, str] = None):
        self._data = dict(initial or {})

    def load(self, key):
        return self._data.get(key)

    def save(self, key, blob):
        self._data[key] = blob
        return True

    def delete(self, key):
        self._data.pop(key, None)


class SessionKeyValueStore(KeyValueStore):
    """Stores blobs in the client's signed session cookie."""

    def load(self, key):
        value = session.get(key)
        return value if isinstance(value, str) else None

    def save(self, key, blob):
        session[key] = blob
        return True

    def delete(self, key):
        session.pop(key, None)


class DatabaseKeyValueStore(KeyValueStore):
    """Stores blobs in the shared ``store_entries`` table."""

    def __init__(self, db):
        self.db = db

    def _entry(self, key):
        from campusvote.database.models import StoreEntry
        return self.db.session.query(StoreEntry).filter_by(key=key).first()

    def load(self, key):
        try:
            entry = self._entry(key)
        except SQLAlchemyError as e:
            logger.warning(f"Store read failed for {key}: {e}")
            self.db.session.rollback()
            return None
        return entry.value if entry else None

    def save(self, key, blob):
        from campusvote.database.models import StoreEntry
        try:
            entry = self._entry(key)
            if entry is None:
                entry = StoreEntry(key=key, value=blob)
                self.db.session.add(entry)
            else:
                entry.value = blob
                entry.updated_at = datetime.utcnow()
            self.db.session.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Store write failed for {key}: {e}")
            self.db.session.rollback()
            return False

    def delete(self, key):
        try:
            entry = self._entry(key)
            if entry is not None:
                self.db.session.delete(entry)
                self.db.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Store delete failed for {key}: {e}")
            self.db.session.rollback()
