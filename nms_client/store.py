"""
Local SQLite store for offline work.

Holds inspections and photos captured without connectivity, the queue that
pushes them to the backend, a key/value cache with expiry, the offline → server
id map and pending load-monitoring operations.

Usage:
    store = OfflineStore('~/.nms_client/offline.db')
    offline_id = store.save_inspection({'feeder_name': 'F1', ...})
    item = store.get_next_sync_item()
    store.close()
"""
import json
import logging
import random
import sqlite3
import threading
import time
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

PRIORITY_INSPECTION = 1
PRIORITY_PHOTO = 2
PRIORITY_LOW = 3

DEFAULT_MAX_RETRIES = 3
BACKOFF_BASE_SECONDS = 5
BACKOFF_MAX_SECONDS = 300

PHOTO_TYPES = ('before', 'after', 'correction')

SCHEMA = """
    CREATE TABLE IF NOT EXISTS inspections (
        id TEXT PRIMARY KEY,
        original_id TEXT,
        entity_type TEXT,
        data TEXT NOT NULL,
        sync_status TEXT NOT NULL DEFAULT 'pending',
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL,
        last_sync_attempt INTEGER,
        sync_attempts INTEGER NOT NULL DEFAULT 0,
        error_message TEXT,
        idempotency_key TEXT
    );

    CREATE TABLE IF NOT EXISTS photos (
        id TEXT PRIMARY KEY,
        inspection_id TEXT NOT NULL,
        filename TEXT NOT NULL,
        data TEXT NOT NULL,
        photo_type TEXT NOT NULL,
        sync_status TEXT NOT NULL DEFAULT 'pending',
        created_at INTEGER NOT NULL,
        size INTEGER NOT NULL DEFAULT 0,
        mime_type TEXT NOT NULL DEFAULT 'image/jpeg',
        remote_url TEXT,
        idempotency_key TEXT
    );

    CREATE TABLE IF NOT EXISTS sync_queue (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        offline_id TEXT NOT NULL,
        priority INTEGER NOT NULL,
        created_at INTEGER NOT NULL,
        retry_count INTEGER NOT NULL DEFAULT 0,
        max_retries INTEGER NOT NULL DEFAULT 3,
        next_attempt_at INTEGER NOT NULL DEFAULT 0,
        idempotency_key TEXT NOT NULL,
        last_error TEXT
    );

    CREATE TABLE IF NOT EXISTS cache (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        created_at INTEGER NOT NULL,
        expires_at INTEGER
    );

    CREATE TABLE IF NOT EXISTS id_map (
        offline_id TEXT PRIMARY KEY,
        server_id TEXT NOT NULL,
        entity_type TEXT,
        created_at INTEGER NOT NULL
    );

    CREATE TABLE IF NOT EXISTS load_monitoring_pending (
        id TEXT PRIMARY KEY,
        action TEXT NOT NULL,
        record_id TEXT,
        data TEXT,
        created_at INTEGER NOT NULL,
        retry_count INTEGER NOT NULL DEFAULT 0,
        idempotency_key TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_inspections_status ON inspections(sync_status);
    CREATE INDEX IF NOT EXISTS idx_photos_inspection ON photos(inspection_id);
    CREATE INDEX IF NOT EXISTS idx_queue_order ON sync_queue(priority, created_at);
    CREATE INDEX IF NOT EXISTS idx_queue_offline ON sync_queue(offline_id);
"""


def now_ms():
    return int(time.time() * 1000)


def make_id(prefix):
    return f"{prefix}_{now_ms()}_{uuid.uuid4().hex[:9]}"


def backoff_delay_ms(retry_count, base=BACKOFF_BASE_SECONDS, maximum=BACKOFF_MAX_SECONDS):
    """Exponential delay for the given retry count with up to 25% random jitter"""
    delay = min(base * (2 ** max(0, retry_count - 1)), maximum)
    return int((delay + random.uniform(0, delay * 0.25)) * 1000)


class OfflineStore:
    """Thread-safe wrapper around one SQLite connection"""

    def __init__(self, db_path=':memory:', max_retries=DEFAULT_MAX_RETRIES):
        self.max_retries = max_retries
        if db_path != ':memory:':
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(path)
        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute('PRAGMA journal_mode=WAL')
        self._conn.executescript(SCHEMA)
        self._conn.commit()
        logger.info(f"Offline store ready: {db_path}")

    def close(self):
        with self._lock:
            self._conn.close()

    def _execute(self, sql, params=()):
        with self._lock:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return cursor

    def _fetchone(self, sql, params=()):
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return dict(row) if row else None

    def _fetchall(self, sql, params=()):
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    # Inspections

    @staticmethod
    def _decode_inspection(row):
        if row is not None:
            row['data'] = json.loads(row['data'])
        return row

    def save_inspection(self, data, entity_type=None):
        """Store an inspection and queue it for upload. Returns the offline id."""
        inspection_id = make_id('offline')
        timestamp = now_ms()
        key = str(uuid.uuid4())
        with self._lock:
            self._conn.execute(
                "INSERT INTO inspections (id, entity_type, data, sync_status, created_at, updated_at, idempotency_key) "
                "VALUES (?, ?, ?, 'pending', ?, ?, ?)",
                (inspection_id, entity_type, json.dumps(data), timestamp, timestamp, key),
            )
            self._add_to_queue('inspection', inspection_id, PRIORITY_INSPECTION, idempotency_key=key)
            self._conn.commit()
        logger.info(f"Inspection saved offline: {inspection_id}")
        return inspection_id

    def get_inspection(self, inspection_id):
        return self._decode_inspection(self._fetchone("SELECT * FROM inspections WHERE id = ?", (inspection_id,)))

    def get_inspections(self, sync_status=None):
        if sync_status:
            rows = self._fetchall(
                "SELECT * FROM inspections WHERE sync_status = ? ORDER BY created_at", (sync_status,)
            )
        else:
            rows = self._fetchall("SELECT * FROM inspections ORDER BY created_at")
        return [self._decode_inspection(row) for row in rows]

    def update_inspection(self, inspection_id, **fields):
        """Update columns of a stored inspection; ``data`` replaces the payload"""
        allowed = {'data', 'sync_status', 'original_id', 'entity_type', 'last_sync_attempt',
                   'sync_attempts', 'error_message'}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown inspection fields: {', '.join(sorted(unknown))}")
        if 'data' in fields:
            fields['data'] = json.dumps(fields['data'])
        fields['updated_at'] = now_ms()
        assignments = ', '.join(f"{name} = ?" for name in fields)
        cursor = self._execute(
            f"UPDATE inspections SET {assignments} WHERE id = ?", (*fields.values(), inspection_id)
        )
        return cursor.rowcount > 0

    def delete_inspection(self, inspection_id):
        """Delete an inspection with its photos and queue items"""
        with self._lock:
            photo_ids = [row[0] for row in self._conn.execute(
                "SELECT id FROM photos WHERE inspection_id = ?", (inspection_id,)
            )]
            self._conn.execute("DELETE FROM photos WHERE inspection_id = ?", (inspection_id,))
            self._conn.execute(
                f"DELETE FROM sync_queue WHERE offline_id IN ({', '.join('?' * (len(photo_ids) + 1))})",
                (inspection_id, *photo_ids),
            )
            cursor = self._conn.execute("DELETE FROM inspections WHERE id = ?", (inspection_id,))
            self._conn.commit()
        return cursor.rowcount > 0

    # Photos

    def save_photo(self, inspection_id, filename, data, photo_type='before', mime_type='image/jpeg'):
        """Store a photo (data URL) for an offline inspection and queue it. Returns the photo id."""
        if photo_type not in PHOTO_TYPES:
            raise ValueError(f"photo_type must be one of {', '.join(PHOTO_TYPES)}")
        photo_id = make_id('photo')
        key = str(uuid.uuid4())
        with self._lock:
            self._conn.execute(
                "INSERT INTO photos (id, inspection_id, filename, data, photo_type, sync_status, "
                "created_at, size, mime_type, idempotency_key) VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?)",
                (photo_id, inspection_id, filename, data, photo_type, now_ms(), len(data), mime_type, key),
            )
            self._add_to_queue('photo', photo_id, PRIORITY_PHOTO, idempotency_key=key)
            self._conn.commit()
        return photo_id

    def get_photo(self, photo_id):
        return self._fetchone("SELECT * FROM photos WHERE id = ?", (photo_id,))

    def get_photos(self, inspection_id=None, sync_status=None):
        clauses, params = [], []
        if inspection_id:
            clauses.append('inspection_id = ?')
            params.append(inspection_id)
        if sync_status:
            clauses.append('sync_status = ?')
            params.append(sync_status)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ''
        return self._fetchall(f"SELECT * FROM photos {where} ORDER BY created_at", params)

    def update_photo(self, photo_id, sync_status=None, remote_url=None):
        self._execute(
            "UPDATE photos SET sync_status = COALESCE(?, sync_status), remote_url = COALESCE(?, remote_url) "
            "WHERE id = ?",
            (sync_status, remote_url, photo_id),
        )

    def delete_photo(self, photo_id):
        with self._lock:
            self._conn.execute("DELETE FROM sync_queue WHERE offline_id = ?", (photo_id,))
            cursor = self._conn.execute("DELETE FROM photos WHERE id = ?", (photo_id,))
            self._conn.commit()
        return cursor.rowcount > 0

    # Sync queue

    def _add_to_queue(self, item_type, offline_id, priority, max_retries=None, idempotency_key=None):
        item_id = make_id('queue')
        max_retries = max_retries or self.max_retries
        self._conn.execute(
            "INSERT INTO sync_queue (id, type, offline_id, priority, created_at, max_retries, idempotency_key) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (item_id, item_type, offline_id, priority, now_ms(), max_retries, idempotency_key or str(uuid.uuid4())),
        )
        return item_id

    def add_to_queue(self, item_type, offline_id, priority=PRIORITY_LOW, max_retries=None, idempotency_key=None):
        """Queue an item; pass the record's own key when requeueing so the server can replay it"""
        with self._lock:
            item_id = self._add_to_queue(item_type, offline_id, priority, max_retries, idempotency_key)
            self._conn.commit()
        return item_id

    def get_queue(self):
        return self._fetchall("SELECT * FROM sync_queue ORDER BY priority, created_at")

    def queue_count(self):
        return self._fetchone("SELECT COUNT(*) AS n FROM sync_queue")['n']

    def get_next_sync_item(self, now=None):
        """Highest priority (lowest number), then oldest, skipping items still backing off"""
        return self._fetchone(
            "SELECT * FROM sync_queue WHERE next_attempt_at <= ? ORDER BY priority, created_at LIMIT 1",
            (now if now is not None else now_ms(),),
        )

    def remove_from_queue(self, item_id):
        return self._execute("DELETE FROM sync_queue WHERE id = ?", (item_id,)).rowcount > 0

    def record_failure(self, item_id, error):
        """
        Count a failed attempt and schedule the next one with backoff.

        Returns the updated item, or None when retries are exhausted and the
        item was dropped from the queue.
        """
        with self._lock:
            row = self._conn.execute("SELECT * FROM sync_queue WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                return None
            retry_count = row['retry_count'] + 1
            if retry_count >= row['max_retries']:
                self._conn.execute("DELETE FROM sync_queue WHERE id = ?", (item_id,))
                self._conn.commit()
                logger.warning(f"Sync item {item_id} dropped after {retry_count} attempts: {error}")
                return None
            next_attempt_at = now_ms() + backoff_delay_ms(retry_count)
            self._conn.execute(
                "UPDATE sync_queue SET retry_count = ?, next_attempt_at = ?, last_error = ? WHERE id = ?",
                (retry_count, next_attempt_at, str(error), item_id),
            )
            self._conn.commit()
        return self._fetchone("SELECT * FROM sync_queue WHERE id = ?", (item_id,))

    def defer(self, item_id, seconds):
        """Push an item's next attempt back without counting a failure"""
        self._execute(
            "UPDATE sync_queue SET next_attempt_at = ? WHERE id = ?", (now_ms() + int(seconds * 1000), item_id)
        )

    def is_queued(self, offline_id):
        return self._fetchone("SELECT id FROM sync_queue WHERE offline_id = ?", (offline_id,)) is not None

    def cleanup_orphans(self):
        """Drop queue items whose inspection or photo no longer exists. Returns the count removed."""
        cursor = self._execute(
            "DELETE FROM sync_queue WHERE "
            "(type = 'inspection' AND offline_id NOT IN (SELECT id FROM inspections)) OR "
            "(type = 'photo' AND offline_id NOT IN (SELECT id FROM photos))"
        )
        if cursor.rowcount:
            logger.info(f"Removed {cursor.rowcount} orphaned sync queue item(s)")
        return cursor.rowcount

    def get_stats(self):
        with self._lock:
            inspection_counts = dict(self._conn.execute(
                "SELECT sync_status, COUNT(*) FROM inspections GROUP BY sync_status"
            ).fetchall())
            photo_counts = dict(self._conn.execute(
                "SELECT sync_status, COUNT(*) FROM photos GROUP BY sync_status"
            ).fetchall())
            queue_size = self._conn.execute("SELECT COUNT(*) FROM sync_queue").fetchone()[0]
            load_pending = self._conn.execute("SELECT COUNT(*) FROM load_monitoring_pending").fetchone()[0]
        return {
            'total_inspections': sum(inspection_counts.values()),
            'pending_inspections': inspection_counts.get('pending', 0),
            'failed_inspections': inspection_counts.get('failed', 0),
            'synced_inspections': inspection_counts.get('synced', 0),
            'total_photos': sum(photo_counts.values()),
            'pending_photos': photo_counts.get('pending', 0),
            'failed_photos': photo_counts.get('failed', 0),
            'queue_size': queue_size,
            'pending_load_monitoring': load_pending,
        }

    # Key/value cache

    def cache_set(self, key, value, ttl=None):
        """Store a JSON-serializable value; ``ttl`` in seconds, None for no expiry"""
        timestamp = now_ms()
        expires_at = timestamp + int(ttl * 1000) if ttl is not None else None
        self._execute(
            "INSERT OR REPLACE INTO cache (key, value, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (key, json.dumps(value), timestamp, expires_at),
        )

    def cache_get(self, key, include_expired=False, max_age=None):
        """
        Cached value or None. Expired rows stay until cache_cleanup so they can be served stale.

        ``max_age`` (seconds) additionally rejects rows written longer ago than that.
        """
        row = self._fetchone("SELECT * FROM cache WHERE key = ?", (key,))
        if row is None:
            return None
        if not include_expired and row['expires_at'] is not None and row['expires_at'] <= now_ms():
            return None
        if max_age is not None and row['created_at'] <= now_ms() - int(max_age * 1000):
            return None
        return json.loads(row['value'])

    def cache_delete(self, key):
        self._execute("DELETE FROM cache WHERE key = ?", (key,))

    def cache_clear(self, prefix=None):
        if prefix:
            self._execute("DELETE FROM cache WHERE key LIKE ?", (f"{prefix}%",))
        else:
            self._execute("DELETE FROM cache")

    def cache_cleanup(self):
        """Remove expired entries. Returns the count removed."""
        return self._execute(
            "DELETE FROM cache WHERE expires_at IS NOT NULL AND expires_at <= ?", (now_ms(),)
        ).rowcount

    def cache_info(self):
        row = self._fetchone(
            "SELECT COUNT(*) AS entries, "
            "SUM(CASE WHEN expires_at IS NOT NULL AND expires_at <= ? THEN 1 ELSE 0 END) AS expired, "
            "COALESCE(SUM(LENGTH(value)), 0) AS size_bytes FROM cache",
            (now_ms(),),
        )
        row['expired'] = row['expired'] or 0
        return row

    # Offline id → server id

    def map_id(self, offline_id, server_id, entity_type=None):
        self._execute(
            "INSERT OR REPLACE INTO id_map (offline_id, server_id, entity_type, created_at) VALUES (?, ?, ?, ?)",
            (offline_id, str(server_id), entity_type, now_ms()),
        )

    def get_server_id(self, offline_id):
        row = self._fetchone("SELECT server_id FROM id_map WHERE offline_id = ?", (offline_id,))
        return row['server_id'] if row else None

    def get_mapped_entity(self, offline_id):
        row = self._fetchone("SELECT entity_type FROM id_map WHERE offline_id = ?", (offline_id,))
        return row['entity_type'] if row else None

    # Load monitoring operations

    def add_load_operation(self, action, data=None, record_id=None):
        operation_id = make_id('lm')
        self._execute(
            "INSERT INTO load_monitoring_pending (id, action, record_id, data, created_at, idempotency_key) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (operation_id, action, record_id, json.dumps(data) if data is not None else None,
             now_ms(), str(uuid.uuid4())),
        )
        return operation_id

    def get_load_operations(self, action=None):
        if action:
            rows = self._fetchall(
                "SELECT * FROM load_monitoring_pending WHERE action = ? ORDER BY created_at", (action,)
            )
        else:
            rows = self._fetchall("SELECT * FROM load_monitoring_pending ORDER BY created_at")
        for row in rows:
            row['data'] = json.loads(row['data']) if row['data'] else None
        return rows

    def remove_load_operation(self, operation_id):
        return self._execute("DELETE FROM load_monitoring_pending WHERE id = ?", (operation_id,)).rowcount > 0

    def increment_load_retry(self, operation_id):
        with self._lock:
            self._conn.execute(
                "UPDATE load_monitoring_pending SET retry_count = retry_count + 1 WHERE id = ?", (operation_id,)
            )
            self._conn.commit()
            row = self._conn.execute(
                "SELECT retry_count FROM load_monitoring_pending WHERE id = ?", (operation_id,)
            ).fetchone()
        return row['retry_count'] if row else 0

    def load_operation_count(self):
        return self._fetchone("SELECT COUNT(*) AS n FROM load_monitoring_pending")['n']

    def clear_load_operations(self):
        self._execute("DELETE FROM load_monitoring_pending")
