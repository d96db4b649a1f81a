"""
Redis connector implementation

Redis has no tables: each key is listed as a table with a single "value"
column whose type is the key's Redis type. Queries are command scripts,
one command per line.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import redis

from schema_browser.connectors.base import BaseConnector
from schema_browser.core.errors import CatalogFetchError, ExecutionError
from schema_browser.models.alter import AlterOperation
from schema_browser.models.schema import ColumnDefinition, IndexDefinition, RedisKeyInfo, TableInfo

logger = logging.getLogger(__name__)

DATABASE_COUNT = 16
MAX_LISTED_KEYS = 1000
MAX_COLLECTION_ITEMS = 100


def parse_database_index(database: Optional[str]) -> int:
    """Accepts "db0 (15)", "db0", "0" or empty; anything unparsable means 0"""
    if not database:
        return 0
    parts = str(database).split()
    if not parts:
        return 0
    token = parts[0]
    if token.startswith('db'):
        token = token[2:]
    try:
        return int(token)
    except ValueError:
        return 0


def split_command(line: str) -> List[str]:
    """
    Split a command line into arguments

    Whitespace separates arguments except inside double quotes; a backslash
    takes the next character literally.
    """
    args = []
    current = ''
    in_quotes = False
    escape = False

    for char in line:
        if escape:
            current += char
            escape = False
        elif char == '\\':
            escape = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            if current:
                args.append(current)
                current = ''
        else:
            current += char

    if current:
        args.append(current)
    return args


def format_reply(reply: Any) -> str:
    """Render a command reply as text"""
    if reply is None:
        return "(nil)"
    if reply is True:
        return "OK"
    if isinstance(reply, bytes):
        return reply.decode('utf-8', errors='replace')
    if isinstance(reply, (list, tuple, set, dict)):
        return json.dumps(reply if not isinstance(reply, set) else sorted(reply),
                          ensure_ascii=False, default=str)
    return str(reply)


class RedisConnector(BaseConnector):
    """Redis key-value store connector"""

    db_type = "redis"
    supports_sql = False

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.db_index = parse_database_index(config.get('database'))

    def connect(self) -> 'RedisConnector':
        """Create the client for the selected database and check it answers"""
        try:
            self.connection = redis.Redis(
                host=self.config['host'],
                port=self.config['port'],
                username=self.config.get('username') or None,
                password=self.config.get('password') or None,
                db=self.db_index,
                decode_responses=True
            )
            self.connection.ping()
            logger.info(f"Connected to Redis at {self.config['host']}:{self.config['port']}"
                        f"/{self.db_index}")
            return self
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise ExecutionError(str(e)) from e

    def disconnect(self) -> None:
        """Close Redis connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from Redis")

    def use_database(self, database: Optional[str]) -> None:
        """Reconnect to another logical database when it differs from the current one"""
        if database is None:
            return
        index = parse_database_index(database)
        if index == self.db_index and self.connection:
            return
        self.disconnect()
        self.db_index = index
        self.connect()

    def _client(self) -> redis.Redis:
        if self.connection is None:
            self.connect()
        return self.connection

    def get_databases(self) -> List[str]:
        """List the logical databases as "db<n> (<key count>)" """
        try:
            keyspace = self._client().info('keyspace')
        except redis.RedisError as e:
            logger.error(f"Failed to read keyspace: {e}")
            raise ExecutionError(str(e)) from e

        databases = []
        for i in range(DATABASE_COUNT):
            stats = keyspace.get(f"db{i}") or {}
            databases.append(f"db{i} ({stats.get('keys', 0)})")
        return databases

    def get_tables(self, database: Optional[str] = None) -> List[TableInfo]:
        """List keys of the selected database, capped at MAX_LISTED_KEYS"""
        try:
            self.use_database(database)
            keys = []
            for key in self._client().scan_iter(count=MAX_LISTED_KEYS):
                keys.append(key)
                if len(keys) >= MAX_LISTED_KEYS:
                    logger.warning(f"Key listing truncated at {MAX_LISTED_KEYS} keys")
                    break
            return [TableInfo(name=key) for key in sorted(keys)]
        except redis.RedisError as e:
            logger.error(f"Failed to list keys: {e}")
            raise ExecutionError(str(e)) from e

    def get_columns(self, table: str, database: Optional[str] = None) -> List[ColumnDefinition]:
        """A key is presented as a single "value" column typed with the key's Redis type"""
        try:
            self.use_database(database)
            key_type = self._client().type(table)
        except (redis.RedisError, ExecutionError) as e:
            logger.error(f"Failed to read type of key {table}: {e}")
            raise CatalogFetchError(str(e)) from e

        return [ColumnDefinition(
            name="value",
            type_name=key_type,
            is_pk=False,
            is_nullable=False,
            comment=f"Redis key: {table}"
        )]

    def get_indexes(self, table: str, database: Optional[str] = None) -> List[IndexDefinition]:
        return []

    def execute_query(self, query: str) -> List[Dict[str, Any]]:
        """
        Run a command script, one command per line

        Blank lines and lines starting with # or -- are skipped. A failing
        command does not stop the script: its row carries "Error: <message>".

        Returns:
            One {"command", "result"} row per executed line
        """
        client = self._client()
        results = []

        for line in query.splitlines():
            trimmed = line.strip()
            if not trimmed or trimmed.startswith('#') or trimmed.startswith('--'):
                continue

            args = split_command(trimmed)
            if not args:
                continue

            try:
                result = format_reply(client.execute_command(*args))
            except redis.ConnectionError as e:
                logger.error(f"Lost connection while running {args[0]}: {e}")
                raise ExecutionError(str(e)) from e
            except redis.RedisError as e:
                logger.warning(f"Command {args[0]} failed: {e}")
                result = f"Error: {e}"

            results.append({'command': trimmed, 'result': result})

        return results

    def render_alter(self, table: str, operation: AlterOperation) -> List[str]:
        raise ValueError("Schema changes are not supported for Redis")

    def get_key_value(self, key: str, database: Optional[str] = None) -> RedisKeyInfo:
        """
        Read a key's type, TTL and value

        Collections are read up to MAX_COLLECTION_ITEMS entries and rendered
        as indented JSON; length carries the full size.
        """
        try:
            self.use_database(database)
            client = self._client()
            key_type = client.type(key)
            ttl = client.ttl(key)
            last = MAX_COLLECTION_ITEMS - 1

            length = None
            if key_type == 'string':
                value = client.get(key) or ''
            elif key_type == 'list':
                length = client.llen(key)
                value = json.dumps(client.lrange(key, 0, last), ensure_ascii=False, indent=2)
            elif key_type == 'set':
                length = client.scard(key)
                value = json.dumps(sorted(client.smembers(key)), ensure_ascii=False, indent=2)
            elif key_type == 'zset':
                length = client.zcard(key)
                members = client.zrange(key, 0, last, withscores=True)
                value = json.dumps([[member, score] for member, score in members],
                                   ensure_ascii=False, indent=2)
            elif key_type == 'hash':
                length = client.hlen(key)
                value = json.dumps(client.hgetall(key), ensure_ascii=False, indent=2)
            else:
                value = "(unknown type)"
        except redis.RedisError as e:
            logger.error(f"Failed to read key {key}: {e}")
            raise ExecutionError(str(e)) from e

        return RedisKeyInfo(key=key, key_type=key_type, ttl=ttl, value=value, length=length)
