"""
Identifier quoting conventions per store type
"""
import re
from dataclasses import dataclass
from typing import Optional

# Words that cannot appear bare as a column name in ORDER BY on any supported store
RESERVED_WORDS = frozenset({
    'add', 'all', 'alter', 'and', 'as', 'asc', 'between', 'by', 'case', 'check',
    'column', 'constraint', 'create', 'default', 'delete', 'desc', 'distinct',
    'drop', 'else', 'end', 'exists', 'from', 'group', 'having', 'in', 'index',
    'insert', 'into', 'is', 'join', 'key', 'like', 'limit', 'not', 'null',
    'offset', 'on', 'or', 'order', 'primary', 'references', 'select', 'set',
    'table', 'then', 'to', 'union', 'unique', 'update', 'user', 'values',
    'when', 'where', 'with',
})


@dataclass(frozen=True)
class SqlDialect:
    """Quoting rules for one store type"""
    name: str
    quote_char: str
    plain_identifier: str

    def needs_quoting(self, identifier: str) -> bool:
        return (not re.fullmatch(self.plain_identifier, identifier)
                or identifier.lower() in RESERVED_WORDS)

    def quote_identifier(self, identifier: str) -> str:
        """
        Quote an identifier when it is not a plain name

        Plain names (letters, digits, underscores, not a reserved word) are
        returned unchanged; anything else is wrapped in the dialect's quote
        character with embedded quote characters doubled.
        """
        if not self.needs_quoting(identifier):
            return identifier
        escaped = identifier.replace(self.quote_char, self.quote_char * 2)
        return f"{self.quote_char}{escaped}{self.quote_char}"

    def qualify(self, table: str, database: Optional[str] = None) -> str:
        """Table reference, optionally prefixed with its database/schema. Not escaped."""
        if database:
            return f"{database}.{table}"
        return table


# PostgreSQL folds unquoted names to lower case, so mixed case must be quoted
POSTGRESQL = SqlDialect('postgresql', '"', r'[a-z_][a-z0-9_$]*')
MYSQL = SqlDialect('mysql', '`', r'[A-Za-z_][A-Za-z0-9_$]*')
GENERIC = SqlDialect('generic', '"', r'[A-Za-z_][A-Za-z0-9_]*')

_DIALECTS = {
    'postgresql': POSTGRESQL,
    'postgres': POSTGRESQL,
    'mysql': MYSQL,
}


def get_dialect(db_type: Optional[str]) -> SqlDialect:
    """Dialect for a store type, falling back to standard double-quote quoting"""
    if not db_type:
        return GENERIC
    return _DIALECTS.get(db_type.lower(), GENERIC)
