"""
Data models for schema representation
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional


@dataclass
class ColumnDefinition:
    """Column definition in a table"""
    name: str
    type_name: str
    is_pk: bool = False
    is_nullable: bool = True
    default_value: Optional[str] = None
    comment: Optional[str] = None

    def copy(self) -> "ColumnDefinition":
        """Return an independent copy for editing"""
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'name': self.name,
            'type_name': self.type_name,
            'is_pk': self.is_pk,
            'is_nullable': self.is_nullable,
            'default_value': self.default_value,
            'comment': self.comment
        }


@dataclass
class IndexDefinition:
    """Index definition on a table"""
    name: str
    columns: List[str] = field(default_factory=list)
    is_unique: bool = False
    is_pk: bool = False
    comment: Optional[str] = None

    def copy(self) -> "IndexDefinition":
        """Return an independent copy for editing"""
        return replace(self, columns=list(self.columns))

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'name': self.name,
            'columns': list(self.columns),
            'is_unique': self.is_unique,
            'is_pk': self.is_pk,
            'comment': self.comment
        }


@dataclass
class TableInfo:
    """Table listing entry with size statistics where the store reports them"""
    name: str
    data_size: Optional[int] = None
    index_size: Optional[int] = None
    total_size: Optional[int] = None
    row_count: Optional[int] = None
    comment: Optional[str] = None


@dataclass
class RedisKeyInfo:
    """Type, TTL and rendered value of a single Redis key"""
    key: str
    key_type: str
    ttl: int  # -1 = no expiry, -2 = key doesn't exist
    value: str
    length: Optional[int] = None
