"""
Connector registry keyed by store type
"""
import logging
from typing import Any, Dict, List, Type

from schema_browser.connectors.base import BaseConnector
from schema_browser.connectors.mysql import MySQLConnector
from schema_browser.connectors.postgres import PostgreSQLConnector
from schema_browser.connectors.redis import RedisConnector

logger = logging.getLogger(__name__)


class ConnectorFactory:
    """
    Maps configured store types to connector classes

    Each connector registers under its own ``db_type``; aliases map other
    spellings (``postgres``) onto it. The configuration layer accepts
    the types listed in core.config.DEFAULT_PORTS; the two must match.
    """

    _connectors: Dict[str, Type[BaseConnector]] = {
        connector.db_type: connector
        for connector in (PostgreSQLConnector, MySQLConnector, RedisConnector)
    }
    _aliases: Dict[str, str] = {'postgres': 'postgresql'}

    @classmethod
    def canonical_type(cls, db_type: str) -> str:
        name = db_type.strip().lower()
        return cls._aliases.get(name, name)

    @classmethod
    def create_connector(cls, db_type: str, config: Dict[str, Any]) -> BaseConnector:
        """
        Args:
            db_type: Store type or alias, any case
            config: Connection settings from ConnectionConfig.to_connector_config

        Returns:
            Connector instance, not yet connected

        Raises:
            ValueError: If no connector handles the type
        """
        connector_class = cls._connectors.get(cls.canonical_type(db_type))
        if connector_class is None:
            raise ValueError(
                f"Unsupported database type: {db_type}. "
                f"Supported types: {', '.join(cls.get_supported_types())}"
            )

        logger.debug(f"Creating {connector_class.__name__} for {db_type}")
        return connector_class(config)

    @classmethod
    def register_connector(cls, connector_class: Type[BaseConnector], *aliases: str) -> None:
        """Register a connector under its db_type, plus optional alias names"""
        cls._connectors[connector_class.db_type] = connector_class
        for alias in aliases:
            cls._aliases[alias.lower()] = connector_class.db_type

    @classmethod
    def get_supported_types(cls) -> List[str]:
        """Registered types and aliases, sorted"""
        names = set(cls._connectors)
        names.update(alias for alias, target in cls._aliases.items() if target in cls._connectors)
        return sorted(names)
