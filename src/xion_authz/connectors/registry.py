"""
Connector Registry

Keeps the connectors an application offers and answers which of them are
currently usable.
"""

import logging
from typing import Dict, List, Optional

from ..orchestrator.bases import Connector

logger = logging.getLogger(__name__)


class ConnectorRegistry:
    """Connectors by id, in registration order."""

    def __init__(self) -> None:
        self._connectors: Dict[str, Connector] = {}

    def register(self, connector: Connector) -> None:
        connector_id = connector.metadata.id
        if connector_id in self._connectors:
            logger.warning('Connector with ID "%s" already registered, overwriting', connector_id)
        self._connectors[connector_id] = connector

    def register_all(self, connectors: List[Connector]) -> None:
        for connector in connectors:
            self.register(connector)

    def get(self, connector_id: str) -> Optional[Connector]:
        return self._connectors.get(connector_id)

    def get_all(self) -> List[Connector]:
        return list(self._connectors.values())

    def get_by_type(self, connector_type: str) -> List[Connector]:
        return [c for c in self._connectors.values() if c.metadata.type == connector_type]

    async def get_available(self) -> List[Connector]:
        """Connectors whose is_available() is true, checked one at a time."""
        available = []
        for connector in self._connectors.values():
            if await connector.is_available():
                available.append(connector)
        return available

    def clear(self) -> None:
        self._connectors.clear()
