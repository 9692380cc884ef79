"""
Neo4j Graph Client

Read-only access to the Neo4j database that stores knowledge base entries.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from neo4j import READ_ACCESS, Driver, GraphDatabase, Session
from neo4j.exceptions import AuthError, DriverError, Neo4jError, ServiceUnavailable

logger = logging.getLogger(__name__)


class GraphClient:
    """
    Neo4j client for knowledge base reads.

    The caller owns the instance and hands it to GraphKnowledgeBase; the
    engine never opens a connection of its own.
    """

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: Optional[str] = None,
        connection_timeout: float = 10.0
    ):
        """
        Connect to Neo4j.

        Args:
            uri: Neo4j connection URI (e.g., bolt://localhost:7687)
            user: Database username
            password: Database password
            database: Database name; the server default when omitted
            connection_timeout: Seconds to wait when opening a connection

        Raises:
            ServiceUnavailable: If the server cannot be reached
            AuthError: If authentication fails
        """
        self.uri = uri
        self.database = database
        self._driver: Optional[Driver] = None
        logger.info(f"Connecting to knowledge base graph at {uri}")

        try:
            self._driver = GraphDatabase.driver(
                uri,
                auth=(user, password),
                connection_timeout=connection_timeout
            )
            self._driver.verify_connectivity()
        except ServiceUnavailable as e:
            logger.error(f"Knowledge base graph unreachable at {uri}: {e}")
            raise
        except AuthError as e:
            logger.error(f"Knowledge base graph rejected credentials for {user}: {e}")
            raise

        logger.info("Knowledge base graph connected")

    def close(self) -> None:
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Knowledge base graph connection closed")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Yield a read-access session on the configured database."""
        if not self._driver:
            raise RuntimeError("GraphClient is closed")

        session = self._driver.session(database=self.database, default_access_mode=READ_ACCESS)
        try:
            yield session
        finally:
            session.close()

    def execute_query(
        self,
        query: str,
        parameters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Run a read query in a managed transaction.

        Args:
            query: Cypher query string
            parameters: Optional query parameters

        Returns:
            One dictionary per record; nodes come back as property dictionaries

        Raises:
            RuntimeError: If the query fails
        """
        logger.debug(f"Running read query: {query.strip()[:100]}")

        try:
            with self.get_session() as session:
                records = session.execute_read(
                    lambda tx: tx.run(query, parameters or {}).data()
                )
        except (Neo4jError, DriverError) as e:
            logger.error(f"Knowledge base query failed: {e}")
            raise RuntimeError(f"Knowledge base query failed: {e}")

        logger.debug(f"Read query returned {len(records)} records")
        return records

    def health_check(self) -> bool:
        """True if the database answers a trivial query."""
        try:
            result = self.execute_query("RETURN 1 AS health")
        except RuntimeError as e:
            logger.error(f"Knowledge base health check failed: {e}")
            return False
        return bool(result) and result[0].get('health') == 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
