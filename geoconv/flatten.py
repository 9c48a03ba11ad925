"""Worklist traversal of nested feature documents."""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Tuple

from .store import AttributeMap, Geometry, GeometryAttributeStore, Record

logger = logging.getLogger(__name__)

Visit = Tuple[List[Record], List[Any]]


class DocumentFlattener(ABC):
    """Builds a GeometryAttributeStore from a document's container tree.

    Every container is one unit of work returning its leaf records and its
    child containers. Containers are visited level by level through a thread
    pool, so the depth of the document never grows the call stack, and
    records keep document order within each level.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self._max_workers = max_workers

    @abstractmethod
    def root(self, document: Any) -> Any:
        """Returns the root container of a parsed document."""

    @abstractmethod
    def visit(self, node: Any) -> Visit:
        """Returns the records held directly by ``node`` and its child containers."""

    def flatten(self, document: Any) -> GeometryAttributeStore:
        """Returns the frozen store of every leaf below the document root."""

        store = GeometryAttributeStore()
        pending = [self.root(document)]
        containers = 0
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            while pending:
                containers += len(pending)
                visits = list(executor.map(self.visit, pending))
                pending = []
                for records, children in visits:
                    store.extend(records)
                    pending.extend(children)
        logger.info("flattened %d containers into %d records", containers, len(store))
        return store.freeze()

    @staticmethod
    def records(
        geometries: Iterable[Geometry], attributes: AttributeMap
    ) -> List[Record]:
        """One record per leaf geometry, each with its own attribute copy."""

        return [Record(geometry=g, attributes=dict(attributes)) for g in geometries]
