"""
Generic resource operations shared by every collection.

Input:  query-string params, identifiers, partial documents
Output: documents (dicts keyed by wire field names)
Failure cases: NotFoundError when an identifier matches nothing;
    query and identifier errors propagate from the repository.
"""

import logging
from typing import Any, Mapping, Optional

from tourbook.domain.tours.errors import NotFoundError
from tourbook.domain.tours.ports import DocumentRepository
from tourbook.domain.tours.query import ParamValue, QueryOptions, shape_query

logger = logging.getLogger(__name__)


class ResourceService:
    """get-all / get-one / create / update / delete over one repository."""

    def __init__(
        self, repo: DocumentRepository, max_limit: Optional[int] = None
    ) -> None:
        self._repo = repo
        self._max_limit = max_limit

    def get_all(
        self,
        params: Mapping[str, ParamValue],
        base: Optional[QueryOptions] = None,
    ) -> list[dict]:
        """Run a shaped collection read. No match is an empty list."""
        options = shape_query(params, base=base, max_limit=self._max_limit)
        return self._repo.find(options)

    def get_one(self, doc_id: str) -> dict:
        doc = self._repo.get(doc_id)
        if doc is None:
            raise NotFoundError()
        return doc

    def create_one(self, values: dict[str, Any]) -> dict:
        return self._repo.create(values)

    def update_one(self, doc_id: str, values: dict[str, Any]) -> dict:
        doc = self._repo.update(doc_id, values)
        if doc is None:
            raise NotFoundError()
        return doc

    def delete_one(self, doc_id: str) -> None:
        if not self._repo.delete(doc_id):
            raise NotFoundError()
