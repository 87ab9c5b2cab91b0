"""
Reference Resolver

Maps each posting reference kind to an async loader. Posting and closing
book references are resolved from the ledger store; sales, purchase and
other document kinds are registered by the modules that own them.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import UUID

from ..constants import RefType
from ..exceptions import ConfigurationError
from ..models.posting import Reference
from ..store.base import LedgerStore

logger = logging.getLogger(__name__)

Resolver = Callable[[UUID], Awaitable[Any]]


class ReferenceResolver:
    """
    Usage:
        resolver = ReferenceResolver(store)
        resolver.register(RefType.SALES, sales_repository.get_by_id)
        document = await resolver.resolve(posting.secondary_ref)
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self._resolvers: Dict[RefType, Resolver] = {
            RefType.TRANSACTION: store.get_posting,
            RefType.CLOSING_BOOK: store.get_closing_book,
        }

    def register(self, kind: RefType, resolver: Resolver) -> None:
        self._resolvers[kind] = resolver

    def supports(self, kind: RefType) -> bool:
        return kind in self._resolvers

    async def resolve(self, ref: Optional[Reference]) -> Any:
        """
        Load the object a reference points to.

        Raises:
            ConfigurationError: no resolver registered for the kind
        """
        if ref is None:
            return None
        resolver = self._resolvers.get(ref.kind)
        if resolver is None:
            raise ConfigurationError(
                f"No resolver registered for reference type {ref.kind.value}",
                details={"ref_type": ref.kind.value, "ref_id": str(ref.id)}
            )
        return await resolver(ref.id)

    async def resolve_optional(self, ref: Optional[Reference]) -> Any:
        """Resolve when a resolver exists, otherwise return None"""
        if ref is None or not self.supports(ref.kind):
            return None
        return await self.resolve(ref)
