"""Role checks consumed by the ledger.

The ledger never inspects identities itself; it asks an injected authorizer.
"""

from collections.abc import Iterable
from typing import Protocol


class AuthorizerProtocol(Protocol):
    def is_authorized_resolver(self, identity: str) -> bool: ...

    def is_owner(self, identity: str) -> bool: ...


class StaticAuthorizer:
    """Fixed owner plus resolver set, e.g. settings.OWNER_ID / settings.RESOLVER_IDS.

    The owner is always an authorized resolver.
    """

    def __init__(self, owner_id: str, resolver_ids: Iterable[str] = ()) -> None:
        self._owner_id = owner_id
        self._resolver_ids = frozenset(resolver_ids)

    def is_owner(self, identity: str) -> bool:
        return bool(identity) and identity == self._owner_id

    def is_authorized_resolver(self, identity: str) -> bool:
        return self.is_owner(identity) or identity in self._resolver_ids
