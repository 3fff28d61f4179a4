"""
Invocation context handed to every contract entry point.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from ..database.keyed_store import KeyedStore


class ContractManagement:
    """Contract maintenance requests raised during one invocation.

    The host applies them only after the invocation's storage writes are
    committed.
    """

    def __init__(self):
        self.updates: List[Tuple[bytes, str, object]] = []
        self.destroy_requested = False

    def update(self, nef_file: bytes, manifest: str, data: object = None) -> None:
        self.updates.append((nef_file, manifest, data))

    def destroy(self) -> None:
        self.destroy_requested = True


@dataclass
class InvocationContext:
    """Caller identity and storage handle for a single invocation."""

    sender: bytes
    store: KeyedStore
    witnesses: FrozenSet[bytes] = frozenset()
    calling_script_hash: Optional[bytes] = None
    management: ContractManagement = field(default_factory=ContractManagement)

    def check_witness(self, account_id: bytes) -> bool:
        """Whether account_id signed the transaction being executed."""
        return bytes(account_id) in self.witnesses
