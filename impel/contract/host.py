"""
In-process host for the Impel contract.

The host plays the part of the ledger: it runs one invocation at a time,
buffers the invocation's storage writes and commits them only when the entry
point returns. An exception discards every buffered write, including
challenge counter increments.
"""

import threading
from typing import Any, Iterable, Optional, Sequence
import structlog

from ..config import Config, get_config
from ..database.connection import StorageBackend, WriteBuffer
from ..database.keyed_store import KeyedStore
from ..errors import ContractDestroyed
from .address import validate_account
from .context import ContractManagement, InvocationContext
from .surface import ImpelContract

logger = structlog.get_logger(__name__)


class ContractHost:
    """Runs contract entry points atomically against a storage backend."""

    def __init__(self, backend: StorageBackend, config: Optional[Config] = None,
                 contract: Optional[ImpelContract] = None):
        self.backend = backend
        self.config = config or get_config()
        self.contract = contract or ImpelContract(self.config)

        self.nef_file: Optional[bytes] = None
        self.manifest: Optional[str] = None
        self.update_count = 0
        self.destroyed = False

        self._lock = threading.Lock()

    def invoke(self, method: str, sender: bytes, *args,
               witnesses: Optional[Iterable[bytes]] = None,
               calling_script_hash: Optional[bytes] = None,
               **kwargs) -> Any:
        """Run one entry point as a single atomic invocation.

        The sender witnesses the invocation unless witnesses is given.
        """
        if method not in self.contract.ENTRY_POINTS:
            raise AttributeError(f"{method!r} is not a contract entry point")

        sender = validate_account(sender)
        witnessed = frozenset(bytes(w) for w in witnesses) if witnesses is not None else frozenset({sender})

        with self._lock:
            if self.destroyed:
                raise ContractDestroyed("contract has been destroyed")

            buffer = WriteBuffer(self.backend)
            ctx = InvocationContext(
                sender=sender,
                store=KeyedStore(buffer),
                witnesses=witnessed,
                calling_script_hash=calling_script_hash,
                management=ContractManagement(),
            )
            log = logger.bind(method=method, sender=sender.hex())

            try:
                result = getattr(self.contract, method)(ctx, *args, **kwargs)
            except Exception as e:
                buffer.discard()
                log.warning("Invocation aborted", error=str(e), error_type=type(e).__name__)
                raise

            written = buffer.flush()
            self._apply_management(ctx.management)
            log.debug("Invocation committed", writes=written)
            return result

    def _apply_management(self, management: ContractManagement) -> None:
        for nef_file, manifest, _data in management.updates:
            self.nef_file = nef_file
            self.manifest = manifest
            self.update_count += 1
            logger.info("Contract code updated", update_count=self.update_count)
        if management.destroy_requested:
            self.destroyed = True
            logger.info("Contract destroyed")

    def deploy(self, sender: bytes, data: Any = None, is_update: bool = False) -> None:
        """Install hook called by the ledger on deploy or update."""
        self.invoke("deploy", sender, data, is_update)

    def transfer(self, from_account: bytes, amount: int, data: Optional[Sequence[Any]] = None,
                 token_hash: Optional[bytes] = None, witnessed: bool = True) -> Any:
        """Deliver a token transfer to the contract's payment callback.

        token_hash defaults to the configured GAS token.
        """
        from_account = validate_account(from_account)
        return self.invoke(
            "on_payment_received",
            from_account,
            from_account,
            amount,
            data,
            witnesses=[from_account] if witnessed else [],
            calling_script_hash=token_hash if token_hash is not None else self.config.gas_token_script_hash,
        )
