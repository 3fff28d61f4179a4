"""
Account id and address helpers.
"""

import base58
import structlog

from ..errors import InvalidAccount

logger = structlog.get_logger(__name__)

ACCOUNT_ID_LENGTH = 20
DEFAULT_ADDRESS_VERSION = 0x35


def validate_account(account_id: bytes) -> bytes:
    """Check that account_id is a 20-byte script hash and return it as bytes."""
    if not isinstance(account_id, (bytes, bytearray)):
        raise InvalidAccount(f"account id must be bytes, got {type(account_id).__name__}")
    if len(account_id) != ACCOUNT_ID_LENGTH:
        raise InvalidAccount(f"account id must be {ACCOUNT_ID_LENGTH} bytes, got {len(account_id)}")
    return bytes(account_id)


def parse_account(text: str) -> bytes:
    """Parse a hex account id, with or without a 0x prefix."""
    raw = text[2:] if text.lower().startswith("0x") else text
    try:
        account_id = bytes.fromhex(raw)
    except ValueError as e:
        raise InvalidAccount(f"account id is not hex: {text!r}") from e
    return validate_account(account_id)


def derive_address(account_id: bytes, version: int = DEFAULT_ADDRESS_VERSION) -> str:
    """Derive the address string used as the user key for an account.

    The version byte is prepended and the result base58 encoded. Inputs are
    fixed length, so distinct accounts always give distinct addresses.
    """
    account_id = validate_account(account_id)
    address = base58.b58encode(bytes([version]) + account_id).decode("ascii")
    logger.debug("Address derived", account=account_id.hex(), address=address)
    return address
