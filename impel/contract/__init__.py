"""
Contract package for Impel.
"""

from .address import derive_address, parse_account
from .context import ContractManagement, InvocationContext
from .host import ContractHost
from .surface import ImpelContract

__all__ = [
    "derive_address",
    "parse_account",
    "ContractManagement",
    "InvocationContext",
    "ContractHost",
    "ImpelContract"
]
