"""
Bank Profile Configuration

Defines how a bank is recognised in statement text.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class BankProfile:
    """
    Recognition rules for one bank.

    Attributes:
        name: Bank identifier returned by the identifier (e.g. "NatWest")
        aliases: Upper-case substrings that name the bank in the text
        date_signature: Regex for a bank-specific date token shape
        type_codes: Transaction-type codes that must co-occur with the
            date signature for a structural match
        min_signature_hits: Date tokens needed before the signature counts
    """
    name: str
    aliases: List[str]
    date_signature: Optional[str] = None
    type_codes: List[str] = field(default_factory=list)
    min_signature_hits: int = 1

    @property
    def has_signature(self) -> bool:
        return bool(self.date_signature and self.type_codes)
