"""
Bank Registry

Identifies which bank produced a statement text blob.
"""
import re
from typing import Iterable, List, Optional

from statement_intel.common.logging_config import get_logger
from .layout import BankProfile

logger = get_logger(__name__)

UNKNOWN_BANK = 'Unknown'

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"

# Evaluation order matters: the first alias found wins.
DEFAULT_PROFILES = [
    BankProfile('NatWest', ['NATWEST', 'NAT WEST', 'NATIONAL WESTMINSTER']),
    BankProfile('Barclays', ['BARCLAYS']),
    BankProfile(
        'HSBC', ['HSBC'],
        # "05 Jan 24" followed by DD/SO/VIS/OBP entries
        date_signature=r"\b\d{1,2}\s+%s\s+\d{2}\b" % _MONTHS,
        type_codes=['DD', 'SO', 'VIS', 'OBP'],
    ),
    BankProfile('Lloyds', ['LLOYDS', 'LLOYDS BANK']),
    BankProfile('Santander', ['SANTANDER']),
    BankProfile('TSB', ['TSB BANK', 'THE SAVINGS BANK']),
    BankProfile('Halifax', ['HALIFAX']),
    BankProfile('Nationwide', ['NATIONWIDE']),
    BankProfile('Co-operative', ['CO-OPERATIVE', 'COOP BANK']),
    BankProfile('First Direct', ['FIRST DIRECT']),
]


class BankRegistry:
    """
    Ordered set of bank profiles.

    Structural signatures are checked before any alias, because statement
    footers often mention other banks by name.
    """

    def __init__(self, profiles: Optional[Iterable[BankProfile]] = None):
        self.profiles: List[BankProfile] = list(DEFAULT_PROFILES if profiles is None else profiles)

    def _matches_signature(self, profile: BankProfile, text: str) -> bool:
        hits = re.findall(profile.date_signature, text)
        if len(hits) < profile.min_signature_hits:
            return False
        codes = "|".join(re.escape(c) for c in profile.type_codes)
        return re.search(r"(?:^|\s)(?:%s)\s" % codes, text) is not None

    def identify(self, text: str) -> str:
        """Bank name for the text, or "Unknown". Never raises."""
        if not text or not text.strip():
            return UNKNOWN_BANK

        try:
            for profile in self.profiles:
                if profile.has_signature and self._matches_signature(profile, text):
                    logger.info(f"Bank detected by signature: {profile.name}", bank=profile.name)
                    return profile.name

            upper = text.upper()
            for profile in self.profiles:
                for alias in profile.aliases:
                    if alias in upper:
                        logger.info(f"Bank detected: {profile.name}", bank=profile.name, alias=alias)
                        return profile.name
        except re.error as e:
            logger.error(f"Invalid bank signature: {e}")

        logger.info("Bank not identified, using generic parser", bank=UNKNOWN_BANK)
        return UNKNOWN_BANK

    def get(self, name: str) -> Optional[BankProfile]:
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None

    def list_banks(self) -> List[str]:
        return [p.name for p in self.profiles]
