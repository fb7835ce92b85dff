from .layout import BankProfile
from .registry import DEFAULT_PROFILES, UNKNOWN_BANK, BankRegistry

__all__ = ['BankProfile', 'BankRegistry', 'DEFAULT_PROFILES', 'UNKNOWN_BANK']
