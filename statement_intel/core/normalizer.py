"""
Description normalisation, payee extraction and transaction fingerprints.
"""
import hashlib
import re

PAYMENT_PREFIXES = ('DD', 'SO', 'TFR', 'CHQ', 'FPO', 'ATM', 'POS', 'VIS')
PAYMENT_SUFFIXES = ('DD', 'SO', 'TFR', 'CHQ', 'FPO', 'ATM', 'POS', 'VIS', 'LTD', 'LIMITED', 'PLC')

_NON_ALNUM = re.compile(r"[^A-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_PREFIX_RE = re.compile(r"^(?:%s)\s+" % "|".join(PAYMENT_PREFIXES))
_SUFFIX_RE = re.compile(r"\s+(?:%s)$" % "|".join(PAYMENT_SUFFIXES))

_PAYEE_PREFIX_RE = re.compile(r"^(?:DD|SO|TFR|CHQ|FPO|ATM|POS|VIS|INT'L)\s+", re.IGNORECASE)
_PAYEE_SUFFIX_RE = re.compile(r"\s+(?:DD|SO|TFR|CHQ|FPO|ATM|POS)$", re.IGNORECASE)
_TRAILING_DATE_RE = re.compile(r"\s+\d{2}[/-]\d{2}[/-]\d{2,4}.*$")
_TRAILING_AMOUNT_RE = re.compile(r"\s+£?\d+\.?\d*$")
_TRAILING_REF_RE = re.compile(r"\s+REF\s+\w+$", re.IGNORECASE)


def normalize_description(description: str) -> str:
    """
    Canonical form used for clustering.

    Uppercases, drops everything but letters, digits and spaces, then strips
    payment-type prefixes and company suffixes until none remain, so the
    result is a fixed point: normalize(normalize(x)) == normalize(x).
    """
    if not description:
        return ""
    text = _NON_ALNUM.sub("", description.upper())
    text = _WHITESPACE.sub(" ", text).strip()

    while True:
        stripped = _SUFFIX_RE.sub("", _PREFIX_RE.sub("", text)).strip()
        if stripped == text:
            return text
        text = stripped


def extract_payee(description: str) -> str:
    """Cleaned, title-cased merchant name from a raw description."""
    payee = (description or "").strip()
    payee = _PAYEE_PREFIX_RE.sub("", payee)
    payee = _PAYEE_SUFFIX_RE.sub("", payee)
    payee = _TRAILING_DATE_RE.sub("", payee)
    payee = _TRAILING_AMOUNT_RE.sub("", payee)
    payee = _TRAILING_REF_RE.sub("", payee)
    payee = _WHITESPACE.sub(" ", payee).strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), payee.lower())


def format_amount(amount: float) -> str:
    """Shortest two-decimal rendering: -45.00 -> '-45', -45.50 -> '-45.5'."""
    text = "%.2f" % float(amount)
    text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def transaction_hash(owner_id, amount: float, description: str) -> str:
    """
    SHA-256 over owner, amount and description.

    The date is deliberately excluded; this digest suppresses re-imports of
    the same charge across statements and is never used for clustering.
    """
    hash_input = f"{owner_id if owner_id is not None else ''}{format_amount(amount)}{description}"
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
