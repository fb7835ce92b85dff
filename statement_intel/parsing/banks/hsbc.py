import re

from statement_intel.common.logging_config import get_logger
from ..base import AMOUNT_PATTERN, BaseStatementParser, parse_month_name_date, parse_uk_amount

logger = get_logger(__name__)

MAX_AMOUNT = 50000

CREDIT_CODES = ('CR',)


class HSBCStatementParser(BaseStatementParser):
    """
    HSBC statements group the day's entries under one '05 Jan 24' date,
    each entry starting with a type code (DD, SO, VIS, OBP, BP, CR) and
    followed by its amount; the balance, when printed, comes after.
    """
    bank_name = 'HSBC'

    date_split = re.compile(
        r"(\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{2})\b")
    entry_code = re.compile(r"(?:^|(?<=\s))(DD|SO|VIS(?:\s+INT'L)?|OBP|BP|CR)(?=\s)")
    amount_pattern = re.compile(r"(?<![\d.,])(%s)(?!\d)" % AMOUNT_PATTERN)
    long_reference = re.compile(r"\d{8,}")

    def extract_transactions(self, text):
        rows = []
        parts = self.date_split.split(text)

        # parts = [preamble, date, block, date, block, ...]
        for i in range(1, len(parts), 2):
            date_str = parts[i]
            block = parts[i + 1] if i + 1 < len(parts) else ""
            day, month, year = date_str.split()
            tx_date = parse_month_name_date(day, month, year)
            if tx_date is None:
                continue
            rows.extend(self._parse_block(tx_date, date_str, block))
        return rows

    def _parse_block(self, tx_date, date_str, block):
        rows = []
        codes = list(self.entry_code.finditer(block))
        for n, code_match in enumerate(codes):
            end = codes[n + 1].start() if n + 1 < len(codes) else len(block)
            segment = block[code_match.end():end]

            amount_match = self.amount_pattern.search(segment)
            if not amount_match:
                continue
            amount = parse_uk_amount(amount_match.group(1))
            if not 0 < amount < MAX_AMOUNT:
                continue

            raw_desc = segment[:amount_match.start()]
            ref_match = self.long_reference.search(raw_desc)
            desc = " ".join(self.long_reference.sub(" ", raw_desc).split())
            code = " ".join(code_match.group(1).split())

            rows.append({
                'date': tx_date,
                'description': f"{code} {desc}".strip(),
                'amount': amount if code in CREDIT_CODES else -amount,
                'reference': ref_match.group(0) if ref_match else None,
                'balance': None,
                'original_text': f"{date_str} {code} {' '.join(raw_desc.split())} {amount_match.group(1)}",
            })
        return rows
