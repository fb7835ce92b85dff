import re

from statement_intel.common.logging_config import get_logger
from ..base import (AMOUNT_PATTERN, BaseStatementParser, clean_description, infer_sign,
                    parse_uk_amount, parse_uk_date)

logger = get_logger(__name__)


class NatWestStatementParser(BaseStatementParser):
    """
    NatWest statements print a DD/MM/YYYY date and spread the description,
    amount and running balance over the next few lines.
    """
    bank_name = 'NatWest'

    # Lines examined from the date line onwards
    WINDOW = 5

    date_pattern = re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})")
    amount_pattern = re.compile(r"(?<![\d.,])([-+]?)£?(%s)(?!\d)" % AMOUNT_PATTERN)
    balance_pattern = re.compile(r"Balance[:\s]*£?(%s)" % AMOUNT_PATTERN, re.IGNORECASE)

    def extract_transactions(self, text):
        lines = [line.strip() for line in text.split('\n')]
        rows = []

        for i, line in enumerate(lines):
            date_match = self.date_pattern.search(line)
            if not date_match:
                continue
            tx_date = parse_uk_date(date_match.group(1))
            if tx_date is None:
                continue

            amount = None
            balance = None
            parts = []

            for j in range(i, min(i + self.WINDOW, len(lines))):
                window_line = lines[j]
                if j > i and self.date_pattern.search(window_line):
                    break
                if j == i:
                    window_line = window_line.replace(date_match.group(1), " ", 1)

                balance_match = self.balance_pattern.search(window_line)
                if balance_match:
                    if balance is None:
                        balance = parse_uk_amount(balance_match.group(1))
                    window_line = window_line[:balance_match.start()] + window_line[balance_match.end():]

                amount_match = self.amount_pattern.search(window_line)
                if amount_match and amount is None:
                    amount = infer_sign(parse_uk_amount(amount_match.group(2)), amount_match.group(1), lines[j])
                    window_line = window_line[:amount_match.start()] + window_line[amount_match.end():]

                part = clean_description(window_line)
                # Lines that start with a figure are columns, not narrative
                if part and not re.match(r"^[£\-+]?\d", part) and part not in " ".join(parts):
                    parts.append(part)

            description = " ".join(parts)
            if amount is None or not description:
                continue

            rows.append({
                'date': tx_date,
                'description': description,
                'amount': amount,
                'balance': balance,
                'original_text': line,
            })

        return rows
