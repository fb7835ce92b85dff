"""
Generic Statement Parser

Fallback for banks without a dedicated strategy (and for unidentified
statements). Scans line by line for a UK date, then looks for an amount on
the same line or the next two lines; the description is whatever remains
of the date line once the amount and any trailing balance column are cut.
Balances are not extracted.
"""
import re

from statement_intel.common.logging_config import get_logger
from ..base import (AMOUNT_PATTERN, BALANCE_HEADER_RE, STATEMENT_PERIOD_RE, UK_DATE_PATTERN,
                    BaseStatementParser, clean_description, infer_sign, parse_uk_amount,
                    parse_uk_date)

logger = get_logger(__name__)


class GenericStatementParser(BaseStatementParser):

    # Lines searched for an amount, date line included
    LOOKAHEAD = 3

    date_pattern = re.compile(r"(%s)" % UK_DATE_PATTERN)
    amount_pattern = re.compile(r"(?<![\d.,])([-+]?)£?(%s)(?!\d)" % AMOUNT_PATTERN)
    # Running balance (and sign tags) left at the end of a date line
    trailing_amounts = re.compile(
        r"(?:\s+(?:[-+]?£?(?:%s)(?!\d)|DR|CR|O/D))+\s*$" % AMOUNT_PATTERN)

    def is_summary_line(self, line: str) -> bool:
        return bool(STATEMENT_PERIOD_RE.search(line) or BALANCE_HEADER_RE.search(line))

    def sign_context(self, line, candidate, amount_match, lookahead):
        """
        Text that may tag the amount: everything up to the next amount, so a
        CR or DR printed against the balance column is not read as the
        transaction's own tag. A lookahead amount also sees its date line.
        """
        tail = candidate[amount_match.end():]
        next_amount = self.amount_pattern.search(tail)
        context = candidate[:amount_match.end()] + (tail[:next_amount.start()] if next_amount else tail)
        return f"{line} {context}" if lookahead else context

    def extract_transactions(self, text):
        lines = text.split('\n')
        rows = []

        for i, line in enumerate(lines):
            date_match = self.date_pattern.search(line)
            if not date_match or self.is_summary_line(line):
                continue
            tx_date = parse_uk_date(date_match.group(1))
            if tx_date is None:
                continue

            residual = line.replace(date_match.group(1), " ", 1)
            for j in range(i, min(i + self.LOOKAHEAD, len(lines))):
                if j > i and (self.date_pattern.search(lines[j]) or self.is_summary_line(lines[j])):
                    break
                candidate = residual if j == i else lines[j]
                amount_match = self.amount_pattern.search(candidate)
                if not amount_match:
                    continue

                if j == i:
                    residual = residual[:amount_match.start()] + " " + residual[amount_match.end():]
                description = clean_description(self.trailing_amounts.sub("", residual))
                if description:
                    context = self.sign_context(line, candidate, amount_match, j > i)
                    rows.append({
                        'date': tx_date,
                        'description': description,
                        'amount': infer_sign(parse_uk_amount(amount_match.group(2)),
                                             amount_match.group(1), context),
                        'balance': None,
                        'original_text': line.strip(),
                    })
                else:
                    logger.debug("Date line without description.", line=line.strip())
                break

        return rows
