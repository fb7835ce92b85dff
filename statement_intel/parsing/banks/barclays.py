import re

from statement_intel.common.logging_config import get_logger
from ..base import (LOOSE_AMOUNT_PATTERN, BaseStatementParser, infer_sign, parse_month_name_date,
                    parse_uk_amount)

logger = get_logger(__name__)


class BarclaysStatementParser(BaseStatementParser):
    """
    One transaction per line:
        '15 Oct 2023  DD BRITISH GAS  85.50 O/D  1,234.50'
    Type column: O/D and DR are debits, CR is a credit.
    """
    bank_name = 'Barclays'

    line_pattern = re.compile(
        r"(\d{1,2})\s+([A-Za-z]{3})\s+(\d{4})\s+(.+?)\s+(%s)\s+(O/D|CR|DR)\s+(%s)"
        % (LOOSE_AMOUNT_PATTERN, LOOSE_AMOUNT_PATTERN)
    )

    def extract_transactions(self, text):
        rows = []
        for line in text.split('\n'):
            m = self.line_pattern.search(line)
            if not m:
                continue
            day, month, year, desc, amount_s, tx_type, balance_s = m.groups()
            tx_date = parse_month_name_date(day, month, year)
            if tx_date is None:
                logger.debug("Skipping line with invalid date.", line=line.strip())
                continue

            rows.append({
                'date': tx_date,
                'description': desc.strip(),
                'amount': infer_sign(parse_uk_amount(amount_s), context=tx_type),
                'balance': parse_uk_amount(balance_s),
                'original_text': line.strip(),
            })
        return rows
