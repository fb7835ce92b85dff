"""
Unit tests for BarclaysStatementParser
"""
from datetime import date

from statement_intel.parsing.banks.barclays import BarclaysStatementParser

BARCLAYS_TEXT = """BARCLAYS BANK UK PLC
Sort Code: 20-00-00   Account Number: 12345678
Date Description Money out Money in Balance
15 Oct 2023 DD BRITISH GAS 85.50 O/D 1,234.50
16 Oct 2023 SALARY ACME LTD 2,000.00 CR 3,234.50
20 Oct 2023 CARD PAYMENT TESCO 23.10 DR 3,211.40
Opening balance 1,320.00
"""


class TestBarclays:

    def test_parse_lines(self):
        transactions, metadata = BarclaysStatementParser().parse(BARCLAYS_TEXT, owner_id="user-1")

        assert metadata.bank == "Barclays"
        assert [t.date for t in transactions] == [date(2023, 10, 15), date(2023, 10, 16), date(2023, 10, 20)]
        assert [t.description for t in transactions] == [
            "DD BRITISH GAS", "SALARY ACME LTD", "CARD PAYMENT TESCO"]
        assert [t.amount for t in transactions] == [-85.5, 2000.0, -23.1]
        assert [t.balance for t in transactions] == [1234.5, 3234.5, 3211.4]

    def test_metadata(self):
        _, metadata = BarclaysStatementParser().parse(BARCLAYS_TEXT)

        assert metadata.sort_code == "20-00-00"
        assert metadata.account_number == "****5678"

    def test_whole_pound_amounts(self):
        transactions, _ = BarclaysStatementParser().parse("01 Nov 2023 SO RENT 750 DR 2,461")
        assert transactions[0].amount == -750.0
        assert transactions[0].balance == 2461.0

    def test_invalid_date_is_skipped(self):
        text = "31 Foo 2023 DD SKY 1.00 DR 2.00\n01 Nov 2023 DD SKY 30.00 DR 100.00"
        transactions, _ = BarclaysStatementParser().parse(text)

        assert len(transactions) == 1
        assert transactions[0].date == date(2023, 11, 1)

    def test_lines_without_type_column_are_ignored(self):
        transactions, _ = BarclaysStatementParser().parse("15 Oct 2023 DD BRITISH GAS 85.50 1,234.50")
        assert transactions == []
