from typing import List, Sequence

import pandas as pd

from statement_intel.common.models import Transaction

COLUMNS = ['date', 'description', 'reference', 'amount', 'balance',
           'original_text', 'hash', 'internal_id', 'source']


def _none_if_missing(value):
    if value is None:
        return None
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


class TransactionConsolidator:

    @staticmethod
    def consolidate(batches: Sequence[Sequence[Transaction]]) -> pd.DataFrame:
        """
        Merge the transactions of several imports into one frame.

        A transaction already seen in an earlier import (same date and same
        fingerprint, or same date/amount/description when it has no
        fingerprint) is dropped. Repeats inside one import are kept; the
        parser has already coalesced those it considers duplicates.
        """
        frames = []
        for source, batch in enumerate(batches or []):
            if not batch:
                continue
            df = pd.DataFrame([t.to_dict() for t in batch])
            df['source'] = source
            frames.append(df)

        if not frames:
            return pd.DataFrame(columns=COLUMNS)

        combined_df = pd.concat(frames, ignore_index=True)

        # Ensure correct types
        combined_df['date'] = pd.to_datetime(combined_df['date']).dt.date
        combined_df['amount'] = pd.to_numeric(combined_df['amount'])
        combined_df['description'] = combined_df['description'].fillna('').astype(str).str.strip()
        combined_df['hash'] = combined_df['hash'].fillna('').astype(str)
        combined_df['internal_id'] = combined_df['internal_id'].fillna(-1).astype(int)

        fallback_key = combined_df['amount'].astype(str) + '|' + combined_df['description']
        combined_df['_key'] = combined_df['hash'].where(combined_df['hash'] != '', fallback_key)

        first_source = combined_df.groupby(['date', '_key'])['source'].transform('min')
        deduplicated_df = combined_df[combined_df['source'] == first_source].drop(columns='_key')

        return deduplicated_df.sort_values(
            by=['date', 'source', 'internal_id'], kind='stable').reset_index(drop=True)

    @staticmethod
    def to_transactions(df: pd.DataFrame) -> List[Transaction]:
        """Frame rows back to Transactions, renumbered in frame order."""
        transactions = []
        for i, row in enumerate(df.to_dict(orient='records')):
            balance = _none_if_missing(row.get('balance'))
            transactions.append(Transaction(
                date=row['date'],
                description=row['description'],
                amount=float(row['amount']),
                reference=_none_if_missing(row.get('reference')),
                balance=float(balance) if balance is not None else None,
                original_text=_none_if_missing(row.get('original_text')) or '',
                hash=row.get('hash') or '',
                internal_id=i,
            ))
        return transactions
