"""
Similarity Grouper

Greedy single-pass clustering of transactions that look like the same
recurring payee.

Each transaction is compared only with the representative (first member)
of every existing cluster, so results depend on arrival order and the
relation is not transitive: A may join cluster X while a transaction
similar to both A and X's representative starts a cluster of its own.
That order dependence is kept on purpose; callers sort by date first.
"""
from typing import Iterable, List

from rapidfuzz import fuzz

from statement_intel.common.logging_config import get_logger
from statement_intel.common.models import Transaction, TransactionCluster
from .normalizer import normalize_description

logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 85.0
DEFAULT_AMOUNT_TOLERANCE = 0.15


def amount_variance(a1: float, a2: float) -> float:
    """Relative difference |a1 - a2| / max(a1, a2) over absolute amounts."""
    a1, a2 = abs(a1), abs(a2)
    largest = max(a1, a2)
    if largest == 0:
        return 0.0
    return abs(a1 - a2) / largest


def description_similarity(d1: str, d2: str) -> float:
    """Fuzzy ratio (0-100) between normalised descriptions."""
    return fuzz.ratio(normalize_description(d1), normalize_description(d2))


class SimilarityGrouper:
    """
    Args:
        similarity_threshold: Minimum fuzzy ratio on the 0-100 scale
        amount_tolerance: Maximum relative amount variance (0.15 = 15%)
        min_cluster_size: Clusters smaller than this are discarded
    """

    def __init__(self,
                 similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
                 amount_tolerance: float = DEFAULT_AMOUNT_TOLERANCE,
                 min_cluster_size: int = 2):
        self.similarity_threshold = similarity_threshold
        self.amount_tolerance = amount_tolerance
        self.min_cluster_size = min_cluster_size

    def belongs_to(self, transaction: Transaction, cluster: TransactionCluster,
                   normalized: str = None) -> bool:
        representative = cluster.representative
        if normalized is None:
            normalized = normalize_description(transaction.description)
        similarity = fuzz.ratio(normalized, normalize_description(representative.description))
        if similarity < self.similarity_threshold:
            return False
        return amount_variance(transaction.amount, representative.amount) <= self.amount_tolerance

    def cluster_all(self, transactions: Iterable[Transaction]) -> List[TransactionCluster]:
        """All clusters, singletons included, in creation order."""
        clusters: List[TransactionCluster] = []
        for tx in transactions:
            normalized = normalize_description(tx.description)
            for cluster in clusters:
                if self.belongs_to(tx, cluster, normalized):
                    cluster.add(tx)
                    break
            else:
                clusters.append(TransactionCluster(members=[tx]))
        return clusters

    def group(self, transactions: Iterable[Transaction]) -> List[TransactionCluster]:
        """Clusters with at least min_cluster_size members."""
        clusters = self.cluster_all(transactions)
        kept = [c for c in clusters if c.size >= self.min_cluster_size]
        logger.debug("Grouped transactions.", clusters=len(clusters), kept=len(kept))
        return kept
