from typing import Dict, Iterable, List, NamedTuple, Optional

from backend.schemas import Transaction, TransactionFinding


class JoinedTransaction(NamedTuple):
    transaction: Transaction
    finding: Optional[TransactionFinding]


def index_findings(findings: Iterable[TransactionFinding]) -> Dict[str, TransactionFinding]:
    """Map tx_id -> finding. The first finding wins when a tx_id repeats."""
    index: Dict[str, TransactionFinding] = {}
    for finding in findings:
        index.setdefault(finding.tx_id, finding)
    return index


def join_findings(transactions: Iterable[Transaction],
                  findings: Iterable[TransactionFinding]) -> List[JoinedTransaction]:
    """Pair each transaction, in input order, with its finding or None."""
    index = index_findings(findings)
    return [
        JoinedTransaction(tx, index.get(tx.tx_id) if tx.tx_id is not None else None)
        for tx in transactions
    ]


def orphan_findings(transactions: Iterable[Transaction],
                    findings: Iterable[TransactionFinding]) -> List[TransactionFinding]:
    """Findings whose tx_id matches no transaction; these are never displayed."""
    known = {tx.tx_id for tx in transactions if tx.tx_id is not None}
    return [f for f in findings if f.tx_id not in known]
