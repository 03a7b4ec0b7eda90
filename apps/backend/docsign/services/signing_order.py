"""
Signing order policy.

Pure functions over a document's signers and its order configuration. In
parallel mode every pending signer may act. In sequential mode only the
first pending signer in the order may act; signers left out of the order
sort after every ordered signer and are never eligible while sequential
mode is on, which is why ``send`` insists the order covers everyone.
"""

from typing import Iterable, Sequence

from docsign.models import Signer, SignerStatus
from docsign.services.errors import ValidationError


def _pending(signer: Signer) -> bool:
    return signer.status == SignerStatus.PENDING


def eligible_signers(
    signers: Iterable[Signer],
    order: Sequence[str],
    sequential_enabled: bool,
) -> set[str]:
    """Return the ids of the signers allowed to act right now."""
    signers = list(signers)
    if not sequential_enabled:
        return {s.id for s in signers if _pending(s)}

    by_id = {s.id: s for s in signers}
    for signer_id in order:
        signer = by_id.get(signer_id)
        if signer is not None and _pending(signer):
            return {signer.id}
    return set()


def is_eligible(
    signer_id: str,
    signers: Iterable[Signer],
    order: Sequence[str],
    sequential_enabled: bool,
) -> bool:
    """Check whether a single signer may act right now."""
    return signer_id in eligible_signers(signers, order, sequential_enabled)


def waiting_for(
    signer_id: str,
    signers: Iterable[Signer],
    order: Sequence[str],
) -> list[Signer]:
    """
    Pending signers that must finish before ``signer_id`` may act.

    For a signer outside the order that is every pending ordered signer.
    """
    by_id = {s.id: s for s in signers}
    ahead = order[: order.index(signer_id)] if signer_id in order else order
    return [
        by_id[sid] for sid in ahead if sid in by_id and _pending(by_id[sid])
    ]


def uncovered_signers(signers: Iterable[Signer], order: Sequence[str]) -> list[Signer]:
    """Signers that do not appear in the order."""
    ordered = set(order)
    return [s for s in signers if s.id not in ordered]


def normalize_order(order: Sequence[str], signers: Iterable[Signer]) -> list[str]:
    """
    Validate a proposed order against the document's signers.

    Raises:
        ValidationError: on duplicates or ids that are not signers of the
            document.
    """
    known = {s.id for s in signers}
    seen: set[str] = set()
    normalized = []

    for signer_id in order:
        if signer_id in seen:
            raise ValidationError(f"Signer {signer_id} appears twice in the signing order")
        if signer_id not in known:
            raise ValidationError(f"Signer {signer_id} is not a signer of this document")
        seen.add(signer_id)
        normalized.append(signer_id)

    return normalized


def sorted_by_order(signers: Iterable[Signer], order: Sequence[str]) -> list[Signer]:
    """Ordered signers first, in order, then the rest in their existing order."""
    signers = list(signers)
    position = {sid: i for i, sid in enumerate(order)}
    ranked = sorted(
        enumerate(signers),
        key=lambda pair: (position.get(pair[1].id, len(position)), pair[0]),
    )
    return [signer for _, signer in ranked]
