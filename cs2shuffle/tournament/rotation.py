"""
Rotation fairness for rounds that cannot seat every player.

When a round leaves players over (balancer remainder or an unmatched team),
players who sat out the previous round get swapped in for players who played
it. The decision logic is pure and works on any objects with ``id`` and
``match_count`` attributes, so it can be tested without a database.

This is best-effort: when nobody eligible can be swapped, the leftover
players simply sit out again.
"""

from dataclasses import dataclass
from typing import AbstractSet, List, MutableSequence, Optional, Sequence, Tuple

from cs2shuffle.utils.constants import TEAM1, TEAM2

# (team1 roster, team2 roster) of one formed match
FormedMatch = Tuple[MutableSequence, MutableSequence]


@dataclass(frozen=True)
class SwapDecision:
    """Swap a leftover player into a formed match in place of another player."""
    incoming_id: str
    outgoing_id: str
    match_index: int
    side: str
    slot: int


def decide_rotation_swap(
    last_round_players: AbstractSet[str],
    leftover: Sequence,
    formed_matches: Sequence[FormedMatch]
) -> Optional[SwapDecision]:
    """
    Pick one swap, or None if no swap is possible.

    The incoming player is the leftover player who did not play last round
    with the fewest lifetime matches (first presented wins ties). The outgoing
    player is the first player who did play last round, scanning matches in
    order, team 1 before team 2, roster order within a team.
    """
    candidates = [p for p in leftover if p.id not in last_round_players]
    if not candidates:
        return None

    incoming = min(candidates, key=lambda p: p.match_count or 0)

    for match_index, (team1, team2) in enumerate(formed_matches):
        for side, roster in ((TEAM1, team1), (TEAM2, team2)):
            for slot, player in enumerate(roster):
                if player.id in last_round_players:
                    return SwapDecision(
                        incoming_id=incoming.id,
                        outgoing_id=player.id,
                        match_index=match_index,
                        side=side,
                        slot=slot,
                    )

    return None


def apply_rotation_swap(
    decision: SwapDecision,
    leftover: MutableSequence,
    formed_matches: Sequence[FormedMatch]
):
    """Apply a swap in place: the outgoing player joins ``leftover``."""
    team1, team2 = formed_matches[decision.match_index]
    roster = team1 if decision.side == TEAM1 else team2

    outgoing = roster[decision.slot]
    incoming_index = next(i for i, p in enumerate(leftover) if p.id == decision.incoming_id)
    incoming = leftover[incoming_index]

    roster[decision.slot] = incoming
    del leftover[incoming_index]
    leftover.append(outgoing)


def rotate_leftovers(
    last_round_players: AbstractSet[str],
    leftover: MutableSequence,
    formed_matches: Sequence[FormedMatch]
) -> List[SwapDecision]:
    """
    Swap in every leftover player who sat out last round, while possible.

    Each swap moves one player who sat out into a match and one player who
    played into ``leftover``, so the loop ends after at most
    ``len(leftover)`` swaps.

    Returns:
        The swaps applied, in order
    """
    applied = []
    while True:
        decision = decide_rotation_swap(last_round_players, leftover, formed_matches)
        if decision is None:
            return applied
        apply_rotation_swap(decision, leftover, formed_matches)
        applied.append(decision)
