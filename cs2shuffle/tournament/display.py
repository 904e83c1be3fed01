"""
Display formatting for shuffle tournaments.

Provides ASCII-formatted leaderboards, round summaries and balance reports
for terminal output.
"""

from typing import List

from cs2shuffle.tournament.balancer import BalanceResult
from cs2shuffle.tournament.models import RoundStatus, ShuffleTournament
from cs2shuffle.tournament.scheduler import RoundResult
from cs2shuffle.tournament.standings import LeaderboardEntry, TournamentStandings


def short_name(name: str, max_len: int = 20) -> str:
    if len(name) <= max_len:
        return name
    return name[:max_len-2] + ".."


def format_leaderboard(entries: List[LeaderboardEntry]) -> str:
    """
    Format the player leaderboard as an ASCII table.

    Args:
        entries: Leaderboard in ranked order

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append("=== LEADERBOARD ===")
    lines.append("")

    # Header
    lines.append(f"{'Rank':<6}{'Player':<22}{'ELO':<14}{'W-L':<8}{'Win%':<8}{'ADR':<8}")
    lines.append("-" * 66)

    # Rows
    for i, entry in enumerate(entries, 1):
        wl = f"{entry.wins}-{entry.losses}"
        win_pct = f"{entry.win_rate:.1%}"
        elo_str = f"{entry.current_elo}"
        if entry.elo_change != 0:
            sign = "+" if entry.elo_change > 0 else ""
            elo_str = f"{entry.current_elo} ({sign}{entry.elo_change})"
        adr = f"{entry.average_adr:.1f}" if entry.average_adr is not None else "-"

        lines.append(f"{i:<6}{short_name(entry.name):<22}{elo_str:<14}{wl:<8}{win_pct:<8}{adr:<8}")

    return "\n".join(lines)


def format_round_status(status: RoundStatus) -> str:
    """Format one line of round progress."""
    state = "complete" if status.is_complete else "in progress"
    map_part = f" on {status.map_name}" if status.map_name else ""
    return (f"Round {status.round_number}{map_part}: "
            f"{status.completed_matches}/{status.total_matches} matches completed, "
            f"{status.pending_matches} pending ({state})")


def format_round_result(result: RoundResult) -> str:
    """Format the matches and sit-outs of a freshly generated round."""
    lines = []
    lines.append(f"=== ROUND {result.round_number} ({result.map_name}) ===")
    lines.append("")

    for match, (team1, team2) in zip(result.matches, result.teams):
        side = match.config.get('map_sides', ['?'])[0]
        lines.append(f"{match.slug}  [{side}]")
        lines.append(f"  {team1.tag}: {', '.join(p.name for p in team1.players)}")
        lines.append(f"  {team2.tag}: {', '.join(p.name for p in team2.players)}")

    if result.sit_outs:
        lines.append("")
        lines.append(f"Sitting out: {', '.join(p.name for p in result.sit_outs)}")

    return "\n".join(lines)


def format_balance_report(result: BalanceResult) -> str:
    """Format team compositions and balance quality metrics."""
    lines = []
    lines.append("=== BALANCED TEAMS ===")
    lines.append("")

    for i, team in enumerate(result.teams, 1):
        lines.append(f"Team {i} (avg ELO {team.average_skill:.0f}, avg ordinal {team.average_ordinal:.2f})")
        for member in team.members:
            lines.append(f"  {short_name(member.player.name):<22}{member.skill:<8}{member.ordinal:.2f}")

    if result.unassigned:
        lines.append("")
        lines.append(f"Unassigned: {', '.join(rp.player.name for rp in result.unassigned)}")

    q = result.quality
    lines.append("")
    lines.append(f"ELO variance: {q.skill_variance:.2f} (max difference {q.max_skill_difference:.1f})")
    lines.append(f"Ordinal variance: {q.ordinal_variance:.4f} (max difference {q.max_ordinal_difference:.3f})")
    lines.append(f"Swaps applied: {result.swaps_applied} "
                 f"(variance before optimization {result.initial_ordinal_variance:.4f})")

    return "\n".join(lines)


def format_tournament_header(tournament: ShuffleTournament) -> str:
    """Format tournament header information."""
    lines = []
    lines.append(f"Tournament: {tournament.name} (#{tournament.id})")
    lines.append(f"Status: {tournament.status}")
    lines.append(f"Maps: {', '.join(tournament.map_sequence)}")
    lines.append(f"Team size: {tournament.team_size}")
    lines.append("")
    return "\n".join(lines)


def format_standings(standings: TournamentStandings) -> str:
    """Format the header, round progress and leaderboard together."""
    parts = [format_tournament_header(standings.tournament)]
    if standings.round_status:
        parts.append(format_round_status(standings.round_status)
                     + f" [round {standings.current_round} of {standings.total_rounds}]")
        parts.append("")
    else:
        parts.append(f"No rounds generated yet ({standings.total_rounds} planned)")
        parts.append("")
    parts.append(format_leaderboard(standings.leaderboard))
    return "\n".join(parts)
