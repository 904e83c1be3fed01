#!/usr/bin/env python3
"""
Command-line admin for CS2 shuffle tournaments.

Usage:
    python scripts/shuffle.py <command> [options]

Examples:
    # Load players (JSON list of {"id", "name", "elo", "avatar_url"})
    python scripts/shuffle.py import-players players.json

    # Create a three-round 5v5 tournament
    python scripts/shuffle.py create --name "Friday Shuffle" --maps de_mirage de_inferno de_nuke

    # Register players and start
    python scripts/shuffle.py register 1 --all
    python scripts/shuffle.py advance 1

    # Report a result, then advance when the round is done
    python scripts/shuffle.py result 1 shuffle-r1-m1 team1
    python scripts/shuffle.py advance 1

    # Show standings
    python scripts/shuffle.py standings 1
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cs2shuffle.config import get_settings
from cs2shuffle.exceptions import ShuffleError
from cs2shuffle.tournament.display import (
    format_balance_report,
    format_round_result,
    format_standings,
    format_tournament_header,
)
from cs2shuffle.tournament.models import ShuffleTournamentConfig
from cs2shuffle.tournament.service import ShuffleTournamentService
from cs2shuffle.utils.constants import OVERTIME_MODES, ROUND_LIMIT_TYPES


def parse_args(argv=None):
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description='Manage CS2 shuffle tournaments.',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--data-dir',
        type=str, default=settings.data_dir,
        help=f'Directory holding the database (default: {settings.data_dir})'
    )
    parser.add_argument(
        '--log-level',
        type=str, default=settings.log_level,
        help=f'Logging level (default: {settings.log_level})'
    )

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('import-players', help='Create or update players from a JSON file')
    p.add_argument('file', type=str, help='JSON list of players')

    p = sub.add_parser('create', help='Create a shuffle tournament (replaces the current one)')
    p.add_argument('--name', required=True)
    p.add_argument('--maps', nargs='+', required=True, help='One map per round, in order')
    p.add_argument('--team-size', type=int, default=settings.default_team_size)
    p.add_argument('--round-limit', choices=ROUND_LIMIT_TYPES, default=ROUND_LIMIT_TYPES[0])
    p.add_argument('--max-rounds', type=int, default=None)
    p.add_argument('--overtime', choices=OVERTIME_MODES, default=OVERTIME_MODES[0])
    p.add_argument('--rating-template', default=None,
                   help='Rating template id for stat-based ELO adjustments')
    p.add_argument('--keep-existing', action='store_true',
                   help='Do not delete earlier shuffle tournaments')

    p = sub.add_parser('register', help='Register players')
    p.add_argument('tournament_id', type=int)
    p.add_argument('player_ids', nargs='*')
    p.add_argument('--all', action='store_true', help='Register every known player')

    p = sub.add_parser('generate', help='Generate a specific round')
    p.add_argument('tournament_id', type=int)
    p.add_argument('round', type=int)

    p = sub.add_parser('advance', help='Advance if the current round is complete')
    p.add_argument('tournament_id', type=int)

    p = sub.add_parser('result', help='Record a match winner')
    p.add_argument('tournament_id', type=int)
    p.add_argument('match_slug')
    p.add_argument('winner', choices=['team1', 'team2'])
    p.add_argument('--stats', type=str, default=None,
                   help='JSON file: {steam_id: {"adr": .., "kills": .., ...}}')

    p = sub.add_parser('standings', help='Show leaderboard and round progress')
    p.add_argument('tournament_id', type=int)

    p = sub.add_parser('balance', help='Preview balanced teams for players')
    p.add_argument('player_ids', nargs='*')
    p.add_argument('--team-size', type=int, default=settings.default_team_size)
    p.add_argument('--all', action='store_true', help='Balance every known player')

    p = sub.add_parser('templates', help='List rating templates')
    p.add_argument('--create', type=str, default=None, metavar='FILE',
                   help='JSON file describing a template to create first')

    return parser.parse_args(argv)


def run_command(args, service: ShuffleTournamentService) -> int:
    if args.command == 'import-players':
        with open(args.file) as f:
            players = json.load(f)
        records = service.import_players(players)
        print(f"Imported {len(records)} player(s)")

    elif args.command == 'create':
        kwargs = {}
        if args.max_rounds is not None:
            kwargs['max_rounds'] = args.max_rounds
        config = ShuffleTournamentConfig(
            name=args.name,
            map_sequence=args.maps,
            team_size=args.team_size,
            round_limit_type=args.round_limit,
            overtime_mode=args.overtime,
            rating_template_id=args.rating_template,
            **kwargs
        )
        tournament = service.create_shuffle_tournament(config, replace_existing=not args.keep_existing)
        print(format_tournament_header(tournament))

    elif args.command == 'register':
        ids = args.player_ids
        if args.all:
            ids = [p.id for p in service.directory.list_players()]
        result = service.register_players(args.tournament_id, ids)
        print(f"Registered: {result.registered_count}, errors: {result.error_count}")
        for outcome in result.errors:
            print(f"  {outcome.player_id}: {outcome.error}")

    elif args.command == 'generate':
        result = service.generate_round_matches(args.tournament_id, args.round)
        print(format_round_result(result))

    elif args.command == 'advance':
        outcome = service.advance_to_next_round(args.tournament_id)
        if outcome is None:
            print("Current round is not complete; nothing to do.")
        elif outcome.tournament_complete:
            print(f"Tournament completed after round {outcome.round_number}.")
        else:
            print(format_round_result(outcome.round_result))

    elif args.command == 'result':
        stats = None
        if args.stats:
            with open(args.stats) as f:
                stats = json.load(f)
        updates = service.record_match_result(args.tournament_id, args.match_slug, args.winner, stats)
        for u in updates:
            sign = "+" if u.elo_change >= 0 else ""
            extra = f", stats {u.stat_adjustment:+d}" if u.template_id else ""
            print(f"{u.player_id}: {u.elo_before} -> {u.elo_after} ({sign}{u.elo_change}{extra})")

    elif args.command == 'standings':
        print(format_standings(service.get_tournament_standings(args.tournament_id)))

    elif args.command == 'balance':
        ids = args.player_ids
        if args.all:
            ids = [p.id for p in service.directory.list_players()]
        print(format_balance_report(service.preview_balance(ids, args.team_size)))

    elif args.command == 'templates':
        if args.create:
            with open(args.create) as f:
                definition = json.load(f)
            name = definition.pop('name', '')
            if 'id' in definition:
                definition['template_id'] = definition.pop('id')
            service.create_rating_template(name, **definition)
        for t in service.list_rating_templates():
            state = "enabled" if t.enabled else "disabled"
            weights = ", ".join(f"{k}={v}" for k, v in t.weights.items()) or "none"
            print(f"{t.id} ({state}): {t.name} [{weights}]")

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings = get_settings()
    settings = settings.model_copy(update={'data_dir': args.data_dir})
    service = ShuffleTournamentService.from_settings(settings)

    try:
        return run_command(args, service)
    except ShuffleError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
