"""
Cardsmith CLI - Command-line interface for the engine.

Usage:
    cardsmith games                         List predefined games
    cardsmith enrich <schema>               Print the enriched schema
    cardsmith validate <schema>             Validate a schema
    cardsmith emit-ir <schema>              Print the IR and its issues
    cardsmith simulate <schema> --bots 3    Play a bot-only game to the end

<schema> is a predefined game id or a path to a JSON schema document.
"""

import argparse
import json
import sys

from .config import EngineSettings, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Cardsmith - Schema-driven card game engine",
        prog="cardsmith",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("games", help="List predefined games")

    enrich_parser = subparsers.add_parser("enrich", help="Enrich a schema")
    enrich_parser.add_argument("schema", help="Game id or path to schema JSON")
    enrich_parser.add_argument("--output", "-o", help="Write the enriched schema here")

    validate_parser = subparsers.add_parser("validate", help="Validate a schema")
    validate_parser.add_argument("schema", help="Game id or path to schema JSON")

    ir_parser = subparsers.add_parser("emit-ir", help="Emit the IR for a schema")
    ir_parser.add_argument("schema", help="Game id or path to schema JSON")
    ir_parser.add_argument("--no-enrich", action="store_true", help="Skip the enrichment pipeline")

    simulate_parser = subparsers.add_parser("simulate", help="Play a bot-only game")
    simulate_parser.add_argument("schema", help="Game id or path to schema JSON")
    simulate_parser.add_argument("--bots", type=int, default=None, help="Number of bots (default: schema minimum)")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")
    simulate_parser.add_argument("--max-actions", type=int, default=500, help="Stop after this many moves")
    simulate_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the outcome")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "games":
        cmd_games(args)
    elif args.command == "enrich":
        cmd_enrich(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "emit-ir":
        cmd_emit_ir(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def load_rules(source):
    """A predefined game id, else a path to a camelCase JSON schema."""
    from pydantic import ValidationError
    from .games import get_game
    from .spec_schema import GameRules

    game = get_game(source)
    if game is not None:
        return game.rules()
    try:
        with open(source, "r", encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError:
        print(f"Error: No predefined game or file named {source}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {source} is not valid JSON: {e}")
        sys.exit(1)
    try:
        return GameRules.from_document(document)
    except ValidationError as e:
        print(f"Error: {source} is not a valid schema")
        print(e)
        sys.exit(1)


def cmd_games(args):
    """List predefined games."""
    from .games import list_games

    for game in list_games():
        marker = "*" if game.featured else " "
        print(f"{marker} {game.game_id:<22} {game.name:<22} {game.player_count:<12} {game.difficulty}")


def cmd_enrich(args):
    """Enrich a schema and print it."""
    from .enrichment import enrich_rules_with_report

    result = enrich_rules_with_report(load_rules(args.schema))
    text = json.dumps(result.rules.to_document(), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        print(text)
    print(f"\nApplied: {', '.join(result.applied) or 'nothing'}", file=sys.stderr)


def cmd_validate(args):
    """Validate a schema."""
    from .spec_schema import validate_rules

    rules = load_rules(args.schema)
    result = validate_rules(rules)
    print(f"{rules.name}: {'valid' if result.valid else 'INVALID'}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)


def cmd_emit_ir(args):
    """Emit the IR for a schema."""
    from .enrichment import enrich_rules
    from .ir import emit_ir, validate_ir

    rules = load_rules(args.schema)
    if not args.no_enrich:
        rules = enrich_rules(rules)
    emitted = emit_ir(rules)
    print(json.dumps(emitted.ir.to_dict(), indent=2))

    check = validate_ir(emitted.ir)
    for issue in emitted.issues:
        print(f"issue: {issue}", file=sys.stderr)
    for warning in check.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for error in check.errors:
        print(f"error: {error}", file=sys.stderr)
    if not check.valid:
        sys.exit(1)


def cmd_simulate(args):
    """Play a bot-only game and print the outcome."""
    from .engine_core.errors import EngineError
    from .session import SessionManager
    from .spec_schema import RulesValidationError

    rules = load_rules(args.schema)
    manager = SessionManager(settings=EngineSettings.headless())
    bots = args.bots if args.bots is not None else max(rules.players.min, 1)

    try:
        session = manager.create_session(rules, human_names=(), bot_count=bots, seed=args.seed)
    except RulesValidationError as e:
        print("Error: schema failed validation")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)
    except EngineError as e:
        print(f"Error: {e}")
        sys.exit(1)

    turn = session.loop.run_until_human(args.max_actions)
    if not args.quiet:
        for result in turn.results:
            mark = "ok " if result.success else "ERR"
            print(f"{mark} {result.player_id:<10} {result.action:<10} {result.message}")

    state = session.engine.get_game_state()
    print(f"\n{rules.name}: {len(turn.results)} action(s), round {state.round}")
    if state.winner:
        winner = state.get_player(state.winner)
        print(f"Winner: {winner.name if winner else state.winner}")
    else:
        print(f"No winner ({turn.loop_state.value})")
    for warning in turn.warnings:
        print(f"warning: {warning}")
    manager.end_session(session.session_id)


if __name__ == "__main__":
    main()
