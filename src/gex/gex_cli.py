#!/usr/bin/env python3
"""
GEX Command Line Interface

Utility for computing GEX profiles from the command line.
"""

import argparse
import sys

from src.gex.gex_service import build_service
from src.utils import get_logger, load_settings

logger = get_logger(__name__)


def _fmt(value, prefix='$', suffix=''):
    return f"{prefix}{value:,.2f}{suffix}" if value is not None else "n/a"


def print_strike_table(profile, limit: int):
    """Print strikes nearest to spot"""
    nearest = sorted(profile.strikes, key=lambda s: abs(s.strike - profile.spot_price))[:limit]

    print(f"{'Strike':>10} {'Call GEX':>12} {'Put GEX':>12} {'Net GEX':>12} {'OI':>10} {'Call IV':>8} {'Put IV':>8}")
    print(f"{'-'*78}")
    for s in sorted(nearest, key=lambda s: s.strike):
        print(f"{s.strike:>10.2f} {s.call_gex/1e6:>11.2f}M {s.put_gex/1e6:>11.2f}M "
              f"{s.net_exposure_millions:>+11.2f}M {s.total_oi:>10,} "
              f"{_fmt(s.call_iv, ''):>8} {_fmt(s.put_iv, ''):>8}")


def cmd_gex(args, service):
    """Calculate GEX for a symbol"""
    print(f"\n{'='*60}")
    print(f"Calculating GEX for {args.symbol.upper()}")
    print(f"{'='*60}\n")

    dates = args.dates.split(',') if args.dates else None
    profile = service.calculate_gex(args.symbol, dates)

    print(profile.summary())
    print()
    print_strike_table(profile, args.strikes)
    print(f"\n{'='*60}\n")


def cmd_zero_dte(args, service):
    """Calculate GEX for the nearest expiration"""
    report = service.calculate_zero_dte(args.symbol)

    print(f"\n{'='*60}")
    print(f"0DTE GEX: {report.profile.symbol} (Exp: {report.expiration_date})")
    print(f"{'='*60}\n")
    print(report.profile.summary())
    print(f"  Max Net GEX: {_fmt(report.max_gex.strike)} "
          f"({_fmt(report.max_gex.value and report.max_gex.value / 1e6, suffix='M')})")
    print(f"  Min Net GEX: {_fmt(report.min_gex.strike)} "
          f"({_fmt(report.min_gex.value and report.min_gex.value / 1e6, suffix='M')})")
    print(f"\n{'='*60}\n")


def cmd_history(args, service):
    """Show today's IV history"""
    history = service.get_iv_history(args.symbol, zero_dte=args.zero_dte)

    print(f"\n{'='*60}")
    print(f"IV HISTORY: {args.symbol.upper()}{' (0DTE)' if args.zero_dte else ''}")
    print(f"{'='*60}\n")

    if history:
        print(f"{'Time':<26} {'ATM IV':>8} {'Call Wall':>10} {'Put Wall':>10}")
        print(f"{'-'*58}")
        for record in history[-args.limit:]:
            print(f"{record.time:<26} {_fmt(record.atm_iv, ''):>8} "
                  f"{_fmt(record.call_wall_iv, ''):>10} {_fmt(record.put_wall_iv, ''):>10}")
    else:
        print("No history recorded today")

    print(f"\n{'='*60}\n")


def cmd_expirations(args, service):
    """List expiration dates"""
    dates = service.get_expirations(args.symbol)

    print(f"\nExpirations for {args.symbol.upper()}:")
    for d in dates:
        print(f"  {d}")
    print()


def cmd_serve(args, service):
    """Run the HTTP API"""
    from src.api import create_app

    app = create_app(service)
    app.run(host=args.host, port=args.port, debug=False, threaded=True)


def build_parser(default_port: int = 8081) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='GEX Analysis Command Line Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s gex SPY
  %(prog)s gex NVDA --dates 2026-02-20,2026-02-27
  %(prog)s zero-dte SPY
  %(prog)s history SPY --zero-dte
  %(prog)s expirations QQQ
  %(prog)s serve --port 8081
        '''
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    gex_parser = subparsers.add_parser('gex', help='Calculate GEX profile')
    gex_parser.add_argument('symbol', help='Symbol to calculate')
    gex_parser.add_argument('--dates', help='Comma separated expirations (YYYY-MM-DD)')
    gex_parser.add_argument('--strikes', type=int, default=15,
                            help='Strikes around spot to print (default: 15)')
    gex_parser.set_defaults(func=cmd_gex)

    zero_parser = subparsers.add_parser('zero-dte', help='Calculate GEX for the nearest expiration')
    zero_parser.add_argument('symbol', help='Symbol to calculate')
    zero_parser.set_defaults(func=cmd_zero_dte)

    history_parser = subparsers.add_parser('history', help="Show today's IV history")
    history_parser.add_argument('symbol', help='Symbol to query')
    history_parser.add_argument('--zero-dte', action='store_true', help='Show the 0DTE history')
    history_parser.add_argument('--limit', type=int, default=20,
                                help='Records to show (default: 20)')
    history_parser.set_defaults(func=cmd_history)

    exp_parser = subparsers.add_parser('expirations', help='List expiration dates')
    exp_parser.add_argument('symbol', help='Symbol to query')
    exp_parser.set_defaults(func=cmd_expirations)

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default='0.0.0.0')
    serve_parser.add_argument('--port', type=int, default=default_port)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None, service=None):
    settings = load_settings()
    parser = build_parser(settings.api_port)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args, service or build_service(settings))
    except Exception as e:
        print(f"\n❌ Error: {e}\n")
        logger.error(f"Command failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
