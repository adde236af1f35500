# shell.py
"""Command-line entry point for the rink unit calculator.

Usage:
    rink                       # interactive shell (or reads piped stdin)
    rink "10 km -> mile"       # evaluate expressions and exit
    rink -f exprs.txt          # evaluate a file line by line ('-' = stdin)
    rink --config-path         # show where the config file is read from
"""
import argparse
import sys

from repl import StartupError, interactive, noninteractive
from rink_config import ConfigError, config_path, load_config
from unit_engine import EvalError, LoadError, load, one_line


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='rink', description='Unit-aware calculator shell.')
    p.add_argument('exprs', nargs='*', metavar='EXPR', help='expressions to evaluate')
    p.add_argument('-f', '--file', help="evaluate each line of FILE ('-' for stdin)")
    p.add_argument('--config', help='config file to use instead of the default')
    p.add_argument('--config-path', action='store_true', help='print the default config file path and exit')
    return p


def run_exprs(exprs, config) -> None:
    ctx = load(config)
    for expr in exprs:
        try:
            print(one_line(ctx, expr))
        except EvalError as e:
            print(e)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.config_path:
        print(config_path() or '(no config directory on this system)')
        return 0

    try:
        config = load_config(args.config)
        if args.exprs:
            run_exprs(args.exprs, config)
        elif args.file == '-':
            noninteractive(sys.stdin, config, show_prompt=False)
        elif args.file:
            with open(args.file, 'r', encoding='utf-8') as f:
                noninteractive(f, config, show_prompt=False)
        elif sys.stdin.isatty():
            return interactive(config)
        else:
            noninteractive(sys.stdin, config, show_prompt=False)
    except (ConfigError, LoadError, StartupError, OSError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
