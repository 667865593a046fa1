"""CLI Argument Parsing"""

import argparse
import argcomplete

from autocommit import __version__
from autocommit.config import VALID_BACKENDS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='commit',
        description='Generate a commit message with an LLM, then commit (and optionally push)',
        epilog='Example: commit -a --push'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')

    # Staging options
    staging = parser.add_mutually_exclusive_group()
    staging.add_argument('-a', '--add', dest='stage', action='store_const', const='all', help='Stage all changes, including untracked files')
    staging.add_argument('-u', '--tracked', dest='stage', action='store_const', const='tracked', help='Stage changes to tracked files only')
    staging.add_argument('--no-add', dest='stage', action='store_const', const='none', help='Commit only what is already staged')

    # LLM options
    parser.add_argument('-b', '--backend', type=str, choices=sorted(VALID_BACKENDS), help='LLM backend')
    parser.add_argument('-m', '--model', type=str, metavar='MODEL', help='Model name')
    parser.add_argument('--provider', type=str, metavar='NAME', help='Preferred upstream provider (OpenRouter)')
    parser.add_argument('--temperature', type=float, metavar='T', help='Sampling temperature (negative: backend default)')

    # Commit options
    parser.add_argument('-n', '--dry-run', action='store_true', help='Generate and print the message without committing')
    push = parser.add_mutually_exclusive_group()
    push.add_argument('-p', '--push', dest='push', action='store_true', default=None, help='Push after committing')
    push.add_argument('--no-push', dest='push', action='store_false', default=None, help='Do not push, even if auto_push is set')
    parser.add_argument('--time', action='store_true', help='Show model and timing information')

    # Info commands
    parser.add_argument('--stats', action='store_true', help='Summarize generation stats for all repositories')
    parser.add_argument('--repo-stats', action='store_true', help='Summarize generation stats for this repository')
    parser.add_argument('--models', action='store_true', help='List models offered by the backend')
    parser.add_argument('--balance', action='store_true', help='Show the backend credit balance')

    # Setup/config
    parser.add_argument('--setup', action='store_true', help='Configure defaults')
    parser.add_argument('--display-config', action='store_true', help='Show current configuration')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging')

    return parser


def parse_args(argv=None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
