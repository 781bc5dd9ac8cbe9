"""Entry point for quickmath CLI client."""

import argparse
import logging
import sys

from cli.api_client import QuickMathAPIClient
from cli.console import ConsoleUI
from cli.speech import create_narrator

# Seconds to let queued narration finish on exit
NARRATION_DRAIN_TIMEOUT = 10


def main():
    parser = argparse.ArgumentParser(description='QuickMath - arithmetic practice')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--user',
        default=None,
        help='User name (prompted when omitted)'
    )
    parser.add_argument(
        '--no-voice',
        action='store_true',
        help='Disable spoken narration'
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    client = QuickMathAPIClient(base_url=args.server)
    narrator = create_narrator(client, enabled=not args.no_voice)
    ui = ConsoleUI(client, narrator, user=args.user)

    try:
        ui.run()
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)
    finally:
        narrator.close(timeout=NARRATION_DRAIN_TIMEOUT)


if __name__ == '__main__':
    main()
