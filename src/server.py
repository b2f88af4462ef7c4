"""Protean Engine runner for the Picking domain.

Starts an Engine that processes messages asynchronously:
- OutboxProcessor: publishes buffered session events to the broker
- StreamSubscriptions: invokes the session board projector and the
  Task Execution event handler

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse

from protean.server.engine import Engine


def _get_domain():
    from picking.domain import picking

    picking.init()
    return picking


def main():
    parser = argparse.ArgumentParser(description="Pick Execution Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    engine = Engine(_get_domain(), test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
