"""
Program Coach — Entry Point.

Single entry point: `python main.py` serves the LINE webhook.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from coachbot.bot.line_webhook import main

if __name__ == "__main__":
    main()
