"""
Main entry point for the AI Text Improver application.
"""

import argparse
import asyncio
import logging
import sys

from ai_text_improver.config import get_settings
from ai_text_improver.io.text_interface import TextInterface
from ai_text_improver.models.schemas import Provider, WritingStyle
from ai_text_improver.orchestrator.improver_session import ImproverSession
from ai_text_improver.updates.update_checker import UpdateChecker
from ai_text_improver.voice.player import CommandAudioPlayer


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ai-text-improver")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=None,
        help="Text improvement provider (defaults to DEFAULT_PROVIDER)",
    )
    parser.add_argument(
        "--style",
        choices=[s.value for s in WritingStyle],
        default=None,
        help="Writing style (defaults to DEFAULT_STYLE)",
    )
    parser.add_argument(
        "--no-update-check",
        action="store_true",
        help="Skip the release feed check at startup",
    )
    return parser


async def run_session(argv: list[str] | None = None) -> None:
    """
    Run an interactive improve/speak session.

    This is the main async entry point that initializes all components
    and runs the REPL.
    """
    settings = get_settings()
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    logger.info("Initializing AI Text Improver...")

    session = ImproverSession.from_settings(settings)
    if args.provider:
        session.state.set_provider(Provider(args.provider))
    if args.style:
        session.state.set_style(WritingStyle(args.style))

    player = CommandAudioPlayer(player_bin=settings.player_bin)
    available, reason = player.is_available()
    if not available:
        logger.warning(f"Audio playback disabled: {reason}")

    update_checker = None if args.no_update_check else UpdateChecker()

    interface = TextInterface(
        session,
        player=player if available else None,
        update_checker=update_checker,
    )
    await interface.run()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run_session(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nSession terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
