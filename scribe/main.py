"""Main entry point for scribe."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import NoReturn, Optional, Sequence

from . import __version__
from .config import get_default_config_path, load_config, merge_overrides
from .console import StatusPrinter
from .interrupt import KeypressListener
from .logging_setup import setup_logging
from .pipeline_manager import PipelineManager
from .session import Session

logger = logging.getLogger(__name__)

__all__ = ["run"]  # Export the run function


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Recording options left unset here fall back to the config file, then to
    the built-in defaults.
    """
    parser = argparse.ArgumentParser(
        prog="scribe",
        description="Record audio, transcribe it with Whisper and copy the text to the clipboard.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=get_default_config_path(),
        help="Path to configuration file (TOML format)",
    )
    parser.add_argument("--device", help="Audio input device")
    parser.add_argument("--duration", type=int, help="Recording duration in seconds")
    parser.add_argument("--volume", type=float, help="Audio volume multiplier")
    parser.add_argument(
        "--output-dir", type=Path, help="Directory to write the recording to"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Don't print status lines"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one record/transcribe/copy session.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = parse_args(argv)

    # Load configuration first
    try:
        config = merge_overrides(
            load_config(args.config),
            device=args.device,
            duration=args.duration,
            volume=args.volume,
            output_dir=args.output_dir,
        )
    except (ValueError, OSError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    # Setup logging
    try:
        log_file = config.log.computed_file
    except OSError as e:
        print(f"Warning: Could not create log directory: {e}", file=sys.stderr)
        log_file = None
    setup_logging(config.log.level, log_file, verbose=args.verbose)
    logger.info(
        f"Starting scribe session (device={config.device}, "
        f"duration={config.duration}s, volume={config.volume})"
    )

    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error: Could not create output directory: {e}", file=sys.stderr)
        return 1

    session = Session.create(config.output_dir)
    stop_event = asyncio.Event()
    keypress = KeypressListener(stop_event)

    status = None
    if not args.quiet:
        printer = StatusPrinter()
        session.state.add_observer(printer.on_state_change)
        printer.print_step("Starting audio recording...")
        status = printer.print_step

    manager = PipelineManager(config, session, stop_event, keypress, status=status)

    # Setup signal handlers; only the first one stops the recording
    def handle_signal(sig: int) -> None:
        sig_name = signal.Signals(sig).name
        if stop_event.is_set():
            logger.info(f"Received signal {sig_name}, stop already requested")
            return
        logger.info(f"Received signal {sig_name}, stopping recording...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))

    try:
        await manager.run()
    except Exception as e:
        logger.exception("Fatal error during session:")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        keypress.stop()

    if session.succeeded:
        logger.info(f"Recording kept at {session.audio_path}")
        return 0

    print(f"Error: {session.error}", file=sys.stderr)
    return 1


def run() -> NoReturn:
    """Entry point for the scribe command."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        # Fallback logger in case of early failure
        logging.basicConfig()
        logger.exception(f"scribe failed with unhandled exception: {e}")
        sys.exit(1)
