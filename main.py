import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional

from tqdm.contrib.logging import logging_redirect_tqdm

from config.settings import TranslationConfig
from config.constants import RATE_LIMIT_DELAY
from manager import RunState, TranslationManager
from translators import GeminiTranslatorService
from utils.control import RunControl, TqdmObserver
from utils.errors import BackupError, ConfigError, TableFormatError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ABORTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Batch translate a tab-delimited dialogue table with Gemini")
    parser.add_argument("-i", "--input_file", required=True, help="Path to the tab-delimited table (translated in place)")
    parser.add_argument("-s", "--source_lang", required=True, help="Source language name (e.g., 'German')")
    parser.add_argument("-t", "--target_lang", required=True, help="Target language name (e.g., 'English')")
    parser.add_argument("--source_header", required=True, help="Column holding the source text (e.g., 'DE')")
    parser.add_argument("--target_header", required=True, help="Column receiving the translation (e.g., 'EN')")
    parser.add_argument("-k", "--api_key", help="Gemini API key. Defaults to $GEMINI_API_KEY")
    parser.add_argument("-m", "--model", default="gemini-2.5-flash", help="Model name (default: gemini-2.5-flash)")
    parser.add_argument("--output_tokens", type=int, default=65_536, help="Output token limit per request (default: 65536)")
    parser.add_argument("--token_factor", type=float, default=0.5, help="Estimated tokens per response character (default: 0.5)")
    parser.add_argument("--thinking_tokens", type=int, default=8_192, help="Thinking token budget, taken from the output limit (default: 8192)")
    parser.add_argument("-d", "--dictionary_file", help="Optional glossary text inserted into every prompt")
    parser.add_argument("--delay", type=float, default=RATE_LIMIT_DELAY, help=f"Seconds between requests (default: {RATE_LIMIT_DELAY})")
    parser.add_argument("--debug", action="store_true", help="Log prompts, raw responses and token usage")
    return parser


def config_from_args(args: argparse.Namespace) -> TranslationConfig:
    return TranslationConfig(
        input_file=args.input_file,
        api_key=args.api_key or os.environ.get("GEMINI_API_KEY", ""),
        model_name=args.model,
        output_tokens=args.output_tokens,
        token_factor=args.token_factor,
        thinking_tokens=args.thinking_tokens,
        source_language=args.source_lang,
        source_header=args.source_header,
        target_language=args.target_lang,
        target_header=args.target_header,
        dictionary_file=args.dictionary_file or None,
        rate_limit_delay=args.delay,
    )


def install_signal_handlers(control: RunControl):
    """First Ctrl+C stops after the current batch and saves, the second aborts."""
    loop = asyncio.get_running_loop()

    def on_interrupt():
        if control.stopping or control.aborting:
            logger.warning("Abort requested, changes will not be saved.")
            control.abort()
        else:
            logger.warning("Stop requested, finishing the current batch. Press Ctrl+C again to abort.")
            control.stop()

    try:
        loop.add_signal_handler(signal.SIGINT, on_interrupt)
    except (NotImplementedError, RuntimeError):
        # Windows event loops: Ctrl+C raises KeyboardInterrupt instead
        pass


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    config = config_from_args(args)
    try:
        config.validate()
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_ERROR

    control = RunControl()
    install_signal_handlers(control)

    translator = GeminiTranslatorService(
        api_key=config.api_key,
        model=config.model_name,
        thinking_tokens=config.thinking_tokens,
    )
    observer = TqdmObserver()
    manager = TranslationManager(config, translator, control=control, observer=observer)

    try:
        with logging_redirect_tqdm():
            result = await manager.process_file()
    except (ConfigError, TableFormatError, BackupError) as e:
        logger.error(str(e))
        return EXIT_ERROR
    except OSError as e:
        logger.error(f"Error reading input: {e}")
        return EXIT_ERROR
    finally:
        observer.close()

    if result.state is RunState.ABORTED:
        return EXIT_ABORTED
    if result.state is RunState.ERROR:
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user.")
        sys.exit(EXIT_ABORTED)
