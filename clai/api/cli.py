"""
Interactive terminal adapter for clai.

Architectural role:
- Parses command-line options and resolves the model client from environment.
- Delegates analysis to `clai.core.engine.analyze`.
- Renders the summary and links, then lets the user follow a link.

Request lifecycle (per analysis, CLI):
1. Take input from argv, or prompt for it (`-i` or no argument).
2. Run `analyze` with crawling unless `--no-crawl` was given.
3. Print summary and numbered links.
4. Read a link number; a valid choice starts the next analysis on that URL.

Input validation behavior:
- Empty input is re-prompted.
- Non-numeric or out-of-range link choices end the session.

Error handling strategy:
- Missing API key aborts startup with exit code 1.
- Model failures are printed and end the session without a traceback.
- EOF and keyboard interrupts terminate without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import os
import sys

from clai.core.engine import analyze
from clai.core.summary_types import SummaryOutput
from clai.llm.client import LLMClient, LLMError


EXIT_WORDS = ("exit", "quit")


# =========================================================
# UTF-8 SAFE OUTPUT
# Best-effort stdout encoding normalization for interactive terminals.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except Exception:
        pass


def configure_logging():
    """Configure root logging from `LOG_LEVEL` (default `WARNING`)."""
    level = os.getenv("LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="clai",
        description="AI-powered web scraping and summarization tool",
    )
    parser.add_argument("input", nargs="?", default=None, help="URL or search query to analyze")
    parser.add_argument("-i", "--interactive", action="store_true", help="Prompt for the input")
    parser.add_argument(
        "--no-crawl",
        action="store_true",
        help="Answer from model knowledge without fetching web content",
    )
    return parser


def prompt_for_input(default=None):
    """Ask for a URL or query until a non-empty value (or the default) is given."""
    suffix = f" [{default}]" if default else ""
    while True:
        value = input(f"Enter a URL or search query{suffix}: ").strip()
        if value:
            return value
        if default:
            return default


def render(result: SummaryOutput):
    print("\nSummary:\n")
    print(result.summary)

    print("\nSources:")
    for source in result.sources:
        print(f"  {source}")

    if result.links:
        print("\nExtracted Links:")
        for position, link in enumerate(result.links, start=1):
            print(f"  {position}. {link.name}: {link.url}")


def choose_link(result: SummaryOutput):
    """Return the URL of the chosen link, or `None` to stop."""
    if not result.links:
        return None

    choice = input("\nSelect a link to analyze (number, Enter to exit): ").strip()
    if not choice or choice.lower() in EXIT_WORDS or not choice.isdigit():
        return None

    position = int(choice)
    if not 1 <= position <= len(result.links):
        print("No link with that number.")
        return None
    return result.links[position - 1].url


def run_session(text, client, use_crawling=True):
    """Analyze `text` and keep following user-selected links.

    Returns:
        Process exit code.
    """
    while text:
        print("\nAnalyzing...\n")
        try:
            result = asyncio.run(analyze(text, client, use_crawling=use_crawling))
        except LLMError as e:
            print(f"Analysis failed: {e}")
            return 1

        render(result)
        print("\n" + "-" * 60)
        text = choose_link(result)

    return 0


# =========================================================
# MAIN
# =========================================================

def main(argv=None):
    """Entry point for the `clai` console script."""
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        client = LLMClient.from_env()
    except LLMError as e:
        print(f"{e}")
        return 1

    try:
        text = args.input
        if args.interactive or not text:
            text = prompt_for_input(default=text)
        return run_session(text, client, use_crawling=not args.no_crawl)

    except EOFError:
        print("\nInput closed.")
        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
