"""
Ask a question about the NDPA from the command line.

Runs the retrieve-and-explain workflow: finds the best-matching section,
prints it, then streams the model's explanation to stdout.

Usage:
    python ask_ndpa.py "What does Part II Section 5 say?"
    python ask_ndpa.py --search-only "Can a data controller share my data?"
"""

import sys
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv()

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    from execution.ndpa_rag.api import ServiceContainer
    from execution.ndpa_rag.errors import LoadError
    from execution.ndpa_rag.workflow import run_workflow

    arg_parser = argparse.ArgumentParser(description="Ask a question about the NDPA")
    arg_parser.add_argument("question", type=str, help="Question about the NDPA")
    arg_parser.add_argument(
        "--search-only",
        action="store_true",
        help="Only print the matched section, skip the LLM explanation",
    )
    args = arg_parser.parse_args()

    container = ServiceContainer()
    try:
        tool = container.get_tool()
    except LoadError as e:
        logger.error(f"Cannot load the structured NDPA: {e}")
        sys.exit(1)

    section = tool.execute({"question": args.question})
    print(f"Part: {section.part}")
    print(f"Section: {section.section_number}")
    print(f"\n{section.summary}\n")

    if args.search_only:
        return

    agent = container.get_agent_registry().get("ndpaAgent")
    run_workflow(tool, agent, args.question)
    print()


if __name__ == "__main__":
    main()
