"""
Structure the raw NDPA text into parts and sections.

Reads the plain-text Act and writes the JSON the agent's DocumentIndex loads
at startup. The output is validated with the same loader the service uses.

Usage:
    python structure_ndpa.py
    python structure_ndpa.py --input ndpa.txt --output ndpa_structured.json
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
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    from execution.ndpa_rag.config import AgentConfig
    from execution.ndpa_rag.document_index import load_document
    from execution.ndpa_rag.errors import LoadError
    from execution.ndpa_rag.structurer import structure_file

    config = AgentConfig.from_env()

    arg_parser = argparse.ArgumentParser(description="Structure the NDPA text into parts and sections")
    arg_parser.add_argument(
        "--input",
        type=str,
        default="ndpa.txt",
        help="Plain-text NDPA (default: ndpa.txt)",
    )
    arg_parser.add_argument(
        "--output",
        type=str,
        default=config.document_path,
        help=f"Structured JSON output (default: {config.document_path})",
    )
    args = arg_parser.parse_args()

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {input_path}")
        sys.exit(1)

    parts = structure_file(input_path, args.output)

    try:
        document = load_document(parts)
    except LoadError as e:
        logger.error(f"Structured output failed validation: {e}")
        sys.exit(1)

    logger.info(f"NDPA structured into {len(document.parts)} parts and {document.section_count} sections")


if __name__ == "__main__":
    main()
