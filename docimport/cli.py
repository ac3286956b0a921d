"""CLI entrypoint for the import pipeline."""

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
import os
import sys
import warnings
from pathlib import Path

from docimport.core.config import API_KEY_ENV_VAR, LLM_PROVIDER, MimeTypes

# Suppress LiteLLM's direct prints (must be before import)
os.environ["LITELLM_LOG"] = "ERROR"

warnings.filterwarnings("ignore", message="Pydantic serializer warnings")
warnings.filterwarnings("ignore", message="Unclosed client session")
warnings.filterwarnings("ignore", category=ResourceWarning)

for logger_name in ["httpx", "httpcore", "litellm", "LiteLLM", "aiohttp", "asyncio"]:
    logging.getLogger(logger_name).setLevel(logging.ERROR)

from dotenv import load_dotenv  # noqa: E402 - must be after logging config

load_dotenv()

from docimport.core.cost_tracker import CostTracker  # noqa: E402
from docimport.core.credits import InMemoryCreditLedger  # noqa: E402
from docimport.core.import_logger import get_logger  # noqa: E402
from docimport.core.llm_client import LLMClient  # noqa: E402
from docimport.core.model_config import EnvironmentConfigSource  # noqa: E402
from docimport.core.progress import CallbackProgressSink  # noqa: E402
from docimport.pydantic_models import ImportFile, ImportOptions, ImportProgressEvent, ImportResult  # noqa: E402
from docimport.services import (  # noqa: E402
    BodyMeasurementsImportStrategy,
    CatalogExercise,
    InMemoryExerciseCatalog,
    InMemoryMeasurementRepository,
    InMemoryProgramRepository,
    WorkoutImportStrategy,
)
from docimport.workflow import ImportStrategy, create_import_workflow  # noqa: E402

DOMAINS = ("body", "workout")

# Spreadsheet types mimetypes may not know on every platform
_EXTRA_TYPES = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".ods": "application/vnd.oasis.opendocument.spreadsheet",
    ".csv": MimeTypes.CSV,
    ".heic": "image/heic",
}


def guess_media_type(path: Path) -> str:
    media_type = _EXTRA_TYPES.get(path.suffix.lower())
    if media_type:
        return media_type
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or MimeTypes.OCTET_STREAM


def load_files(paths: list[str]) -> list[ImportFile]:
    """Read files from disk into ImportFile payloads.

    Raises:
        FileNotFoundError: If a path does not exist.
    """
    files = []
    for raw_path in paths:
        path = Path(raw_path)
        data = path.read_bytes()
        files.append(
            ImportFile(
                name=path.name,
                media_type=guess_media_type(path),
                content=base64.b64encode(data).decode("ascii"),
                size=len(data),
            )
        )
    return files


def load_catalog(path: str | None) -> InMemoryExerciseCatalog:
    """Load an exercise catalog from a JSON list of {id, name, aliases}."""
    if not path:
        return InMemoryExerciseCatalog([])
    with open(path, encoding="utf-8") as f:
        entries = json.load(f)
    return InMemoryExerciseCatalog([
        CatalogExercise(id=str(e["id"]), name=e["name"], aliases=tuple(e.get("aliases", ())))
        for e in entries
    ])


def build_strategy(domain: str, catalog_path: str | None = None) -> ImportStrategy:
    if domain == "body":
        return BodyMeasurementsImportStrategy(InMemoryMeasurementRepository())
    if domain == "workout":
        return WorkoutImportStrategy(load_catalog(catalog_path), InMemoryProgramRepository())
    raise ValueError(f"Unknown domain: {domain}")


def print_progress(event: ImportProgressEvent):
    pct = f"{event.progress * 100:3.0f}%" if event.progress is not None else "    "
    print(f"[{pct}] {event.step.value}: {event.message}", file=sys.stderr)


async def run_import(
    paths: list[str],
    user_id: str = "cli-user",
    domain: str = "body",
    credits: int = 10,
    options: ImportOptions | None = None,
    catalog_path: str | None = None,
    verbose: bool = False,
    log_dir: str | None = None,
) -> ImportResult | None:
    """Run one import from the command line.

    Returns:
        The import result, or None if the inputs could not be read.
    """
    try:
        strategy = build_strategy(domain, catalog_path)
        files = load_files(paths)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: cannot read input: {e}", file=sys.stderr)
        return None

    get_logger(strategy.name, verbose=verbose, log_dir=log_dir)

    if not os.environ.get(API_KEY_ENV_VAR):
        print(f"Warning: {API_KEY_ENV_VAR} not set for provider '{LLM_PROVIDER}'", file=sys.stderr)

    cost_tracker = CostTracker()
    ledger = InMemoryCreditLedger(balances={user_id: credits})
    workflow = create_import_workflow(
        strategy,
        user_id,
        config_source=EnvironmentConfigSource(),
        ledger=ledger,
        client=LLMClient(cost_tracker=cost_tracker),
        progress=CallbackProgressSink(print_progress),
    )

    result = await workflow.run(files, user_id, options)

    print(f"Credits left: {ledger.balance(user_id)}", file=sys.stderr)
    if cost_tracker.call_count > 0:
        print(cost_tracker.summary(), file=sys.stderr)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docimport",
        description="AI-assisted document import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  docimport inbody_march.pdf --credits 5
  docimport program.xlsx --domain workout --catalog exercises.json --mode review
  docimport notes.jpg --locale it -o result.json
        """,
    )
    parser.add_argument("files", nargs="+", help="Files to import (only the first is parsed)")
    parser.add_argument("-d", "--domain", choices=DOMAINS, default="body", help="Import domain (default: body)")
    parser.add_argument("-u", "--user", default="cli-user", help="User id (default: cli-user)")
    parser.add_argument("--credits", type=int, default=10, help="Starting credit balance (default: 10)")
    parser.add_argument("--locale", default="en", help="Locale for prompts and matching (default: en)")
    parser.add_argument("--mode", choices=("auto", "review"), default="auto", help="Import mode (default: auto)")
    parser.add_argument(
        "--match-threshold",
        type=float,
        default=0.8,
        help="Minimum exercise match score between 0 and 1 (default: 0.8)",
    )
    parser.add_argument(
        "--no-progressions",
        action="store_true",
        help="Drop week-to-week progression notes (workout domain)",
    )
    parser.add_argument("--catalog", default=None, help="Exercise catalog JSON (workout domain)")
    parser.add_argument("-o", "--output", default=None, help="Write the JSON result to this file")
    parser.add_argument("--log-dir", default=None, help="Directory for per-import log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output with DEBUG level logging")
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not 0.0 <= args.match_threshold <= 1.0:
        parser.error("--match-threshold must be between 0 and 1")

    options = ImportOptions(
        mode=args.mode,
        locale=args.locale,
        match_threshold=args.match_threshold,
        preserve_progressions=not args.no_progressions,
    )

    result = asyncio.run(run_import(
        paths=args.files,
        user_id=args.user,
        domain=args.domain,
        credits=args.credits,
        options=options,
        catalog_path=args.catalog,
        verbose=args.verbose,
        log_dir=args.log_dir,
    ))

    if result is None:
        sys.exit(1)

    output = result.model_dump_json(indent=2)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"[OUTPUT] {args.output}", file=sys.stderr)
    else:
        print(output)

    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
