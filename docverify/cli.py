"""Command-line interface for document verification.

Provides subcommands for verifying an agency's business documents with
cross-referencing, quickly scanning a single business document, and
processing a single onboarding image.
"""

import argparse
import base64
import json
import mimetypes
import sys
from pathlib import Path

from docverify.components import build_components
from docverify.onboarding.document_types import DocumentCategory
from docverify.utils.config import AppConfig, load_config
from docverify.utils.exceptions import DocverifyError
from docverify.utils.logger import get_logger, setup_logging
from docverify.validation.cross_reference import AgencyDocument
from docverify.validation.verifier import result_to_dict, scan_to_dict

logger = get_logger(__name__)


def _guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/pdf"


def verify_documents(
    files: list[Path],
    agency_name: str,
    doc_types: list[str] | None = None,
    config: AppConfig | None = None,
) -> dict[str, object]:
    """Verify a set of documents for one agency.

    Args:
        files: Document files, in display order.
        agency_name: Name the agency registered under.
        doc_types: Declared type per file; ``"unknown"`` when omitted.
        config: Application config. Loaded from YAML if omitted.

    Returns:
        JSON-ready aggregate result.
    """
    components = build_components(config)
    documents = [
        AgencyDocument(
            content=path.read_bytes(),
            mime_type=_guess_mime_type(path),
            type=doc_types[i] if doc_types else "unknown",
        )
        for i, path in enumerate(files)
    ]
    aggregate = components.cross_reference.verify_agency_documents(
        documents, agency_name
    )
    return {
        "overall_status": aggregate.overall_status.value,
        "documents": [
            {"filename": path.name, **result_to_dict(result)}
            for path, result in zip(files, aggregate.documents)
        ],
        "cross_reference_issues": aggregate.cross_reference_issues,
        "summary": aggregate.summary,
    }


def scan_document(
    file_path: Path, config: AppConfig | None = None
) -> dict[str, object]:
    """Quickly identify a single business document file."""
    components = build_components(config)
    scan = components.verifier.scan(
        file_path.read_bytes(), _guess_mime_type(file_path)
    )
    return {"filename": file_path.name, **scan_to_dict(scan)}


def process_onboarding_image(
    file_path: Path,
    hint_type: str | None = None,
    config: AppConfig | None = None,
) -> dict[str, object]:
    """Classify and extract a single onboarding image.

    Returns:
        JSON-ready processing result.
    """
    components = build_components(config)
    image_base64 = base64.b64encode(file_path.read_bytes()).decode("ascii")
    processed = components.onboarding.process(image_base64, hint_type)
    return {
        "filename": file_path.name,
        "document_type": processed.classification.document_type,
        "classification_confidence": processed.classification.confidence,
        "extraction_success": processed.extraction.success,
        "extracted_data": processed.extraction.extracted_data,
        "error": processed.extraction.error,
        "points": processed.points,
        "can_auto_verify": processed.decision.can_auto_verify,
        "reason": processed.decision.reason,
        "action": processed.action.value,
    }


def _emit(result: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(result, indent=2, default=str)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Business and onboarding document verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML config file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    verify_parser = subparsers.add_parser(
        "verify", help="Verify and cross-reference an agency's documents"
    )
    verify_parser.add_argument("files", type=Path, nargs="+", help="Document files")
    verify_parser.add_argument(
        "-a", "--agency", required=True, help="Agency name to match against"
    )
    verify_parser.add_argument(
        "-t",
        "--type",
        action="append",
        dest="doc_types",
        help="Declared document type, once per file in order",
    )
    verify_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    onboard_parser = subparsers.add_parser(
        "onboard", help="Classify and extract an onboarding document image"
    )
    onboard_parser.add_argument("file", type=Path, help="Image file to process")
    onboard_parser.add_argument(
        "--hint",
        choices=[c.value for c in DocumentCategory],
        help="Skip classification and treat the image as this type",
    )
    onboard_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    scan_parser = subparsers.add_parser(
        "scan", help="Quickly identify a single business document"
    )
    scan_parser.add_argument("file", type=Path, help="Document file to scan")
    scan_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(args.log_level or config.log_level)

    try:
        if args.command == "verify":
            missing = [f for f in args.files if not f.exists()]
            if missing:
                print(f"Error: {missing[0]} does not exist", file=sys.stderr)
                sys.exit(1)
            if args.doc_types and len(args.doc_types) != len(args.files):
                print(
                    "Error: pass --type once per file or not at all",
                    file=sys.stderr,
                )
                sys.exit(1)
            result = verify_documents(args.files, args.agency, args.doc_types, config)
        else:
            if not args.file.exists():
                print(f"Error: {args.file} does not exist", file=sys.stderr)
                sys.exit(1)
            if args.command == "onboard":
                result = process_onboarding_image(args.file, args.hint, config)
            else:
                result = scan_document(args.file, config)
        _emit(result, args.output)
    except DocverifyError as exc:
        logger.error("Command failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
