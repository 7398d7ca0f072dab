import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .core.constants import EXIT_BELOW_THRESHOLD, EXIT_FATAL, EXIT_OK


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cy2pw", description="cy2pw - Cypress to Playwright test migration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a Cypress project to Playwright")
    convert.add_argument("--source", required=True, help="Project root to convert")
    convert.add_argument("--output", required=True, help="Output root for converted files")
    convert.add_argument("--browsers", type=str, default=None, help="Comma-separated browsers (chromium,firefox,webkit)")
    convert.add_argument("--flatten", action="store_true", help="Write converted tests into a single directory")
    convert.add_argument("--skip-existing", action="store_true", help="Skip files whose output already exists")
    convert.add_argument("--batch-size", type=int, default=None, help="Files converted per batch")
    convert.add_argument("--parallel", action="store_true", help="Convert each batch on worker threads")
    convert.add_argument("--threshold", type=float, default=None, help="Minimum quality score (0-1)")
    convert.add_argument("--config", type=str, default=None, help="Settings YAML file")
    convert.add_argument("--report", type=str, default=None, help="Write a JSON report to this file")
    convert.add_argument("--validate", action="store_true", help="Validate converted files structurally")
    convert.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    analyze = subparsers.add_parser("analyze", help="Classify the test files of a project")
    analyze.add_argument("--source", required=True, help="Project root to analyze")
    analyze.add_argument("--report", type=str, default=None, help="Write the analysis as JSON to this file")
    analyze.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser


def _write_report(path: str, payload: dict) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Report written to {path}")


def run_convert(args: argparse.Namespace) -> int:
    from .core.config import load_settings
    from .core.quality import score, validate_file
    from .core.selective import SelectiveConverter

    browsers = [b.strip() for b in args.browsers.split(",") if b.strip()] if args.browsers else None
    try:
        settings = load_settings(
            args.config,
            browsers=browsers,
            preserve_structure=False if args.flatten else None,
            skip_existing=True if args.skip_existing else None,
            batch_size=args.batch_size,
            parallel=True if args.parallel else None,
            quality_threshold=args.threshold,
        )
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL

    converter = SelectiveConverter(settings)
    try:
        result = converter.convert_project(args.source, args.output)
    except OSError as e:
        logger.error(f"Conversion aborted: {e}")
        return EXIT_FATAL

    validation = None
    if args.validate:
        validation = [validate_file(o.converted_path) for o in result.outcomes if o.converted_path]
    metrics = score(result, result.analysis, validation, settings.quality_threshold)

    for warning in result.warnings:
        logger.warning(warning)
    for recommendation in metrics.recommendations:
        logger.info(recommendation)

    if args.report:
        payload = {
            "settings": settings.model_dump(),
            "result": result.to_dict(),
            "quality": metrics.to_dict(),
        }
        if validation is not None:
            payload["validation"] = [v.to_dict() for v in validation]
        try:
            _write_report(args.report, payload)
        except OSError as e:
            logger.error(f"Could not write report: {e}")
            return EXIT_FATAL

    print(
        f"\n  Converted {result.successful_conversions} file(s), "
        f"{result.failed_conversions} failed, {len(result.preserved_files)} preserved"
    )
    print(f"  Quality score: {metrics.quality_score * 100:.1f}% (threshold {metrics.threshold * 100:.0f}%)\n")
    return EXIT_OK if metrics.meets_threshold else EXIT_BELOW_THRESHOLD


def run_analyze(args: argparse.Namespace) -> int:
    from .core.classifier import ProjectTypeAnalyzer

    try:
        analysis = ProjectTypeAnalyzer().analyze_project(args.source)
    except FileNotFoundError as e:
        logger.error(str(e))
        return EXIT_FATAL

    for file_type, count in analysis.summary.items():
        print(f"  {file_type}: {count}")
    for recommendation in analysis.recommendations:
        print(f"  - {recommendation}")
    if args.report:
        _write_report(args.report, analysis.to_dict())
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for cy2pw."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logger.info(f"Starting cy2pw {args.command}")

    if args.command == "convert":
        return run_convert(args)
    return run_analyze(args)


if __name__ == "__main__":
    sys.exit(main())
