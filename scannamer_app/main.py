"""
Scan Namer - Main Application Entry Point.

Usage:
    python -m scannamer_app --watch <folder> [<folder> ...]   # Watch folders
    python -m scannamer_app --file <scan>                     # Rename one file
    python -m scannamer_app --config settings.json --watch ...
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from scannamer import (
    ConfigError,
    ConflictResolution,
    LoggingEventSink,
    OcrEngineError,
    ReadinessGate,
    RenamingRule,
    RuleKind,
    RuleStore,
    Settings,
    TesseractExtractor,
    configure_logging,
    load_settings,
)

from .pipeline import ProcessingPipeline
from .watcher import FolderWatcher

logger = logging.getLogger(__name__)


def setup_argparser() -> argparse.ArgumentParser:
    """Set up command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog='scan-namer',
        description='Rename scanned documents from their OCR text.'
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '--watch',
        metavar='FOLDER',
        type=Path,
        nargs='+',
        help='Watch one or more folders for new scans (default: watch_folders from --config).'
    )
    mode.add_argument(
        '--file',
        metavar='PATH',
        type=Path,
        help='Process a single file and exit.'
    )

    parser.add_argument(
        '--config',
        metavar='JSON',
        type=Path,
        help='Settings file (JSON).'
    )

    parser.add_argument(
        '--conflict',
        choices=[c.value for c in ConflictResolution if c is not ConflictResolution.INTERACTIVE],
        help='What to do when the new name is taken (default: add_suffix).'
    )

    parser.add_argument(
        '--rule-kind',
        choices=sorted({k.value for k in RuleKind}),
        help='Use a single rule of this kind ahead of the configured rules.'
    )

    parser.add_argument(
        '--template',
        help='Template for --rule-kind template, e.g. "{date}_{text}".'
    )

    parser.add_argument(
        '--pattern',
        help='Regular expression for --rule-kind regex, e.g. "INV-(\\d+)".'
    )

    parser.add_argument(
        '--replacement',
        help='Replacement for --rule-kind regex; $1 or ${name} insert groups.'
    )

    parser.add_argument(
        '--log-dir',
        metavar='FOLDER',
        type=Path,
        help='Write rotating log files to this folder.'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging.'
    )

    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Command-line flags take precedence over the settings file."""
    updates = {}
    if args.conflict:
        updates['conflict_resolution'] = ConflictResolution(args.conflict)
    if args.log_dir:
        updates['log_directory'] = args.log_dir
    if args.verbose:
        updates['log_level'] = 'DEBUG'
    if args.watch:
        updates['watch_folders'] = list(args.watch)
    return settings.model_copy(update=updates)


def build_rule_store(
    settings: Settings,
    rule_kind: Optional[str],
    template: Optional[str] = None,
    pattern: Optional[str] = None,
    replacement: Optional[str] = None,
) -> RuleStore:
    """Configured rules, with an optional command-line rule placed first."""
    rules = settings.build_rules()
    if rule_kind:
        kind = RuleKind(rule_kind)
        rules.insert(0, RenamingRule(
            name=f"Command line ({kind.value})",
            kind=kind,
            pattern=pattern or "",
            replacement=replacement or "",
            template=template or "",
            active=True,
        ))
    return RuleStore(rules)


def build_pipeline(settings: Settings, rule_store: RuleStore) -> ProcessingPipeline:
    """Assemble the pipeline from settings."""
    extractor = create_extractor(settings)
    gate = ReadinessGate(
        timeout=settings.readiness_timeout,
        poll_interval=settings.readiness_poll_interval,
    )
    watcher = FolderWatcher(
        settle_delay=settings.settle_delay,
        readiness_gate=gate,
        max_workers=settings.max_workers,
    )
    return ProcessingPipeline(
        extractor,
        watcher=watcher,
        rule_store=rule_store,
        readiness_gate=gate,
        events=LoggingEventSink(include_text=settings.log_extracted_text),
        conflict_resolution=settings.conflict_resolution,
        max_file_size=settings.max_file_size,
        max_workers=settings.max_workers,
    )


def create_extractor(settings: Settings) -> TesseractExtractor:
    """Create the OCR collaborator and check the engine is installed."""
    extractor = TesseractExtractor(
        language=settings.language,
        tesseract_cmd=settings.tesseract_cmd,
    )
    version = extractor.verify()
    logger.info(f"Using Tesseract {version} ({settings.language})")
    return extractor


def run_file(pipeline: ProcessingPipeline, file_path: Path) -> int:
    """Process a single file in CLI mode."""
    if not file_path.exists():
        print(f"❌ File not found: {file_path}")
        return 1

    print(f"🔄 Manual processing: {file_path.name}")
    outcome = pipeline.process_manually(file_path)

    if outcome.success:
        print(f"✅ Renamed: {file_path.name} → {outcome.new_path.name}")
        print(f"   Path: {outcome.new_path}")
        print(f"   Rule: {outcome.rule_used}")
        return 0

    print(f"❌ Error ({outcome.error_kind}): {outcome.error}")
    return 1


def run_watch(pipeline: ProcessingPipeline, folders: list[Path]) -> int:
    """Watch folders until Ctrl+C."""
    if not pipeline.start_monitoring(folders):
        print("❌ None of the folders exist, nothing to watch.")
        return 1

    for folder in pipeline.watcher.directories:
        print(f"👁️  Watching folder: {folder}")
    print("Press Ctrl+C to stop...")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass

    pipeline.stop_monitoring()
    pipeline.drain()
    print_statistics(pipeline)
    return 0


def print_statistics(pipeline: ProcessingPipeline):
    processed, failed = pipeline.statistics.snapshot()
    active = sum(1 for rule in pipeline.list_rules() if rule.active)
    print("\n📊 Processing Statistics:")
    print(f"   ✅ Processed: {processed}")
    print(f"   ❌ Failed: {failed}")
    print(f"   📋 Active Rules: {active}")
    print(f"   🔄 Status: {'Monitoring' if pipeline.is_monitoring else 'Stopped'}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    if args.rule_kind == RuleKind.REGEX.value and not (args.pattern and args.replacement):
        parser.error("--rule-kind regex needs --pattern and --replacement")
    if args.rule_kind == RuleKind.TEMPLATE.value and not args.template:
        parser.error("--rule-kind template needs --template")

    try:
        settings = apply_overrides(load_settings(args.config), args)
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        return 2

    if not args.file and not settings.watch_folders:
        parser.error("nothing to do: pass --file, --watch, or a config with watch_folders")

    configure_logging(
        level=settings.log_level,
        log_directory=settings.log_directory,
        retention_days=settings.log_retention_days,
    )

    rule_store = build_rule_store(
        settings, args.rule_kind, args.template, args.pattern, args.replacement
    )

    try:
        pipeline = build_pipeline(settings, rule_store)
    except OcrEngineError as e:
        print(f"❌ {e}")
        return 2

    with pipeline:
        if args.file:
            return run_file(pipeline, args.file)
        return run_watch(pipeline, settings.watch_folders)


if __name__ == "__main__":
    sys.exit(main())
