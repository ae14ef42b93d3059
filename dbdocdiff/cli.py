"""
Command-line interface.

Usage:
  dbdocdiff run --config dbdocdiff.yaml
  dbdocdiff compare old.xlsx new.xlsx [--provider openai] [--language ja]

`compare` reads LLM settings from the environment (LLM_PROVIDER, API_KEY,
API_BASE_URL, MODEL_NAME, OUTPUT_LANGUAGE); flags override them.
"""

from __future__ import annotations

import argparse
import signal
import sys
from typing import List, Optional

from .config import DbDocDiffConfig, LLMConfig, ProjectConfig, ProviderKind, RuntimeConfig
from .errors import ConfigurationError, ParseError
from .pipeline import CancellationToken, run_from_config


def _config_from_args(args: argparse.Namespace) -> DbDocDiffConfig:
    llm = LLMConfig.from_env()
    updates = {}
    if args.provider:
        updates["provider"] = ProviderKind.parse(args.provider)
    if args.model:
        updates["model"] = args.model
    if args.base_url:
        updates["base_url"] = args.base_url
    if args.language:
        updates["language"] = args.language
    if updates:
        llm = LLMConfig.model_validate({**llm.model_dump(), **updates})
    return DbDocDiffConfig(
        project=ProjectConfig(old_workbook=args.old, new_workbook=args.new, output_dir=args.output_dir),
        llm=llm,
        runtime=RuntimeConfig(verbose=not args.quiet),
    )


def _run_cancellable(cfg: DbDocDiffConfig) -> str:
    """Ctrl-C stops after the sheet in progress; remaining sheets are marked skipped."""
    token = CancellationToken()

    def _on_sigint(signum, frame):
        if token.cancelled:
            raise KeyboardInterrupt
        print("\n[WARN] Cancelling after the current sheet (Ctrl-C again to abort)...")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        return run_from_config(cfg, cancel_token=token)
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dbdocdiff", description="Per-sheet semantic diff of database definition workbooks via an LLM."
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Run dbdocdiff using a YAML config.")
    run_p.add_argument("--config", required=True, help="Path to YAML config file.")

    cmp_p = sub.add_parser("compare", help="Compare two workbooks using environment configuration.")
    cmp_p.add_argument("old", help="Old version (.xlsx, .xlsm or .xls).")
    cmp_p.add_argument("new", help="New version (.xlsx, .xlsm or .xls).")
    cmp_p.add_argument("--provider", choices=[k.value for k in ProviderKind], help="Override LLM_PROVIDER.")
    cmp_p.add_argument("--model", help="Override MODEL_NAME.")
    cmp_p.add_argument("--base-url", help="Override API_BASE_URL. For anthropic a trailing /v1 is dropped; the SDK adds it.")
    cmp_p.add_argument("--language", choices=["en", "ja", "fr"], help="Output language.")
    cmp_p.add_argument("--output-dir", default="comparison_output", help="Where reports are written.")
    cmp_p.add_argument("--quiet", action="store_true", help="Only print errors.")

    args = parser.parse_args(argv)

    try:
        if args.cmd == "run":
            cfg = DbDocDiffConfig.from_yaml(args.config)
        else:
            cfg = _config_from_args(args)
        _run_cancellable(cfg)
    except (ConfigurationError, ParseError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
