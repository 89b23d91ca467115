# src/promptpacker/cli.py
import sys
import argparse
import logging
import os
from pathlib import Path

# Module imports
from promptpacker.config import (
    CONFIG_FILE_NAME,
    FORMAT_ALIASES,
    OUTPUT_FORMATS,
    ConfigError,
    bootstrap_config,
    format_size,
    load_config,
)
from promptpacker.processor import CodebaseProcessor, infer_project_root
from promptpacker.utils.tokenizer import TOKEN_MODELS

OUTPUT_SUFFIXES = {"structured": ".txt", "document": ".md", "plain": ".txt"}


def create_arg_parser():
    parser = argparse.ArgumentParser(
        description="Pack the most relevant files of a project into one LLM-ready prompt, under a size budget."
    )
    parser.add_argument("paths", type=str, nargs="*", default=None,
                        help="Project directory, or files/directories to pack (default: current directory)")
    parser.add_argument("-o", "--output", type=str, default=None,
                        help="Output filename (default: {folder_name}_context.txt, .md for document format)")
    parser.add_argument("-f", "--format", dest="output_format", type=str, default=None,
                        choices=list(OUTPUT_FORMATS) + list(FORMAT_ALIASES), help="Output format")
    parser.add_argument("--max-file-size", type=str, default=None, help="Per-file size limit, e.g. 100kb")
    parser.add_argument("--max-total-size", type=str, default=None, help="Total size budget, e.g. 1mb")
    parser.add_argument("--max-depth", type=int, default=None, help="Maximum directory depth to scan")
    parser.add_argument("-i", "--ignore", action="append", default=None, metavar="PATTERN",
                        help="Extra ignore pattern (repeatable)")
    parser.add_argument("--include", action="append", default=None, metavar="PATTERN",
                        help="Extra include pattern (repeatable)")
    parser.add_argument("--no-gitignore", action="store_true", help="Do not apply .gitignore rules")
    parser.add_argument("--no-structure", action="store_true", help="Omit path headers in plain format")
    parser.add_argument("-m", "--model", type=str, default=None, choices=TOKEN_MODELS,
                        help="Model to count tokens for (default: character estimate)")
    parser.add_argument("--stdout", action="store_true", help="Print the packed output instead of writing a file")
    parser.add_argument("--explain", action="store_true", help="Show why each file was excluded")
    parser.add_argument("--init", action="store_true", help=f"Create a default {CONFIG_FILE_NAME} and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def get_default_output_name(root_dir: Path, output_format: str) -> str:
    """Generates a dynamic filename based on the directory name."""
    folder_name = root_dir.name

    # Filesystem root or unnamed directory
    if not folder_name:
        folder_name = "project"

    safe_name = folder_name.replace(" ", "_")
    return f"{safe_name}_context{OUTPUT_SUFFIXES.get(output_format, '.txt')}"


def main():
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args()

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        paths = [Path(p).resolve() for p in (args.paths or [os.getcwd()])]
        missing = [p for p in paths if not p.exists()]
        if missing:
            print(f"Error: Invalid path '{missing[0]}'", file=sys.stderr)
            sys.exit(1)
        root_dir = infer_project_root(paths)

        if args.init:
            config_file, created = bootstrap_config(root_dir)
            print(f"{'Created' if created else 'Already exists'}: {config_file}")
            return

        # 2. Configuration: .promptpackerrc, then command-line overrides
        config = load_config(root_dir).with_overrides(
            output_format=args.output_format,
            max_file_size=args.max_file_size,
            max_total_size=args.max_total_size,
            max_depth=args.max_depth,
            token_model=args.model,
        )
        if args.no_gitignore:
            config = config.with_overrides(respect_ignore_file=False)
        if args.no_structure:
            config = config.with_overrides(preserve_structure=False)
        if args.include:
            config = config.with_overrides(include_patterns=config.include_patterns + tuple(args.include))

        output_file_name = args.output or get_default_output_name(root_dir, config.format_name)
        output_file = root_dir / output_file_name

        # The output file itself must never be packed on the next run
        ignores = config.ignore_patterns + tuple(args.ignore or ()) + (output_file_name,)
        config = config.with_overrides(ignore_patterns=ignores)

        processor = CodebaseProcessor(config)

        print("--- promptpacker ---", file=sys.stderr)
        print(f"Scanning: {', '.join(str(p) for p in paths)}", file=sys.stderr)
        print(f"Format:   {config.format_name}", file=sys.stderr)
        print(f"Budget:   {config.max_total_size} total, {config.max_file_size} per file", file=sys.stderr)

        # 3. Processing
        result = processor.process(paths, project_root=root_dir)

        if args.explain:
            print("\n--- Diagnostics ---", file=sys.stderr)
            print(result.diagnostics.summary(), file=sys.stderr)

        if not result.files:
            print("No matching files found. Run with --explain to see why.", file=sys.stderr)
            return

        # 4. Review & Stats
        print("\n--- Top 10 Most Relevant Files ---", file=sys.stderr)
        print(f"{'Rank':<5} | {'Relevance':<9} | {'Size':<8} | {'File Path'}", file=sys.stderr)
        print("-" * 60, file=sys.stderr)
        for i, f in enumerate(result.context_map.core_files):
            score = f"{(f.relevance_score or 0) * 100:.0f}%"
            print(f"{i+1:<5} | {score:<9} | {format_size(f.size):<8} | {f.relative_path}", file=sys.stderr)
        print("-" * 60, file=sys.stderr)
        print(f"Total files: {len(result.files)}", file=sys.stderr)
        print(f"Total size: {format_size(result.total_size)}", file=sys.stderr)
        print(f"Total tokens: ~{result.token_estimate}", file=sys.stderr)
        print("-" * 60, file=sys.stderr)

        # 5. Output
        if args.stdout:
            print(result.formatted_output)
            return

        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(result.formatted_output)
                f.write("\n")
            print(f"\nSuccess! Context written to: {output_file.name}", file=sys.stderr)

        except IOError as e:
            print(f"Error writing file: {e}", file=sys.stderr)
            sys.exit(1)

    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
