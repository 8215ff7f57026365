#!/usr/bin/env python3
# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""CLI entry point for linting ``.yy`` resource descriptors."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from ..config import store_config
from ..exceptions import YyStoreError
from ..file_io.project_scanner import find_project_file, scan_project
from ..file_io.template_renderer import TemplateRenderer, custom_serializer
from ..schema.registry import SchemaRegistry
from ..serialization.yy_serializer import FormatStyle
from ..utils.logging_utils import configure_from_names
from . import LintResult, lint_files

DESCRIPTOR_EXTENSION = '.yy'


def find_project_root(start: Path) -> Path:
    """Walk up from ``start`` to the first directory holding a ``.yyp`` project file."""
    current = start if start.is_dir() else start.parent
    for candidate in [current, *current.parents]:
        if find_project_file(candidate) is not None:
            return candidate
    return current


def find_descriptor_files(paths: List[str]) -> List[Path]:
    """Find all descriptor files in given paths."""
    descriptor_files = []

    for path_str in paths:
        path = Path(path_str)

        if not path.exists():
            print(f"Warning: Path does not exist: {path}", file=sys.stderr)
            continue

        if path.is_file():
            if path.suffix == DESCRIPTOR_EXTENSION:
                descriptor_files.append(path.resolve())
            else:
                print(f"Warning: File is not a {DESCRIPTOR_EXTENSION} descriptor: {path}", file=sys.stderr)
        elif path.is_dir():
            descriptor_files.extend(p.resolve() for p in path.rglob(f'*{DESCRIPTOR_EXTENSION}'))
        else:
            print(f"Warning: Path is neither file nor directory: {path}", file=sys.stderr)

    return sorted(set(descriptor_files))


def _print_human(results: List[LintResult]) -> None:
    for result in results:
        if result.has_findings or result.repaired_references:
            print(f"\n{result.file_path}:")
            for error in result.errors:
                line_info = f":{error['line']}" if 'line' in error else ""
                where = f" [{error['location']}]" if 'location' in error else ""
                print(f"  ERROR{line_info}{where}: {error['message']}")
            for warning in result.warnings:
                line_info = f":{warning['line']}" if 'line' in warning else ""
                where = f" [{warning['location']}]" if 'location' in warning else ""
                print(f"  WARNING{line_info}{where}: {warning['message']}")
            if result.repaired_references:
                print(f"  FIXED: {result.repaired_references} reference path(s) repaired")


def _print_github_actions(results: List[LintResult]) -> None:
    for result in results:
        for error in result.errors:
            print(
                f"::error file={result.file_path},line={error.get('line', 1)},"
                f"col={error.get('column', 1)}::{error['message']}"
            )
        for warning in result.warnings:
            print(
                f"::warning file={result.file_path},line={warning.get('line', 1)},"
                f"col={warning.get('column', 1)}::{warning['message']}"
            )


def _summary(results: List[LintResult]) -> dict:
    return {
        'files': len(results),
        'errors': sum(len(r.errors) for r in results),
        'warnings': sum(len(r.warnings) for r in results),
        'repaired_references': sum(r.repaired_references for r in results),
    }


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the linter CLI."""
    parser = argparse.ArgumentParser(
        description='Lint GameMaker .yy resource descriptors',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        'paths',
        nargs='*',
        default=None,
        help='Descriptor files or directories to lint (default: every descriptor in the project)',
    )
    parser.add_argument(
        '--project-root',
        default=None,
        help='Project directory (default: nearest ancestor holding a .yyp file)',
    )
    parser.add_argument(
        '--format',
        choices=['human', 'json', 'github-actions', 'markdown'],
        default='human',
        help='Output format (default: human)',
    )
    parser.add_argument(
        '--output',
        default=None,
        help='Write the markdown report to this file instead of stdout',
    )
    parser.add_argument(
        '--check-format',
        action='store_true',
        help='Report files whose text differs from the canonical formatting',
    )
    parser.add_argument(
        '--fix-references',
        action='store_true',
        help='Rewrite drifted reference paths from the project index and save the files',
    )
    parser.add_argument(
        '--gamemaker-style',
        action='store_true',
        default=store_config.gamemaker_style,
        help='Use the GameMaker IDE formatting (compact objects inside arrays)',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    args = parser.parse_args(argv)

    if args.verbose:
        log_level = 'DEBUG'
    elif args.format == 'human':
        log_level = store_config.log_level
    else:
        # keep machine-readable stdout free of log lines
        log_level = 'WARNING'
    configure_from_names(log_level, store_config.print_level)

    start = Path(args.paths[0]).resolve() if args.paths else Path.cwd()
    project_root = Path(args.project_root).resolve() if args.project_root else find_project_root(start)

    if args.gamemaker_style:
        style = FormatStyle.gamemaker(indent=store_config.indent)
    else:
        style = FormatStyle(indent=store_config.indent)

    try:
        registry = SchemaRegistry.default()
        if args.paths:
            descriptor_files = find_descriptor_files(args.paths)
        else:
            scan = scan_project(project_root, registry)
            descriptor_files = [project_root / p for p in scan.descriptor_paths]
    except YyStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if not descriptor_files:
        print("No .yy descriptor files found.", file=sys.stderr)
        sys.exit(1)

    results = lint_files(
        descriptor_files,
        project_root,
        registry=registry,
        style=style,
        check_format=args.check_format,
        fix_references=args.fix_references,
    )
    summary = _summary(results)

    if args.format == 'json':
        output = dict(summary)
        output['project_root'] = str(project_root)
        output['results'] = [r.to_dict() for r in results]
        print(json.dumps(output, indent=2, default=custom_serializer))
    elif args.format == 'github-actions':
        _print_github_actions(results)
    elif args.format == 'markdown':
        renderer = TemplateRenderer()
        report_args = dict(
            project_root=project_root,
            summary=summary,
            results=[r for r in results if r.has_findings or r.repaired_references],
        )
        if args.output:
            renderer.render_template_to_file('lint_report.md.jinja2', args.output, **report_args)
        else:
            print(renderer.render_template('lint_report.md.jinja2', **report_args), end='')
    else:  # human-readable
        _print_human(results)

    # Exit with error code if any errors found
    if summary['errors'] > 0:
        sys.exit(1)
    if args.format == 'human':
        print(f"Lint succeeded with no errors ({summary['files']} files, {summary['warnings']} warnings).")
    sys.exit(0)


if __name__ == '__main__':
    main()
