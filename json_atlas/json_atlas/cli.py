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

"""CLI entry point: run the language server or validate files in batch."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import AtlasConfig, JsonSchemaMapping
from .engine import SchemaEngine
from .parsing.syntax_tree import language_for, parse_document
from .schema.insights import Severity, ValidationInsight
from .utils.uri_utils import path_to_uri
from .workspace import WorkspaceFolders

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = ('.json', '.jsonc', '.yaml', '.yml')


def find_documents(paths: List[str]) -> List[Path]:
    """Find all JSON and YAML documents in given paths."""
    documents = []
    for path_str in paths:
        path = Path(path_str)

        if not path.exists():
            print(f"Warning: Path does not exist: {path}", file=sys.stderr)
            continue

        if path.is_file():
            documents.append(path)
        elif path.is_dir():
            for ext in DOCUMENT_EXTENSIONS:
                documents.extend(path.rglob(f'*{ext}'))

    return sorted(set(documents))


def validate_documents(engine: SchemaEngine, documents: List[Path]) -> Dict[Path, Optional[List[ValidationInsight]]]:
    """Validate each document; None marks a document without an active schema."""
    results: Dict[Path, Optional[List[ValidationInsight]]] = {}
    for path in documents:
        uri = path_to_uri(str(path))
        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read {path}: {e}")
            results[path] = None
            continue

        language_id = language_for(uri, None)
        document = parse_document(uri, text, language_id)
        if not document.ok:
            logger.error(f"Cannot parse {path}: {document.errors[0]}")
            results[path] = None
            continue

        engine.validate(document)
        results[path] = engine.get_insights(uri) if engine.get_schema_info(uri) else None
        engine.close_document(uri)
    return results


def _run_validate(args: argparse.Namespace, config: AtlasConfig) -> int:
    if args.schema:
        config.json_schemas = [JsonSchemaMapping(url=args.schema)]
    workspace = WorkspaceFolders([args.workspace or '.'])
    engine = SchemaEngine(config, workspace)

    documents = find_documents(args.paths or ['.'])
    if not documents:
        print("No JSON or YAML documents found.", file=sys.stderr)
        return 1

    results = validate_documents(engine, documents)

    if args.format == 'json':
        output = {
            'files': len(results),
            'results': [
                {
                    'file': str(path),
                    'validated': insights is not None,
                    'insights': [
                        {
                            'pointer': insight.pointer,
                            'keyword': insight.keyword,
                            'severity': insight.severity.value,
                            'message': insight.message,
                        }
                        for insight in insights or []
                    ],
                }
                for path, insights in results.items()
            ],
        }
        print(json.dumps(output, indent=2))
    else:
        for path, insights in results.items():
            if insights:
                print(f"\n{path}:")
                for insight in insights:
                    print(f"  {insight.severity.value.upper()} {insight.pointer or '/'}: {insight.message}")

    errors = sum(
        1
        for insights in results.values()
        for insight in insights or []
        if insight.severity == Severity.ERROR
    )
    if errors:
        return 1
    if args.format == 'human':
        print("Validation succeeded with no errors.")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the json-atlas CLI."""
    parser = argparse.ArgumentParser(
        prog='json-atlas',
        description='JSON Schema resolution and validation for JSON and YAML documents',
    )
    subparsers = parser.add_subparsers(dest='command')

    subparsers.add_parser('serve', help='Run the language server over stdio (default)')

    validate_parser = subparsers.add_parser('validate', help='Validate documents and print insights')
    validate_parser.add_argument(
        'paths',
        nargs='*',
        help='File paths or directories to validate (default: current directory)',
    )
    validate_parser.add_argument('--schema', help='Schema reference applied to every document')
    validate_parser.add_argument('--workspace', help='Workspace folder for relative references (default: .)')
    validate_parser.add_argument(
        '--format',
        choices=['human', 'json'],
        default='human',
        help='Output format (default: human)',
    )

    args = parser.parse_args(argv)
    config = AtlasConfig.from_env()

    if args.command == 'validate':
        config.set_logging(use_stdout=args.format == 'human')
        sys.exit(_run_validate(args, config))

    # stdout carries the LSP stream
    config.set_logging(use_stdout=False)
    from .server.server import JsonAtlasLanguageServer

    JsonAtlasLanguageServer(config).start()
