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

"""Per-document schema assignments stored inside each workspace folder.

Assignments live in ``<folder>/.vscode/jsonAtlas.schemaAssignments.json`` as a
flat JSON object mapping the document's folder-relative path (forward
slashes) to the schema reference the user picked.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import AssociationError
from ..workspace import WorkspaceFolders

logger = logging.getLogger(__name__)

ASSIGNMENT_DIR = ".vscode"
ASSIGNMENT_FILE = "jsonAtlas.schemaAssignments.json"


class SchemaAssociationStore:
    """Reads and writes document-to-schema assignments per workspace folder."""

    def __init__(self, workspace: WorkspaceFolders):
        self.workspace = workspace
        self._cache: Dict[str, Dict[str, str]] = {}

    def get_schema_reference(self, document_uri: str) -> Optional[str]:
        """Return the reference assigned to a document, if any."""
        folder = self.workspace.folder_for(document_uri)
        if folder is None:
            return None
        assignments = self._read_assignments(folder)
        return assignments.get(self._build_key(document_uri))

    def set_schema_reference(self, document_uri: str, reference: str) -> None:
        folder = self.workspace.folder_for(document_uri)
        if folder is None:
            raise AssociationError("Schema associations can only be stored for workspace files.")
        assignments = dict(self._read_assignments(folder))
        assignments[self._build_key(document_uri)] = reference
        self._write_assignments(folder, assignments)

    def clear_schema_reference(self, document_uri: str) -> None:
        folder = self.workspace.folder_for(document_uri)
        if folder is None:
            return
        assignments = dict(self._read_assignments(folder))
        key = self._build_key(document_uri)
        if key in assignments:
            del assignments[key]
            self._write_assignments(folder, assignments)

    def list_assignments(self, folder: str) -> Dict[str, str]:
        return dict(self._read_assignments(folder))

    def invalidate(self) -> None:
        """Forget cached assignment files so the next lookup re-reads them."""
        self._cache.clear()

    def _build_key(self, document_uri: str) -> str:
        relative = self.workspace.relative_path(document_uri)
        return relative if relative is not None else document_uri

    def _assignments_file(self, folder: str) -> Path:
        return Path(folder) / ASSIGNMENT_DIR / ASSIGNMENT_FILE

    def _read_assignments(self, folder: str) -> Dict[str, str]:
        cached = self._cache.get(folder)
        if cached is not None:
            return cached

        file_path = self._assignments_file(folder)
        data: Dict[str, str] = {}
        try:
            parsed = json.loads(file_path.read_text(encoding="utf-8"))
            if isinstance(parsed, dict):
                data = {str(key): value for key, value in parsed.items() if isinstance(value, str)}
        except FileNotFoundError:
            pass
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read schema assignments from {file_path}: {e}")

        self._cache[folder] = data
        return data

    def _write_assignments(self, folder: str, assignments: Dict[str, str]) -> None:
        file_path = self._assignments_file(folder)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(json.dumps(assignments, indent=2), encoding="utf-8")
        except OSError as e:
            raise AssociationError(f"Failed to write schema assignments to {file_path}: {e}") from e
        self._cache[folder] = assignments
        logger.info(f"Saved {len(assignments)} schema assignment(s) to {file_path}")
