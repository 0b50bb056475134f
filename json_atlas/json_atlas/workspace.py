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

"""Workspace folder bookkeeping shared by schema resolution and associations."""

import logging
import os
from typing import Iterable, List, Optional

from .utils.uri_utils import is_absolute_uri, uri_scheme, uri_to_path

logger = logging.getLogger(__name__)


def _to_posix(path: str) -> str:
    return path.replace(os.sep, "/")


class WorkspaceFolders:
    """The set of workspace folders the engine is serving."""

    def __init__(self, folders: Optional[Iterable[str]] = None):
        self._folders: List[str] = []
        for folder in folders or []:
            self.add(folder)

    def add(self, folder: str) -> None:
        """Add a folder given as a ``file:`` URI or a local path."""
        path = uri_to_path(folder) if is_absolute_uri(folder) else folder
        path = os.path.normpath(os.path.abspath(path))
        if path not in self._folders:
            self._folders.append(path)
            logger.info(f"Added workspace folder: {path}")

    def remove(self, folder: str) -> None:
        path = uri_to_path(folder) if is_absolute_uri(folder) else folder
        path = os.path.normpath(os.path.abspath(path))
        if path in self._folders:
            self._folders.remove(path)
            logger.info(f"Removed workspace folder: {path}")

    @property
    def folders(self) -> List[str]:
        return list(self._folders)

    def folder_for(self, document_uri: str) -> Optional[str]:
        """Return the innermost workspace folder containing the document."""
        if uri_scheme(document_uri) != "file":
            return None
        document_path = os.path.normpath(uri_to_path(document_uri))
        best = None
        for folder in self._folders:
            try:
                common = os.path.commonpath([folder, document_path])
            except ValueError:
                continue
            if common == folder and (best is None or len(folder) > len(best)):
                best = folder
        return best

    def relative_path(self, document_uri: str) -> Optional[str]:
        """Workspace-relative path with forward slashes.

        Falls back to the absolute path for files outside every folder and to
        None for non-file URIs.
        """
        if uri_scheme(document_uri) != "file":
            return None
        document_path = os.path.normpath(uri_to_path(document_uri))
        folder = self.folder_for(document_uri)
        if folder is None:
            return _to_posix(document_path)
        return _to_posix(os.path.relpath(document_path, folder))

    @staticmethod
    def join(folder: str, reference: str) -> str:
        """Join a relative reference onto a folder, dropping a leading ``./``."""
        normalized = reference
        while normalized.startswith("./") or normalized.startswith(".\\"):
            normalized = normalized[2:]
        segments = [segment for segment in normalized.replace("\\", "/").split("/") if segment]
        return os.path.join(folder, *segments)
