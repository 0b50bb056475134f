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

"""Custom exceptions for the JSON Atlas schema engine."""

from typing import Optional


class JsonAtlasError(Exception):
    """Base exception for schema engine related errors."""
    pass


class SchemaLoadError(JsonAtlasError):
    """Exception raised when a schema cannot be read or parsed."""
    pass


class SchemaFetchError(SchemaLoadError):
    """Exception raised when a remote schema cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemaCompileError(JsonAtlasError):
    """Exception raised when a schema cannot be compiled into a validator."""
    pass


class AssociationError(JsonAtlasError):
    """Exception raised for document-to-schema association errors."""
    pass
