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

"""Rate-limited user-facing warnings."""

import logging
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

WarningCallback = Callable[[str], None]


class WarningChannel:
    """Delivers each distinct warning message once until reset."""

    def __init__(self, callback: Optional[WarningCallback] = None):
        self.callback = callback
        self._warned: Set[str] = set()

    def warn_once(self, message: str) -> bool:
        """Emit ``message`` unless it was already emitted. Returns True if emitted."""
        if message in self._warned:
            logger.debug(f"Suppressed repeated warning: {message}")
            return False

        self._warned.add(message)
        logger.warning(message)
        if self.callback is not None:
            self.callback(message)
        return True

    def reset(self) -> None:
        self._warned.clear()
