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

"""Configuration management for the descriptor store."""

import logging
import os
from dataclasses import dataclass, field
from typing import List

from .utils.logging_utils import configure_from_names


def _split_dirs(raw: str) -> List[str]:
    return [part for part in raw.split(os.pathsep) if part.strip()]


@dataclass
class StoreConfig:
    """Configuration class for parsing, formatting and logging."""
    log_level: str = "INFO"
    print_level: str = "WARNING"
    max_nesting_depth: int = 128

    # formatting
    indent: int = 2
    gamemaker_style: bool = False

    # extra shape directories loaded after the bundled ones
    schema_dirs: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Create configuration from environment variables."""
        return cls(
            log_level=os.getenv('YY_STORE_LOG_LEVEL', 'INFO'),
            print_level=os.getenv('YY_STORE_PRINT_LEVEL', 'WARNING'),
            max_nesting_depth=int(os.getenv('YY_STORE_MAX_DEPTH', '128')),
            indent=int(os.getenv('YY_STORE_INDENT', '2')),
            gamemaker_style=os.getenv('YY_STORE_GAMEMAKER_STYLE', 'false').lower() == 'true',
            schema_dirs=_split_dirs(os.getenv('YY_STORE_SCHEMA_DIRS', '')),
        )

    def format_style(self):
        """Build the serializer style described by this configuration."""
        from .serialization.yy_serializer import FormatStyle

        if self.gamemaker_style:
            return FormatStyle.gamemaker(indent=self.indent)
        return FormatStyle(indent=self.indent)

    def set_logging(self) -> logging.Logger:
        """Setup logging based on configuration."""
        return configure_from_names(self.log_level, self.print_level)


# Global configuration instance
store_config = StoreConfig.from_env()
