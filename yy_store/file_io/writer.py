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

"""Persistence collaborators that write serialized descriptors."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Union

from ..exceptions import DescriptorIOError

logger = logging.getLogger(__name__)


class FileSystemWriter:
    """Writes descriptor text below a project root.

    Each write goes to a temporary file in the target directory which then
    replaces the destination, so a crash never leaves a half-written descriptor.
    """

    def __init__(self, root: Union[str, Path], encoding: str = "utf-8"):
        self.root = Path(root)
        self.encoding = encoding

    def resolve(self, path: str) -> Path:
        target = Path(path)
        return target if target.is_absolute() else self.root / target

    def write(self, path: str, text: str) -> None:
        target = self.resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
            try:
                with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                    f.write(text)
                os.replace(tmp_name, target)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
                raise
        except (OSError, UnicodeError) as e:
            raise DescriptorIOError(f"Failed to write descriptor {target}: {e}") from e
        logger.debug(f"Wrote descriptor: {target}")

    def remove(self, path: str) -> None:
        target = self.resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise DescriptorIOError(f"Failed to remove descriptor {target}: {e}") from e
        logger.debug(f"Removed descriptor: {target}")
        # Drop the per-resource directory once it is empty.
        try:
            target.parent.rmdir()
        except OSError:
            pass


class MemoryWriter:
    """Keeps written text in a dict; used when no files should be touched."""

    def __init__(self):
        self.files: Dict[str, str] = {}

    def write(self, path: str, text: str) -> None:
        self.files[path] = text

    def remove(self, path: str) -> None:
        self.files.pop(path, None)
