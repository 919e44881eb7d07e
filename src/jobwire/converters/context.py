# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Conversion context passed explicitly through every block converter."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from jobwire.config import ConverterConfig
from jobwire.errors import TooManyNestedBlocksError
from jobwire.schemas import Diagnostic


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ConversionContext:
    """Converter config, the shared diagnostics collector and the current path.

    Child contexts made with `at()` share the config and the diagnostics list,
    so a skip reported deep in the tree lands on the top-level result.
    """
    config: ConverterConfig = field(default_factory=ConverterConfig)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    path: str = ""

    def at(self, *parts) -> "ConversionContext":
        """Return a context for a child location (parts joined with '.')."""
        path = self.path
        for part in parts:
            if isinstance(part, int):
                path = f"{path}[{part}]"
            else:
                path = f"{path}.{part}" if path else str(part)
        return ConversionContext(config=self.config, diagnostics=self.diagnostics, path=path)

    def skip(self, message: str) -> None:
        """Record an element dropped from the output."""
        diagnostic = Diagnostic(path=self.path or "<root>", message=message)
        self.diagnostics.append(diagnostic)
        logger.warning(f"Skipped {diagnostic}")

    def single(self, blocks: Sequence[T], block: str, parent: str) -> Optional[T]:
        """Return the only element of a capped block list, or None if empty.

        Raises:
            TooManyNestedBlocksError: If the list holds more than one element
        """
        if len(blocks) > 1:
            raise TooManyNestedBlocksError(block, parent, len(blocks), path=self.at(block).path)
        return blocks[0] if blocks else None
