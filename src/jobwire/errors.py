# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for jobwire.

Two kinds of conversion failure abort a whole document:
- StructuralViolation: the config tree breaks a cardinality cap or an invariant
- MalformedWireInput: the wire document cannot be read (API change or corruption)

Element-level defects that only drop one element are not exceptions; they are
reported as Diagnostic entries on the ConversionResult.
"""

from typing import Optional


class JobwireError(Exception):
    """Base class for all jobwire errors."""
    pass


class ConversionError(JobwireError):
    """A conversion failed at a specific location in the tree.

    Attributes:
        path: Dotted path of the offending config attribute or wire element
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class StructuralViolation(ConversionError):
    """The config tree violates a structural rule of the wire schema."""
    pass


class TooManyNestedBlocksError(StructuralViolation):
    """A block capped at one occurrence was given more than once."""

    def __init__(self, block: str, parent: str, count: int, path: Optional[str] = None):
        self.block = block
        self.parent = parent
        self.count = count
        super().__init__(
            f"{parent} may have no more than one {block} (got {count})",
            path=path,
        )


class InvariantViolation(StructuralViolation):
    """Mutually dependent or mutually exclusive attributes are inconsistent."""
    pass


class MalformedWireInput(ConversionError):
    """The wire document does not have the expected shape."""
    pass


class MalformedMapError(MalformedWireInput):
    """A tagged-entry map stream is truncated or contains unexpected content."""
    pass


class CompileError(JobwireError):
    """Raised when a YAML job definition cannot be built into a config tree."""
    pass


class ConfigurationError(JobwireError):
    """Raised when converter configuration is invalid."""
    pass
