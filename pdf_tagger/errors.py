"""Exception hierarchy for the tagging pass.

``BlockError`` subclasses affect one block only and are counted by the
pipeline driver; ``StructureError`` subclasses abort the whole pass.
"""

from __future__ import annotations

from typing import Optional


class TaggingError(Exception):
    """Base class for all tagging failures."""

    def __init__(self, message: str, block_id: Optional[str] = None):
        super().__init__(message)
        self.block_id = block_id


class BlockError(TaggingError):
    pass


class MalformedBlock(BlockError):
    """Block lacks a type or usable geometry."""


class RegionAllocationFailure(BlockError):
    """The page could not issue a marked-content id."""


class StructureError(TaggingError):
    """Tree builder and nesting tracker went out of sync."""


class CursorUnderflow(StructureError):
    """Attempt to move the cursor above the Document root."""


class RegionStateError(StructureError):
    """A region was opened while another one was still active, or reused."""
