"""Tag creation date lookup.

Provides an abstraction over reading tag creation times from a working copy,
with a real implementation backed by git.
"""

from repotree.core.tag_dates.abc import TagDates
from repotree.core.tag_dates.real import RealTagDates

__all__ = ["TagDates", "RealTagDates"]
