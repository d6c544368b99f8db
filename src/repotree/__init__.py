"""Resolve and check out a tree of tag-pinned git repository dependencies."""
