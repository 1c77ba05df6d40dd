"""Text transforms applied to staged build files.

Each transform rewrites a single file in place and keeps no state.
"""

from packsmith.transforms.changelog import write_changelog
from packsmith.transforms.quest_book import transform_quest_book
from packsmith.transforms.version import transform_version

__all__ = ["transform_quest_book", "transform_version", "write_changelog"]
