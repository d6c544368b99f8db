"""Tag creation dates read from git."""

import logging
import subprocess
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from repotree.core.tag_dates.abc import TagDates

logger = logging.getLogger(__name__)


class RealTagDates(TagDates):
    """Reads tag dates with `git for-each-ref`.

    Annotated tags report their tagger date, lightweight tags the date of the
    commit they point to.
    """

    def dates_for_tags(self, repo_path: Path, tags: Sequence[str]) -> dict[str, datetime]:
        if not tags or not repo_path.is_dir():
            return {}

        result = subprocess.run(
            [
                "git",
                "for-each-ref",
                "--format=%(refname:short)%09%(creatordate:iso-strict)",
                "refs/tags",
            ],
            cwd=repo_path,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.debug("Could not list tags in %s: %s", repo_path, result.stderr.strip())
            return {}

        wanted = set(tags)
        dates: dict[str, datetime] = {}
        for line in result.stdout.splitlines():
            name, _, stamp = line.partition("\t")
            if name not in wanted or not stamp:
                continue
            try:
                dates[name] = datetime.fromisoformat(stamp.strip())
            except ValueError:
                logger.debug("Unparseable date for tag %s: %r", name, stamp)
        return dates
