"""Redirect pages — stable download URLs for the latest build of each artifact.

Layout: {out_dir}/download/{owner}/{repo}/{branch}/{artifact_name}/index.html

The branch is flattened to one path segment, as in the snapshot file name,
so the pages of ``release`` and ``release/4.2`` never share a directory.

Each page immediately redirects to the artifact's download page on
GitHub.  Pages for artifact names that dropped out of the latest index
are removed, so a stale URL 404s instead of pointing at an old build.
"""

from __future__ import annotations

import html
import logging
import shutil
from pathlib import Path

from buildindex.core.errors import IOFailure
from buildindex.models.snapshot import LatestArtifactRef, Snapshot
from buildindex.store.snapshot_store import flatten_branch

logger = logging.getLogger(__name__)

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <meta http-equiv="refresh" content="0; url={url}">
  <link rel="canonical" href="{url}">
</head>
<body>
  <p>Redirecting to <a href="{url}">{title}</a>&hellip;</p>
</body>
</html>
"""


def artifact_url(owner: str, repo: str, ref: LatestArtifactRef) -> str:
    """GitHub download page of the artifact behind *ref*."""
    return (
        f"https://github.com/{owner}/{repo}/suites/{ref.check_id}"
        f"/artifacts/{ref.artifact_id}"
    )


def _is_safe_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


class RedirectPublisher:
    """Writes one redirect page per entry of ``snapshot.latest``.

    Parameters
    ----------
    out_dir:
        Root of the published site.
    """

    def __init__(self, out_dir: Path | str) -> None:
        self._base = Path(out_dir)

    def branch_dir(self, owner: str, repo: str, branch: str) -> Path:
        return self._base / "download" / owner / repo / flatten_branch(branch)

    def render(self, owner: str, repo: str, ref: LatestArtifactRef) -> str:
        return _PAGE_TEMPLATE.format(
            title=html.escape(f"{ref.artifact_name} ({ref.commit_hash[:9]})"),
            url=html.escape(artifact_url(owner, repo, ref), quote=True),
        )

    def publish(self, snapshot: Snapshot, owner: str, repo: str, branch: str) -> list[Path]:
        """Write pages for ``snapshot.latest`` and prune stale ones.

        Returns the paths written.  Raises ``IOFailure`` if the site
        directory cannot be written.
        """
        target = self.branch_dir(owner, repo, branch)
        written: list[Path] = []

        try:
            target.mkdir(parents=True, exist_ok=True)

            for name, ref in sorted(snapshot.latest.items()):
                if not _is_safe_name(name):
                    logger.warning("Skipping artifact with unsafe name %r", name)
                    continue
                page = target / name / "index.html"
                page.parent.mkdir(parents=True, exist_ok=True)
                page.write_text(self.render(owner, repo, ref), encoding="utf-8")
                written.append(page)

            for entry in target.iterdir():
                # Only directories holding a page written here are removed.
                if entry.name not in snapshot.latest and (entry / "index.html").is_file():
                    shutil.rmtree(entry)
                    logger.info("Removed stale redirect %s", entry)
        except OSError as exc:
            raise IOFailure(f"Error publishing redirects to {target}: {exc}") from exc

        logger.info("Published %d redirect page(s) to %s.", len(written), target)
        return written
