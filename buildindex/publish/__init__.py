"""Publishing of the latest-build index."""

from buildindex.publish.redirects import RedirectPublisher, artifact_url

__all__ = ["RedirectPublisher", "artifact_url"]
