"""CI/CD pipeline status page."""

from ops.actions import LOAD_ALL_RELEASES, LOAD_PIPELINES
from schemas.ops import ALL, PipelineFilter, ReleaseFilter
from views.base import ViewController


class PipelinesView(ViewController):
    """Pipeline steps, filterable by release.

    The release selector is populated from its own session. The filter is
    held as the selector's string value ("all" or a release id) and turned
    into a PipelineFilter when sent.

    Raises:
        ValueError: If release is neither "all" nor an integer string.
    """

    title = "CI/CD Pipeline Status"
    subtitle = "Monitor build, test, and validation pipeline execution"

    def __init__(self, actions, *, events=None, release: str = ALL) -> None:
        _pipeline_filter(release)
        super().__init__(actions, events=events)
        self.release_filter = release
        self.releases = None
        self.pipelines = None

    def _on_open(self) -> None:
        self.releases = self._load(LOAD_ALL_RELEASES, ReleaseFilter(), name="release_options")
        self.pipelines = self._load(LOAD_PIPELINES, self._params(), name="pipelines")

    def set_release_filter(self, value: str) -> bool:
        """Select "all" or a release id (as the selector's string value).

        Raises:
            ValueError: If value is neither "all" nor an integer string.
        """
        params = _pipeline_filter(value)
        self.release_filter = value
        return self._rebind(self.pipelines, params)

    def release_options(self) -> list[tuple[str, str]]:
        """(value, label) pairs for the release selector, "all" first."""
        options = [(ALL, "All Releases")]
        if self.releases is not None:
            options.extend((str(r.id), r.name) for r in self.releases.data)
        return options

    def _params(self) -> PipelineFilter:
        return _pipeline_filter(self.release_filter)


def _pipeline_filter(value: str) -> PipelineFilter:
    if value in (ALL, ""):
        return PipelineFilter(release_id=None)
    return PipelineFilter(release_id=int(value))
