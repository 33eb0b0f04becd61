"""Releases page and validation results page."""

from ops.actions import LOAD_ALL_RELEASES, LOAD_VALIDATIONS
from schemas.ops import ALL, ReleaseFilter, ValidationFilter
from views.base import ViewController


class ReleasesView(ViewController):
    """All releases, filterable by delivery stage."""

    title = "Releases"
    subtitle = "Track every Linux system release through its delivery stages"

    def __init__(self, actions, *, events=None, stage: str = ALL) -> None:
        super().__init__(actions, events=events)
        self.stage_filter = stage
        self.releases = None

    def _on_open(self) -> None:
        self.releases = self._load(LOAD_ALL_RELEASES, self._params(), name="releases")

    def set_stage_filter(self, stage: str) -> bool:
        self.stage_filter = stage
        return self._rebind(self.releases, self._params())

    def _params(self) -> ReleaseFilter:
        return ReleaseFilter(stage=self.stage_filter)


class ValidationsView(ViewController):
    """Validation suite runs, filterable by result."""

    title = "Validation Results"
    subtitle = "Suite outcomes for each release build"

    def __init__(self, actions, *, events=None, result: str = ALL) -> None:
        super().__init__(actions, events=events)
        self.result_filter = result
        self.validations = None

    def _on_open(self) -> None:
        self.validations = self._load(LOAD_VALIDATIONS, self._params(), name="validations")

    def set_result_filter(self, result: str) -> bool:
        self.result_filter = result
        return self._rebind(self.validations, self._params())

    def _params(self) -> ValidationFilter:
        return ValidationFilter(result=self.result_filter)
