from commitcraft.models import CommitMessageRecord, DiffAnalysis, ProgressEvent, ProgressStage
from commitcraft.models.analysis_models import DiffAnalysis as CoreDiffAnalysis
from commitcraft.models.event_models import ProgressEvent as CoreProgressEvent
from commitcraft.models.record_models import CommitMessageRecord as CoreCommitMessageRecord


def test_public_model_exports_remain_compatible():
    assert DiffAnalysis is CoreDiffAnalysis
    assert ProgressEvent is CoreProgressEvent
    assert CommitMessageRecord is CoreCommitMessageRecord
    event = ProgressEvent(stage=ProgressStage.PERSISTED, sequence=1, session_id="s")
    assert event.is_terminal is True
    assert ProgressEvent(stage="generation-progress", sequence=1, session_id="s").is_terminal is False
