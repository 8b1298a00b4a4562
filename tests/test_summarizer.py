import pytest

from errors import RateLimitedError, SummaryGenerationError
from lease_analysis.prompts import CHUNK_SEPARATOR
from lease_analysis.summarizer import GlobalSummarizer, LeaseAnalysis


def test_summary_then_issues_from_joined_analyses(fake_llm):
    result = GlobalSummarizer(fake_llm).summarize(["chunk one notes", "chunk two notes"])

    assert isinstance(result, LeaseAnalysis)
    assert len(fake_llm.prompts) == 2
    assert "chunk one notes" + CHUNK_SEPARATOR + "chunk two notes" in fake_llm.prompts[0]
    assert "chunk one notes" + CHUNK_SEPARATOR + "chunk two notes" in fake_llm.prompts[1]
    assert result.summary.startswith("analysis #1")
    assert result.issues.startswith("analysis #2")
    assert result.to_dict() == {"summary": result.summary, "issues": result.issues}


@pytest.mark.parametrize("failing_call", [0, 1])
def test_either_call_failing_fails_the_merge(make_fake_llm, failing_call):
    llm = make_fake_llm(fail_on={failing_call}, error=RateLimitedError("Rate limited (429)"))

    with pytest.raises(SummaryGenerationError, match="Global analysis failed"):
        GlobalSummarizer(llm).summarize(["notes"])
