import math

import httpx
import openai
import pytest

from errors import ConfigurationError, ExhaustedRetriesError, UpstreamStatusError
from lease_analysis.chunking import ChunkAnalyzer, failed_chunk_placeholder, split_into_chunks


@pytest.mark.parametrize("length, max_tokens", [(1, 4000), (16000, 4000), (16001, 4000), (12345, 10), (99, 1)])
def test_split_into_chunks_bounds_and_reconstructs(length, max_tokens):
    text = "".join(chr(ord("a") + i % 26) for i in range(length))
    chunks = list(split_into_chunks(text, max_tokens))

    assert len(chunks) == math.ceil(length / (max_tokens * 4))
    assert all(len(chunk) <= max_tokens * 4 for chunk in chunks)
    assert "".join(chunks) == text


def test_split_empty_text_yields_nothing():
    assert list(split_into_chunks("", 4000)) == []


def test_split_rejects_non_positive_budget():
    with pytest.raises(ValueError):
        list(split_into_chunks("abc", 0))


def test_failed_chunk_gets_placeholder_and_others_still_run(make_fake_llm):
    llm = make_fake_llm(fail_on={1}, error=ExhaustedRetriesError(3))
    analyses = ChunkAnalyzer(llm).analyze_all(["first", "second", "third"])

    assert len(analyses) == 3
    assert analyses[1] == failed_chunk_placeholder(1) == "Analysis failed for chunk 2"
    assert analyses[0].startswith("analysis #1")
    assert analyses[2].startswith("analysis #3")
    assert "Part 2" in llm.prompts[1]


def test_status_error_also_falls_back_to_placeholder(make_fake_llm):
    llm = make_fake_llm(fail_on={0}, error=UpstreamStatusError(502, "bad gateway"))
    assert ChunkAnalyzer(llm).analyze_all(["only"]) == ["Analysis failed for chunk 1"]


def test_missing_configuration_is_not_masked(make_fake_llm):
    llm = make_fake_llm(fail_on={0}, error=ConfigurationError("Missing OPENROUTER_API_KEY environment variable"))
    with pytest.raises(ConfigurationError):
        ChunkAnalyzer(llm).analyze_all(["only"])


def test_unwrapped_sdk_error_falls_back_to_placeholder(make_fake_llm):
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://llm.test/api/v1/chat/completions"))
    llm = make_fake_llm(fail_on={0}, error=error)

    assert ChunkAnalyzer(llm).analyze_all(["one", "two"])[0] == "Analysis failed for chunk 1"
