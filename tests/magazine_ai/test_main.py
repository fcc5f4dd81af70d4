"""Tests for the batch generation CLI helpers."""

import json

import pytest

from src.magazine_ai.content_generator.main import load_requests, run_batch


@pytest.fixture
def sample_requests_path(project_root):
    return project_root / "fixtures" / "sample_requests.json"


class TestLoadRequests:
    def test_sample_fixture(self, sample_requests_path):
        requests = load_requests(sample_requests_path)
        assert [r.section_type for r in requests] == ["maries-corner", "pro-tips", "custom-section"]
        assert requests[0].context.global_instruction == "Write in a warm, professional voice."
        assert requests[1].context.variables == {"skillLevel": "intermediate"}

    def test_non_list_rejected(self, tmp_path):
        path = tmp_path / "requests.json"
        path.write_text(json.dumps({"sectionType": "pro-tips"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_requests(path)


class TestRunBatch:
    @pytest.mark.asyncio
    async def test_synthetic_run_without_keys(self, sample_requests_path, settings, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        output = await run_batch(load_requests(sample_requests_path), settings, 2, True)

        assert list(output) == ["request-0", "request-1", "request-2"]
        assert all(result["success"] for result in output.values())
        assert "mainStory" in output["request-0"]["data"]
        assert output["request-0"]["block_results"][0]["synthetic"] is True
        json.dumps(output)
