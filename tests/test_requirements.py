import json
from unittest.mock import patch

from jobalign.services.requirements import extract_requirements
from jobalign.utils.exceptions import ExternalServiceError

JD = "We are hiring a backend engineer with deep Kafka experience. " * 40


class TestExtractRequirements:
    """Test cases for JD requirement extraction"""

    @patch('jobalign.services.requirements.ollama_generate')
    def test_returns_requirements(self, mock_generate):
        mock_generate.return_value = json.dumps(["Kafka streaming at scale", "Python backend services"])

        reqs = extract_requirements(JD, count=5)

        assert reqs == ["Kafka streaming at scale", "Python backend services"]
        assert mock_generate.call_args.kwargs["temperature"] == 0.2
        assert mock_generate.call_args.kwargs["schema"] == {"type": "array", "items": {"type": "string"}}
        assert "top 5 most critical" in mock_generate.call_args.args[0]

    @patch('jobalign.services.requirements.ollama_generate')
    def test_truncates_to_count(self, mock_generate):
        mock_generate.return_value = json.dumps([f"req {i}" for i in range(10)])

        assert len(extract_requirements(JD, count=3)) == 3

    @patch('jobalign.services.requirements.ollama_generate')
    def test_accepts_wrapped_array(self, mock_generate):
        mock_generate.return_value = json.dumps({"requirements": ["Kafka", " ", "Go"]})

        assert extract_requirements(JD) == ["Kafka", "Go"]

    @patch('jobalign.services.requirements.ollama_generate')
    def test_failure_falls_back_to_truncated_jd(self, mock_generate):
        mock_generate.side_effect = ExternalServiceError("down")

        reqs = extract_requirements(JD)

        assert reqs == [JD[:1000]]

    @patch('jobalign.services.requirements.ollama_generate')
    def test_empty_output_falls_back(self, mock_generate):
        mock_generate.return_value = "[]"

        assert extract_requirements("short JD") == ["short JD"]

    @patch('jobalign.services.requirements.ollama_generate')
    def test_blank_jd(self, mock_generate):
        assert extract_requirements("   ") == []
        mock_generate.assert_not_called()
