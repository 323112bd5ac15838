from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from docflow.entities.comprehend_adapter import ComprehendAdapter, truncate_utf8
from docflow.entities.exceptions import EntityNetworkError

RESPONSE = {
    "Entities": [
        {
            "Text": "#42",
            "Type": "QUANTITY",
            "Score": 0.97,
            "BeginOffset": 8,
            "EndOffset": 11,
        }
    ],
    "ResponseMetadata": {"HTTPStatusCode": 200},
}


class TestComprehendAdapter:
    def test_maps_entities(self) -> None:
        client = MagicMock()
        client.detect_entities.return_value = RESPONSE

        result = ComprehendAdapter(client=client).detect("Invoice #42")

        client.detect_entities.assert_called_once_with(Text="Invoice #42", LanguageCode="en")
        assert result.to_payload() == [
            {"text": "#42", "type": "QUANTITY", "score": 0.97, "begin_offset": 8, "end_offset": 11}
        ]

    def test_passes_language_code(self) -> None:
        client = MagicMock()
        client.detect_entities.return_value = {"Entities": []}

        ComprehendAdapter(client=client).detect("Rechnung", "de")

        assert client.detect_entities.call_args.kwargs["LanguageCode"] == "de"

    def test_blank_text_skips_service(self) -> None:
        client = MagicMock()

        result = ComprehendAdapter(client=client).detect("")

        assert result.entities == []
        client.detect_entities.assert_not_called()

    def test_service_error_raises_network_error(self) -> None:
        client = MagicMock()
        client.detect_entities.side_effect = ClientError(
            {"Error": {"Code": "ThrottlingException", "Message": "slow down"}},
            "DetectEntities",
        )

        with pytest.raises(EntityNetworkError, match="Comprehend"):
            ComprehendAdapter(client=client).detect("text")

    def test_long_text_is_truncated(self) -> None:
        client = MagicMock()
        client.detect_entities.return_value = {"Entities": []}

        ComprehendAdapter(client=client).detect("a" * 150_000)

        assert len(client.detect_entities.call_args.kwargs["Text"]) == 100_000


class TestTruncateUtf8:
    def test_short_text_unchanged(self) -> None:
        assert truncate_utf8("héllo", 100) == "héllo"

    def test_never_splits_multibyte_character(self) -> None:
        # "é" is two bytes; a 3-byte cut falls inside the second one
        assert truncate_utf8("éé", 3) == "é"
