import pytest

from docshield.policy.exceptions import PolicyError
from docshield.policy.parser import (
    default_policy_config,
    parse_legacy_config,
    parse_policy_document,
)

YAML_POLICY = """
name: HR documents
version: "2"
detection:
  entities:
    - type: EMAIL_ADDRESS
      confidence_threshold: 0.7
      action: mask
    - type: SSN
      confidence_threshold: 0.9
      action: replace
      replacement: "<SSN>"
anonymization:
  default_action: redact
  preserve_format: false
"""


class TestParseYamlPolicy:
    def test_entity_configurations(self) -> None:
        policy = parse_policy_document(YAML_POLICY)
        assert policy.entity_config("EMAIL_ADDRESS").action == "mask"
        assert policy.entity_config("SSN").replacement == "<SSN>"
        assert policy.entity_config("PERSON") is None
        assert policy.entities == ("EMAIL_ADDRESS", "SSN")

    def test_policy_level_fields(self) -> None:
        policy = parse_policy_document(YAML_POLICY)
        assert policy.default_action == "redact"
        assert policy.confidence_threshold == 0.7
        assert policy.preserve_format is False
        assert policy.audit_trail is True
        assert policy.name == "HR documents"
        assert policy.version == "2"

    def test_accepts_parsed_mapping(self) -> None:
        policy = parse_policy_document(
            {"detection": {"entities": [{"type": "PERSON", "action": "HASH"}]}}
        )
        assert policy.entity_config("PERSON").action == "hash"
        assert policy.default_action is None

    def test_no_entities_uses_default_threshold(self) -> None:
        policy = parse_policy_document({"detection": {"entities": []}})
        assert policy.confidence_threshold == 0.5

    def test_invalid_action(self) -> None:
        with pytest.raises(PolicyError, match="action must be one of"):
            parse_policy_document(
                {"detection": {"entities": [{"type": "SSN", "action": "shred"}]}}
            )

    def test_threshold_out_of_range(self) -> None:
        with pytest.raises(PolicyError, match="confidence_threshold"):
            parse_policy_document(
                {
                    "detection": {
                        "entities": [
                            {"type": "SSN", "action": "mask", "confidence_threshold": 2}
                        ]
                    }
                }
            )

    def test_entities_must_be_list(self) -> None:
        with pytest.raises(PolicyError, match="detection.entities"):
            parse_policy_document({"detection": {"entities": "SSN"}})

    def test_malformed_yaml(self) -> None:
        with pytest.raises(PolicyError, match="Invalid policy YAML"):
            parse_policy_document("detection: [unclosed")

    def test_scalar_document(self) -> None:
        with pytest.raises(PolicyError, match="mapping"):
            parse_policy_document("just a string")


class TestParseLegacyPolicy:
    def test_flat_entity_list(self) -> None:
        policy = parse_policy_document(
            {
                "entities": ["EMAIL_ADDRESS", "PHONE_NUMBER"],
                "confidence_threshold": 0.6,
                "anonymization": {"default_anonymizer": "mask"},
            }
        )
        assert policy.default_action == "mask"
        assert policy.entity_config("PHONE_NUMBER").action == "mask"
        assert policy.entity_config("PHONE_NUMBER").confidence_threshold == 0.6

    def test_defaults_when_empty(self) -> None:
        policy = parse_legacy_config({})
        assert policy.entities == ("EMAIL_ADDRESS", "SSN", "CREDIT_CARD")
        assert policy.default_action == "redact"

    def test_json_string(self) -> None:
        policy = parse_legacy_config('{"entities": ["SSN"]}')
        assert policy.entities == ("SSN",)

    def test_invalid_json(self) -> None:
        with pytest.raises(PolicyError, match="Invalid legacy policy JSON"):
            parse_legacy_config("{not json")

    def test_entities_must_be_strings(self) -> None:
        with pytest.raises(PolicyError, match="list of strings"):
            parse_legacy_config({"entities": [1, 2]})


class TestDefaultPolicy:
    def test_redacts_common_entities(self) -> None:
        policy = default_policy_config()
        assert len(policy.entities) == 8
        assert policy.default_action == "redact"
        assert policy.confidence_threshold == 0.8
        assert all(c.action == "redact" for c in policy.entity_configurations.values())
