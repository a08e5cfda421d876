"""Turns stored policy documents (YAML or legacy JSON) into PolicyConfig."""

import json
from typing import Any

import yaml

from docshield.policy.exceptions import PolicyError
from docshield.policy.models import VALID_ACTIONS, EntityPolicy, PolicyConfig

_DEFAULT_ENTITIES = (
    "EMAIL_ADDRESS",
    "SSN",
    "CREDIT_CARD",
    "PHONE_NUMBER",
    "PERSON",
    "DATE_TIME",
    "IP_ADDRESS",
    "URL",
)
_LEGACY_ENTITIES = ("EMAIL_ADDRESS", "SSN", "CREDIT_CARD")


def parse_policy_document(document: Any) -> PolicyConfig:
    """Parse a policy version's ``config`` column.

    The column holds either a YAML document (as a string) with
    ``detection.entities``, or a legacy JSON object with a flat entity list.

    Raises:
        PolicyError: if the document matches neither shape.
    """
    data = document
    if isinstance(document, str):
        try:
            data = yaml.safe_load(document)
        except yaml.YAMLError as exc:
            raise PolicyError(f"Invalid policy YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise PolicyError("Policy document must be a mapping")
    if "detection" in data:
        return _from_yaml(data)
    return _from_legacy(data)


def parse_legacy_config(raw: Any) -> PolicyConfig:
    """Parse a legacy JSON policy (``policies.config``)."""
    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PolicyError(f"Invalid legacy policy JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PolicyError("Legacy policy must be an object")
    return _from_legacy(data)


def default_policy_config() -> PolicyConfig:
    """Conservative policy used when none is specified or lookup fails."""
    return PolicyConfig(
        entity_configurations={
            entity: EntityPolicy(action="redact", confidence_threshold=0.8)
            for entity in _DEFAULT_ENTITIES
        },
        default_action="redact",
        confidence_threshold=0.8,
        entities=_DEFAULT_ENTITIES,
        name="default",
    )


def _from_yaml(data: dict[str, Any]) -> PolicyConfig:
    detection = data.get("detection")
    if not isinstance(detection, dict) or not isinstance(detection.get("entities"), list):
        raise PolicyError("'detection.entities' must be a list")

    configurations: dict[str, EntityPolicy] = {}
    for i, entity in enumerate(detection["entities"]):
        if not isinstance(entity, dict):
            raise PolicyError(f"Entity at index {i} must be a mapping")
        entity_type = entity.get("type")
        if not entity_type or not isinstance(entity_type, str):
            raise PolicyError(f"Entity at index {i}: 'type' must be a non-empty string")
        configurations[entity_type] = EntityPolicy(
            action=_action(entity.get("action"), f"Entity {entity_type}"),
            confidence_threshold=_threshold(entity.get("confidence_threshold", 0.5), entity_type),
            replacement=entity.get("replacement"),
        )

    anonymization = data.get("anonymization") or {}
    if not isinstance(anonymization, dict):
        raise PolicyError("'anonymization' must be a mapping")
    default_action = anonymization.get("default_action")
    thresholds = [c.confidence_threshold for c in configurations.values()]

    return PolicyConfig(
        entity_configurations=configurations,
        default_action=_action(default_action, "default_action") if default_action else None,
        confidence_threshold=min(thresholds) if thresholds else 0.5,
        entities=tuple(configurations),
        preserve_format=bool(anonymization.get("preserve_format", True)),
        audit_trail=bool(anonymization.get("audit_trail", True)),
        name=str(data.get("name", "")),
        version=str(data.get("version", "")),
    )


def _from_legacy(data: dict[str, Any]) -> PolicyConfig:
    entities = data.get("entities") or list(_LEGACY_ENTITIES)
    if not isinstance(entities, list) or not all(isinstance(e, str) for e in entities):
        raise PolicyError("'entities' must be a list of strings")
    threshold = _threshold(data.get("confidence_threshold", 0.5), "policy")
    anonymization = data.get("anonymization") or {}
    action = _action(anonymization.get("default_anonymizer", "redact"), "default_anonymizer")
    return PolicyConfig(
        entity_configurations={
            entity: EntityPolicy(action=action, confidence_threshold=threshold)
            for entity in entities
        },
        default_action=action,
        confidence_threshold=threshold,
        entities=tuple(entities),
        preserve_format=bool(anonymization.get("preserve_format", True)),
        audit_trail=bool(anonymization.get("audit_trail", True)),
    )


def _action(raw: Any, where: str) -> str:
    if not isinstance(raw, str) or raw.lower() not in VALID_ACTIONS:
        raise PolicyError(f"{where}: action must be one of {sorted(VALID_ACTIONS)}, got {raw!r}")
    return raw.lower()


def _threshold(raw: Any, where: str) -> float:
    if not isinstance(raw, (int, float)) or isinstance(raw, bool) or not 0.0 <= raw <= 1.0:
        raise PolicyError(f"{where}: confidence_threshold must be a number in [0, 1]")
    return float(raw)
