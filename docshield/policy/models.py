from dataclasses import dataclass, field

VALID_ACTIONS = frozenset({"redact", "mask", "replace", "hash", "encrypt"})


@dataclass(frozen=True)
class EntityPolicy:
    """How one entity type is anonymized."""

    action: str
    confidence_threshold: float = 0.5
    replacement: str | None = None


@dataclass(frozen=True)
class PolicyConfig:
    """Declarative anonymization policy, loaded once per job."""

    entity_configurations: dict[str, EntityPolicy] = field(default_factory=dict)
    default_action: str | None = "mask"
    confidence_threshold: float = 0.5
    entities: tuple[str, ...] = ()
    preserve_format: bool = True
    audit_trail: bool = True
    name: str = ""
    version: str = ""

    def entity_config(self, entity_type: str) -> EntityPolicy | None:
        return self.entity_configurations.get(entity_type)
