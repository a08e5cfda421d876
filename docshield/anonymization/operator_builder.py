"""Maps a policy and the discovered entity types to concrete operators."""

from docshield.anonymization.models import (
    AnonymizationOperator,
    HashOperator,
    MaskOperator,
    RedactOperator,
    ReplaceOperator,
)
from docshield.logging.logger import Log
from docshield.masking import rules
from docshield.policy.models import PolicyConfig
from docshield.processor.models import Finding

FALLBACK_ACTION = "mask"


class OperatorBuilder:
    """Builds one operator per distinct entity type found in the document."""

    def build(
        self,
        policy: PolicyConfig,
        findings: list[Finding],
    ) -> dict[str, AnonymizationOperator]:
        """Return an operator for every entity type present in *findings*.

        Action precedence: entity configuration, then the policy default,
        then ``mask`` so an unconfigured type is never left in clear text.
        """
        entity_types = sorted({f.entity_type for f in findings if f.entity_type})
        operators = {
            entity_type: self.operator_for(
                self.action_for(policy, entity_type),
                entity_type,
                self._policy_replacement(policy, entity_type),
            )
            for entity_type in entity_types
        }
        Log.debug(f"Built {len(operators)} anonymization operators for {entity_types}")
        return operators

    def action_for(self, policy: PolicyConfig, entity_type: str) -> str:
        entity_config = policy.entity_config(entity_type)
        if entity_config is not None and entity_config.action:
            return entity_config.action
        return policy.default_action or FALLBACK_ACTION

    def resolve_action(self, policy: PolicyConfig, finding: Finding) -> str:
        """Action for a single finding; a per-finding override wins."""
        if finding.action:
            return finding.action.lower()
        return self.action_for(policy, finding.entity_type)

    @staticmethod
    def operator_for(
        action: str,
        entity_type: str,
        replacement: str | None = None,
    ) -> AnonymizationOperator:
        action = action.lower()
        if action == "redact":
            return RedactOperator()
        if action == "mask":
            return MaskOperator(
                masking_char="*",
                chars_to_mask=rules.default_mask_length(entity_type),
                from_end=True,
            )
        if action == "replace":
            value = replacement or rules.default_replacement(entity_type) or rules.REDACTED
            return ReplaceOperator(new_value=value)
        if action == "hash":
            return HashOperator(hash_type="sha256")
        return RedactOperator()

    @staticmethod
    def _policy_replacement(policy: PolicyConfig, entity_type: str) -> str | None:
        entity_config = policy.entity_config(entity_type)
        return entity_config.replacement if entity_config is not None else None
