from typing import Any

from psycopg.rows import dict_row

from docshield.database.connection import get_connection
from docshield.logging.logger import Log
from docshield.policy.exceptions import PolicyError
from docshield.policy.models import PolicyConfig
from docshield.policy.parser import (
    default_policy_config,
    parse_legacy_config,
    parse_policy_document,
)


class PolicyRepository:
    """Reads policy configuration from the policies and policy_versions tables."""

    def load(self, policy_id: str | None) -> PolicyConfig:
        """Return the active configuration of *policy_id*.

        The newest active policy version wins; without one the policy's own
        legacy config is used. A missing policy id, a missing policy, or a
        config that cannot be parsed all yield the default policy.
        """
        if policy_id is None:
            Log.info("No policy on job, using default policy")
            return default_policy_config()

        version_config = self._active_version_config(policy_id)
        if version_config is not None:
            try:
                return parse_policy_document(version_config)
            except PolicyError as exc:
                Log.warning(
                    f"Active version of policy {policy_id} is invalid, "
                    f"trying legacy config: {exc}"
                )

        legacy_config = self._legacy_config(policy_id)
        if legacy_config is None:
            Log.warning(f"Policy {policy_id} not found, using default policy")
            return default_policy_config()

        try:
            return parse_legacy_config(legacy_config)
        except PolicyError as exc:
            Log.warning(f"Policy {policy_id} config is invalid, using default policy: {exc}")
            return default_policy_config()

    def _active_version_config(self, policy_id: str) -> Any:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT config
                    FROM policy_versions
                    WHERE "policyId" = %s AND "isActive" = true
                    ORDER BY "createdAt" DESC
                    LIMIT 1
                    """,
                    (policy_id,),
                )
                row = cur.fetchone()
        return row["config"] if row else None

    def _legacy_config(self, policy_id: str) -> Any:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT config FROM policies WHERE id = %s",
                    (policy_id,),
                )
                row = cur.fetchone()
        return row["config"] if row else None
