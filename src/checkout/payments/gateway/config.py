"""Gateway configuration records and public key resolution."""

import json

from protean.exceptions import ProteanException
from protean.fields import Boolean, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@checkout.aggregate
class GatewayConfig:
    name = String(required=True, max_length=50)
    is_active = Boolean(default=False)
    is_test_mode = Boolean(default=True)
    config = Text()  # JSON: live credentials, e.g. {"key_id": "rzp_live_..."}
    test_config = Text()  # JSON: test credentials

    def active_credentials(self) -> dict:
        raw = self.test_config if self.is_test_mode else self.config
        return json.loads(raw) if raw else {}


class GatewayKeyResolver:
    """Finds the public key checkout should hand to the gateway SDK.

    Falls back to ``fallback_key`` whenever the stored configuration is
    missing or unreadable, so checkout keeps working in degraded mode.
    """

    def __init__(self, gateway_name: str, fallback_key: str) -> None:
        self.gateway_name = gateway_name
        self.fallback_key = fallback_key

    def get_key(self) -> str:
        try:
            record = (
                current_domain.repository_for(GatewayConfig)
                ._dao.query.filter(name=self.gateway_name, is_active=True)
                .all()
                .first
            )
        except ProteanException as exc:
            logger.error("Gateway config lookup failed", gateway=self.gateway_name, error=str(exc))
            return self.fallback_key

        if record is None:
            logger.warning("No active gateway config, using fallback key", gateway=self.gateway_name)
            return self.fallback_key

        try:
            key_id = record.active_credentials().get("key_id")
        except (json.JSONDecodeError, AttributeError) as exc:
            logger.error("Gateway config is unreadable", gateway=self.gateway_name, error=str(exc))
            return self.fallback_key

        if not key_id:
            logger.warning(
                "Gateway config has no key_id, using fallback key",
                gateway=self.gateway_name,
                mode="TEST" if record.is_test_mode else "LIVE",
            )
            return self.fallback_key

        logger.info(
            "Using stored gateway key",
            gateway=self.gateway_name,
            mode="TEST" if record.is_test_mode else "LIVE",
            key_preview=key_id[:15] + "...",
        )
        return key_id
