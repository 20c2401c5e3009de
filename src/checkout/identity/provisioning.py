"""Guest account provisioning.

A guest who completes checkout gets an account bound to their billing email,
with a generated password shown to them once. Provisioning is best-effort:
every failure is logged and reported in the result, never raised, and never
undoes the order.
"""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from checkout.errors import ProvisioningFailure
from checkout.identity.passwords import generate_secure_password
from checkout.identity.port import IdentityProvider
from checkout.ordering.placement import LinkOrderToCustomer
from checkout.shared.billing import BillingInfo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

PASSWORD_LENGTH = 12


@dataclass(frozen=True)
class GuestCredentials:
    """Shown to the buyer once, then dropped. Never persisted."""

    email: str
    password: str = field(repr=False)
    user_id: str


@dataclass(frozen=True)
class ProvisioningResult:
    success: bool
    credentials: GuestCredentials | None = None
    order_linked: bool = False
    error: ProvisioningFailure | None = None


class AccountProvisioner:
    def __init__(self, identity: IdentityProvider) -> None:
        self.identity = identity

    async def provision(self, order_id: str, billing: BillingInfo) -> ProvisioningResult:
        if not billing.email:
            return ProvisioningResult(success=False, error=ProvisioningFailure("No email to register"))

        logger.info("Creating account for guest checkout", order_id=order_id)

        try:
            password = generate_secure_password(PASSWORD_LENGTH)
            user_id = await self.identity.sign_up(
                billing.email,
                password,
                {
                    "full_name": billing.full_name,
                    "phone": billing.phone,
                    "created_via": "checkout",
                    "initial_order_id": order_id,
                },
            )
        except Exception as exc:
            logger.error("Guest account creation failed", order_id=order_id, error=str(exc))
            return ProvisioningResult(success=False, error=ProvisioningFailure(str(exc)))

        if not user_id:
            logger.warning("Identity provider returned no user", order_id=order_id)
            return ProvisioningResult(success=False, error=ProvisioningFailure("No user data returned"))

        logger.info("Guest account created", order_id=order_id, user_id=user_id)

        order_linked = True
        try:
            current_domain.process(LinkOrderToCustomer(order_id=order_id, user_id=user_id), asynchronous=False)
        except Exception as exc:
            order_linked = False
            logger.error("Failed to link order to new account", order_id=order_id, user_id=user_id, error=str(exc))

        return ProvisioningResult(
            success=True,
            credentials=GuestCredentials(email=billing.email, password=password, user_id=user_id),
            order_linked=order_linked,
        )
