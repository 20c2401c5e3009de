"""Awaitable wrapper around the callback-driven gateway SDK.

``initiate`` turns the SDK's three callbacks into a single awaited outcome:
a ``GatewayResult`` on success, ``PaymentCancelled`` when the buyer dismisses
the surface, ``PaymentFailed`` when the gateway reports a failure. There is
no timeout; the surface stays open until the buyer acts.
"""

import asyncio

from checkout.errors import PaymentCancelled, PaymentFailed
from checkout.payments.gateway.port import PAYMENT_FAILED_EVENT, CheckoutSDK, GatewayResult, PaymentOptions
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentGatewayAdapter:
    def __init__(self, sdk: CheckoutSDK) -> None:
        self.sdk = sdk
        self._loaded = False
        self._loading: asyncio.Task | None = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def _load(self) -> None:
        try:
            await self.sdk.load()
        except BaseException:
            # Forget the failed attempt so a resubmitted checkout loads again
            self._loading = None
            raise
        self._loaded = True
        logger.info("Payment SDK loaded", sdk=type(self.sdk).__name__)

    async def ensure_loaded(self) -> None:
        """Load the SDK once; concurrent callers wait on the same load."""
        if self._loaded:
            return
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load())
        try:
            await asyncio.shield(self._loading)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Payment SDK failed to load", error=str(exc))
            raise PaymentFailed("Failed to load payment SDK") from exc

    async def initiate(self, options: PaymentOptions) -> GatewayResult:
        await self.ensure_loaded()

        loop = asyncio.get_running_loop()
        settled: asyncio.Future = loop.create_future()

        def _settle(result: GatewayResult | None = None, error: Exception | None = None) -> None:
            if settled.done():
                return
            if error is not None:
                settled.set_exception(error)
            else:
                settled.set_result(result)

        def on_success(response: dict) -> None:
            transaction_id = (response or {}).get("razorpay_payment_id")
            if not transaction_id:
                logger.error("Gateway success response has no payment id", keys=sorted(response or {}))
                loop.call_soon_threadsafe(_settle, None, PaymentFailed("Payment response was incomplete"))
                return
            result = GatewayResult(
                transaction_id=transaction_id,
                gateway_order_id=response.get("razorpay_order_id"),
                signature=response.get("razorpay_signature"),
            )
            loop.call_soon_threadsafe(_settle, result, None)

        def on_dismiss() -> None:
            loop.call_soon_threadsafe(_settle, None, PaymentCancelled())

        def on_failure(response: dict) -> None:
            reason = (response.get("error") or {}).get("description")
            loop.call_soon_threadsafe(_settle, None, PaymentFailed(reason))

        sdk_options = options.to_sdk_options()
        sdk_options["handler"] = on_success
        sdk_options["modal"] = {"ondismiss": on_dismiss}

        try:
            checkout = self.sdk.create(sdk_options)
            checkout.on(PAYMENT_FAILED_EVENT, on_failure)
            checkout.open()
        except (KeyError, TypeError, ValueError, RuntimeError) as exc:
            logger.error("Payment surface could not be opened", error=str(exc))
            raise PaymentFailed("Payment could not be started") from exc

        logger.info(
            "Payment surface opened",
            amount=options.amount,
            currency=options.currency,
            key_preview=options.key[:15] + "...",
        )
        return await settled
