"""Runtime settings for checkout, read from the environment.

Protean's own configuration (providers, brokers) stays with Protean and is
selected through ``PROTEAN_ENV``; this module holds the storefront-level knobs.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class CompanyInfo:
    """Letterhead block printed on every invoice."""

    name: str = "Digital Comrade"
    address: str = "Your Business Address, City, State - PIN"
    email: str = "contact@digitalcomrade.com"
    phone: str = "+91 XXXXX XXXXX"
    gstin: str | None = "GSTIN: XXXXXXXXXXXXXXX"


@dataclass(frozen=True)
class Settings:
    currency: str = "INR"
    brand_name: str = "Digital Comrade"
    theme_color: str = "#01478c"
    gateway_name: str = "razorpay"
    fallback_gateway_key: str = "rzp_test_PLACEHOLDER"
    invoice_bucket: str = "documents"
    storage_public_base_url: str = "https://storage.local/public"
    default_country: str = "India"
    session_ttl_seconds: int = 1800
    company: CompanyInfo = field(default_factory=CompanyInfo)

    @classmethod
    def from_env(cls) -> "Settings":
        company = CompanyInfo(
            name=os.getenv("COMPANY_NAME", CompanyInfo.name),
            address=os.getenv("COMPANY_ADDRESS", CompanyInfo.address),
            email=os.getenv("COMPANY_EMAIL", CompanyInfo.email),
            phone=os.getenv("COMPANY_PHONE", CompanyInfo.phone),
            gstin=os.getenv("COMPANY_GSTIN", CompanyInfo.gstin) or None,
        )
        return cls(
            currency=os.getenv("CHECKOUT_CURRENCY", cls.currency).upper(),
            brand_name=os.getenv("CHECKOUT_BRAND_NAME", company.name),
            theme_color=os.getenv("CHECKOUT_THEME_COLOR", cls.theme_color),
            fallback_gateway_key=os.getenv("RAZORPAY_KEY_ID", cls.fallback_gateway_key),
            invoice_bucket=os.getenv("INVOICE_BUCKET", cls.invoice_bucket),
            storage_public_base_url=os.getenv("STORAGE_PUBLIC_BASE_URL", cls.storage_public_base_url),
            default_country=os.getenv("CHECKOUT_DEFAULT_COUNTRY", cls.default_country),
            session_ttl_seconds=int(os.getenv("CHECKOUT_SESSION_TTL", cls.session_ttl_seconds)),
            company=company,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings.from_env()
