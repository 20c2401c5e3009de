"""Billing details captured on the checkout form."""

from dataclasses import asdict, dataclass, fields, replace

REQUIRED_FIELDS = {
    "full_name": "Full name is required",
    "email": "Email is required",
    "phone": "Phone number is required",
    "address_line1": "Address is required",
    "city": "City is required",
    "state": "State is required",
    "postal_code": "Postal code is required",
    "country": "Country is required",
}


@dataclass(frozen=True)
class BillingInfo:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"
    notes: str = ""

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_dict(cls, data: dict) -> "BillingInfo":
        known = cls.field_names()
        return cls(**{key: value or "" for key, value in data.items() if key in known})

    def with_field(self, name: str, value: str) -> "BillingInfo":
        if name not in self.field_names():
            raise ValueError(f"Unknown billing field: {name}")
        return replace(self, **{name: value})

    def to_dict(self) -> dict:
        return asdict(self)

    def address(self) -> dict | None:
        """Postal address block, or None when no street address was given."""
        if not self.address_line1:
            return None
        return {
            "line1": self.address_line1,
            "line2": self.address_line2 or None,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


def validate_billing(billing: BillingInfo) -> dict[str, str]:
    """Return a field -> message map for every blank required field."""
    return {name: message for name, message in REQUIRED_FIELDS.items() if not getattr(billing, name).strip()}
