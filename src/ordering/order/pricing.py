"""PricingCalculator: server-side shipping, tax and total.

Pure and deterministic: the same subtotal and region always produce the same
breakdown, so a client-side estimate and the confirmed total agree to the
cent. Tax is rounded once on the subtotal (half-up), never per line.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.config import DEFAULT_REMOTE_REGIONS, Settings
from shared.money import round_money, to_decimal


@dataclass(frozen=True)
class PricingPolicy:
    shipping_base_fee: Decimal = Decimal("50")
    free_shipping_threshold: Decimal = Decimal("250")
    remote_region_surcharge: Decimal = Decimal("150")
    tax_rate: Decimal = Decimal("0.18")
    remote_regions: frozenset[str] = frozenset(region.lower() for region in DEFAULT_REMOTE_REGIONS)
    currency: str = "INR"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingPolicy":
        return cls(
            shipping_base_fee=settings.shipping_base_fee,
            free_shipping_threshold=settings.free_shipping_threshold,
            remote_region_surcharge=settings.remote_region_surcharge,
            tax_rate=settings.tax_rate,
            remote_regions=frozenset(region.lower() for region in settings.remote_regions),
            currency=settings.currency,
        )


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    currency: str

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping_cost": self.shipping,
            "tax_amount": self.tax,
            "total_price": self.total,
        }


class PricingCalculator:
    def __init__(self, policy: PricingPolicy | None = None) -> None:
        self.policy = policy or PricingPolicy()

    def is_remote(self, region: str | None) -> bool:
        return bool(region) and region.strip().lower() in self.policy.remote_regions

    def shipping(self, subtotal, region: str | None) -> Decimal:
        subtotal = to_decimal(subtotal)
        fee = Decimal("0") if subtotal >= self.policy.free_shipping_threshold else self.policy.shipping_base_fee
        if self.is_remote(region):
            fee += self.policy.remote_region_surcharge
        return round_money(fee)

    def tax(self, subtotal) -> Decimal:
        return round_money(to_decimal(subtotal) * self.policy.tax_rate)

    def total(self, subtotal, region: str | None) -> PriceBreakdown:
        subtotal = round_money(subtotal)
        shipping = self.shipping(subtotal, region)
        tax = self.tax(subtotal)
        return PriceBreakdown(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=subtotal + shipping + tax,
            currency=self.policy.currency,
        )
