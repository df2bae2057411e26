"""Process settings read from the environment.

Every knob has a default so the platform runs out of the box in development
and tests. ``PROTEAN_ENV`` / ``ENVIRONMENT`` pick the environment the same way
the logging configuration does.
"""

import os
from dataclasses import dataclass
from decimal import Decimal

DEFAULT_REMOTE_REGIONS = ("Jammu and Kashmir", "Arunachal Pradesh", "Ladakh")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    catalog_database_uri: str = ""
    media_folder: str = "Posters"
    upload_workers: int = 4
    shipping_base_fee: Decimal = Decimal("50")
    free_shipping_threshold: Decimal = Decimal("250")
    remote_region_surcharge: Decimal = Decimal("150")
    tax_rate: Decimal = Decimal("0.18")
    remote_regions: tuple[str, ...] = DEFAULT_REMOTE_REGIONS
    currency: str = "INR"

    @classmethod
    def from_env(cls) -> "Settings":
        env = (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()
        return cls(
            environment=env,
            catalog_database_uri=os.getenv("CATALOG_DATABASE_URI", ""),
            media_folder=os.getenv("MEDIA_FOLDER", "Posters"),
            upload_workers=int(os.getenv("UPLOAD_WORKERS", "4")),
            shipping_base_fee=Decimal(os.getenv("SHIPPING_BASE_FEE", "50")),
            free_shipping_threshold=Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "250")),
            remote_region_surcharge=Decimal(os.getenv("REMOTE_REGION_SURCHARGE", "150")),
            tax_rate=Decimal(os.getenv("TAX_RATE", "0.18")),
            remote_regions=_env_list("REMOTE_REGIONS", DEFAULT_REMOTE_REGIONS),
            currency=os.getenv("CURRENCY", "INR"),
        )

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "staging")
