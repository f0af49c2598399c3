"""Channel and margin resolution — settings-driven stand-in for the pricing service."""

from dataclasses import dataclass

from staysearch.config import settings

CHANNELS = ("b2c", "cug")


@dataclass(frozen=True)
class PricingInputs:
    channel: str = "b2c"
    margin: float | None = None
    additional_markup: float | None = None
    display_discount_percent: float | None = None

    @property
    def is_cug(self) -> bool:
        return self.channel == "cug"

    def debug_headers(self) -> dict[str, str]:
        headers = {
            "X-Rate-Channel": self.channel,
            "X-Rate-Margin": _fmt(self.margin) if self.margin is not None else "none",
        }
        if self.additional_markup is not None:
            headers["X-Rate-AdditionalMarkup"] = _fmt(self.additional_markup)
        return headers


def resolve_pricing(channel: str | None) -> PricingInputs:
    """Map a channel name to the margin inputs sent upstream. B2C sends no margin."""
    channel = (channel or settings.default_channel).lower()
    if channel not in CHANNELS:
        channel = settings.default_channel
    if channel == "cug":
        return PricingInputs(
            channel=channel,
            margin=settings.cug_margin,
            additional_markup=settings.cug_additional_markup,
            display_discount_percent=settings.cug_display_discount_percent,
        )
    return PricingInputs(channel=channel)


def api_key_for_channel(channel: str) -> str:
    if channel == "cug" and settings.liteapi_cug_api_key:
        return settings.liteapi_cug_api_key
    return settings.liteapi_api_key


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
