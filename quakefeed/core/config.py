"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

import enum
from dataclasses import dataclass, field
from urllib.parse import quote

from quakefeed.core.admission import (
    DEFAULT_PRIORITY_COUNTRIES,
    DEFAULT_TIERS,
    AdmissionPolicy,
    AdmissionTier,
)
from quakefeed.core.geo import ReferencePoint, THAILAND


TMD_FEED_URL = "https://earthquake.tmd.go.th/feed/rss_tmd.xml"
USGS_FEED_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_day.geojson"


class ClientProfile(str, enum.Enum):
    """Device class that scales timeouts and result sizes."""
    CONSTRAINED = "constrained"
    STANDARD = "standard"

    @classmethod
    def from_viewport_width(cls, width: int, breakpoint_px: int) -> "ClientProfile":
        """Pick the profile for a viewport width."""
        return cls.CONSTRAINED if width < breakpoint_px else cls.STANDARD


@dataclass(frozen=True)
class RelayEndpoint:
    """A relay that fetches a URL on our behalf.

    Attributes:
        name: Identifier used in logs
        template: URL template containing "{url}"
        encode: Percent-encode the target URL before substitution
        json_field: If set, the relay wraps the body in JSON under this key
    """
    name: str
    template: str
    encode: bool = True
    json_field: str | None = None

    def build_url(self, target_url: str) -> str:
        """Build the relay request URL for a target."""
        value = quote(target_url, safe="") if self.encode else target_url
        return self.template.replace("{url}", value)


DEFAULT_RELAYS: tuple[RelayEndpoint, ...] = (
    RelayEndpoint(name="allorigins", template="https://api.allorigins.win/raw?url={url}"),
    RelayEndpoint(name="codetabs", template="https://api.codetabs.com/v1/proxy?quest={url}"),
    RelayEndpoint(
        name="cors-anywhere",
        template="https://cors-anywhere.herokuapp.com/{url}",
        encode=False,
    ),
)


@dataclass(frozen=True)
class ProfileSettings:
    """Timeouts and result sizes for one client profile.

    Attributes:
        tmd_timeout_ms: TMD source fetch budget
        usgs_timeout_ms: USGS source fetch budget
        tmd_combined_timeout_ms: Outer TMD deadline inside a combined load
        usgs_combined_timeout_ms: Outer USGS deadline inside a combined load
        max_agency_items: Feed items read from the TMD document
        max_global_records: Records kept from the USGS feed
        max_records: Records kept in a combined result
    """
    tmd_timeout_ms: int
    usgs_timeout_ms: int
    tmd_combined_timeout_ms: int
    usgs_combined_timeout_ms: int
    max_agency_items: int
    max_global_records: int
    max_records: int


MOBILE_SETTINGS = ProfileSettings(
    tmd_timeout_ms=3000,
    usgs_timeout_ms=3500,
    tmd_combined_timeout_ms=2000,
    usgs_combined_timeout_ms=1500,
    max_agency_items=8,
    max_global_records=7,
    max_records=12,
)

DESKTOP_SETTINGS = ProfileSettings(
    tmd_timeout_ms=5000,
    usgs_timeout_ms=5000,
    tmd_combined_timeout_ms=3000,
    usgs_combined_timeout_ms=2500,
    max_agency_items=12,
    max_global_records=10,
    max_records=18,
)


@dataclass
class LoaderConfig:
    """Data loader configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        ttl_ms: How long cached results stay fresh
        mobile_breakpoint_px: Viewport width below which clients are constrained
        magnitude_floor: Exclusive magnitude floor for every filter
        tmd_url: TMD RSS feed URL
        usgs_url: USGS GeoJSON feed URL
        relays: Relay endpoints, tried in order
        priority_countries: Places admitted from the global feed at any distance
        tiers: Magnitude/distance admission tiers
        reference_point: Point distances are measured from
        mobile: Settings for constrained clients
        desktop: Settings for standard clients
    """
    ttl_ms: int = 5 * 60 * 1000
    mobile_breakpoint_px: int = 768
    magnitude_floor: float = 3.5
    tmd_url: str = TMD_FEED_URL
    usgs_url: str = USGS_FEED_URL
    relays: tuple[RelayEndpoint, ...] = DEFAULT_RELAYS
    priority_countries: tuple[str, ...] = DEFAULT_PRIORITY_COUNTRIES
    tiers: tuple[AdmissionTier, ...] = DEFAULT_TIERS
    reference_point: ReferencePoint = THAILAND
    mobile: ProfileSettings = field(default_factory=lambda: MOBILE_SETTINGS)
    desktop: ProfileSettings = field(default_factory=lambda: DESKTOP_SETTINGS)

    def profile_for(self, viewport_width: int) -> ClientProfile:
        """Classify a viewport width."""
        return ClientProfile.from_viewport_width(viewport_width, self.mobile_breakpoint_px)

    def settings_for(self, profile: ClientProfile) -> ProfileSettings:
        """Settings that apply to a client profile."""
        if profile is ClientProfile.CONSTRAINED:
            return self.mobile
        return self.desktop

    def admission_policy(self) -> AdmissionPolicy:
        """Admission policy for the global feed."""
        return AdmissionPolicy(
            magnitude_floor=self.magnitude_floor,
            priority_countries=self.priority_countries,
            tiers=self.tiers,
            reference=self.reference_point,
        )


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _validate_profile(name: str, settings: ProfileSettings) -> list[ValidationError]:
    errors = []

    for attr in (
        "tmd_timeout_ms",
        "usgs_timeout_ms",
        "tmd_combined_timeout_ms",
        "usgs_combined_timeout_ms",
        "max_agency_items",
        "max_global_records",
        "max_records",
    ):
        if getattr(settings, attr) <= 0:
            errors.append(ValidationError(
                field=f"{name}.{attr}",
                message=f"{attr} must be positive",
            ))

    # The outer deadline only bounds anything when it is the shorter one
    if settings.tmd_combined_timeout_ms > settings.tmd_timeout_ms:
        errors.append(ValidationError(
            field=f"{name}.tmd_combined_timeout_ms",
            message="Combined TMD timeout is longer than the TMD fetch timeout",
            severity="warning",
        ))
    if settings.usgs_combined_timeout_ms > settings.usgs_timeout_ms:
        errors.append(ValidationError(
            field=f"{name}.usgs_combined_timeout_ms",
            message="Combined USGS timeout is longer than the USGS fetch timeout",
            severity="warning",
        ))

    return errors


def validate_config(config: LoaderConfig) -> ValidationResult:
    """Validate a loader configuration.

    Pure function.

    Args:
        config: Configuration to check

    Returns:
        ValidationResult listing every problem found
    """
    errors: list[ValidationError] = []

    if config.ttl_ms <= 0:
        errors.append(ValidationError(field="ttl_ms", message="TTL must be positive"))

    if config.mobile_breakpoint_px <= 0:
        errors.append(ValidationError(
            field="mobile_breakpoint_px",
            message="Breakpoint must be positive",
        ))

    if not config.relays:
        errors.append(ValidationError(field="relays", message="At least one relay is required"))

    for i, relay in enumerate(config.relays):
        if "{url}" not in relay.template:
            errors.append(ValidationError(
                field=f"relays[{i}].template",
                message=f"Relay '{relay.name}' template has no {{url}} placeholder",
            ))

    if not config.priority_countries:
        errors.append(ValidationError(
            field="priority_countries",
            message="No priority countries; only distance tiers will admit records",
            severity="warning",
        ))

    errors.extend(_validate_profile("mobile", config.mobile))
    errors.extend(_validate_profile("desktop", config.desktop))

    return ValidationResult(
        valid=not any(e.severity == "error" for e in errors),
        errors=errors,
    )
