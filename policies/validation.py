"""
Input validation module with policy-driven rules.

Validation rules are loaded from policies/server_config.json for:
- Consistency: every tool checks its inputs the same way
- Flexibility: bounds and patterns can be adjusted without code changes
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from policies import SERVER_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check."""

    is_valid: bool
    errors: list[str]
    warnings: list[str]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def to_message(self) -> str:
        """Render errors as tool output text."""
        return "Invalid input:\n" + "\n".join(f"- {e}" for e in self.errors)

    def with_warnings(self, text: str) -> str:
        """Prefix tool output with any warnings."""
        if not self.warnings:
            return text
        return "\n".join(f"Warning: {w}" for w in self.warnings) + "\n\n" + text


class InputValidator:
    """
    Policy-driven input validator for tool parameters.

    Validates:
    - Latitude bounds (-90 to 90)
    - Longitude bounds (-180 to 180)
    - Two-letter US state codes
    - App Platform app names and GitHub repositories
    - Non-empty resource IDs
    """

    def __init__(self):
        """Load validation rules from policy configuration."""
        self.rules = SERVER_CONFIG.get("validation", {})
        self.lat_bounds = self.rules.get("latitude", {"min": -90, "max": 90})
        self.lon_bounds = self.rules.get("longitude", {"min": -180, "max": 180})
        self.app_name_re = re.compile(
            self.rules.get("app_name_pattern", r"^[a-z][a-z0-9-]{0,30}[a-z0-9]$")
        )
        self.repo_re = re.compile(
            self.rules.get("repo_pattern", r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
        )

    def validate_latitude(self, lat: float) -> Tuple[bool, Optional[str]]:
        """
        Validate latitude value.

        Args:
            lat: Latitude to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        min_val = self.lat_bounds.get("min", -90)
        max_val = self.lat_bounds.get("max", 90)

        if lat < min_val or lat > max_val:
            return False, f"Latitude must be between {min_val} and {max_val}, got {lat}"

        return True, None

    def validate_longitude(self, lon: float) -> Tuple[bool, Optional[str]]:
        """
        Validate longitude value.

        Args:
            lon: Longitude to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        min_val = self.lon_bounds.get("min", -180)
        max_val = self.lon_bounds.get("max", 180)

        if lon < min_val or lon > max_val:
            return False, f"Longitude must be between {min_val} and {max_val}, got {lon}"

        return True, None

    def validate_state_code(self, state: str) -> Tuple[bool, Optional[str]]:
        """Validate a two-letter US state or territory code."""
        code = (state or "").strip()
        if len(code) != 2 or not code.isalpha():
            return False, f"State must be a two-letter code (e.g. CA, NY), got '{state}'"

        return True, None

    def validate_app_name(self, name: str) -> Tuple[bool, Optional[str]]:
        """
        Validate an App Platform app name.

        Names are 2-32 characters of lowercase letters, digits and dashes,
        starting with a letter and not ending with a dash.
        """
        if not name or not self.app_name_re.match(name):
            return False, (
                f"App name must be 2-32 lowercase letters, digits or dashes "
                f"and start with a letter, got '{name}'"
            )

        return True, None

    def validate_repo(self, repo: str) -> Tuple[bool, Optional[str]]:
        """Validate a GitHub repository in owner/repo form."""
        if not repo or not self.repo_re.match(repo):
            return False, f"Repository must be in owner/repo form, got '{repo}'"

        return True, None

    def validate_identifier(self, value: str, field_name: str) -> Tuple[bool, Optional[str]]:
        """Validate that an ID is non-blank and contains no path separators."""
        if not value or not value.strip():
            return False, f"{field_name} must not be empty"
        if "/" in value or "?" in value:
            return False, f"{field_name} contains invalid characters: '{value}'"

        return True, None

    def validate_identifiers(self, ids: dict[str, str]) -> ValidationResult:
        """Validate several resource IDs keyed by parameter name."""
        errors = []
        for field_name, value in ids.items():
            is_valid, error = self.validate_identifier(value, field_name)
            if not is_valid:
                errors.append(error)

        return self._result(errors, [])

    def validate_location(self, latitude: float, longitude: float) -> ValidationResult:
        """
        Validate coordinates for a forecast request.

        Args:
            latitude: Location latitude
            longitude: Location longitude

        Returns:
            ValidationResult with any errors or warnings
        """
        errors = []
        warnings = []

        lat_valid, lat_error = self.validate_latitude(latitude)
        if not lat_valid:
            errors.append(lat_error)

        lon_valid, lon_error = self.validate_longitude(longitude)
        if not lon_valid:
            errors.append(lon_error)

        # NWS only covers the US and its territories, roughly the western hemisphere north of the equator
        if lat_valid and lon_valid and (latitude < 0 or longitude > 0):
            warnings.append("Location is likely outside NWS coverage (US locations only)")

        return self._result(errors, warnings)

    def validate_deploy_request(
        self,
        app_name: str,
        region: str,
        repo: str,
        branch: str,
    ) -> ValidationResult:
        """
        Validate all parameters for a static site deployment.

        Args:
            app_name: Name for the new app
            region: Region slug (e.g. nyc, sfo)
            repo: GitHub repository (owner/repo)
            branch: Branch to deploy

        Returns:
            ValidationResult with any errors or warnings
        """
        errors = []
        warnings = []

        name_valid, name_error = self.validate_app_name(app_name)
        if not name_valid:
            errors.append(name_error)

        if not region or not region.strip():
            errors.append("Region must not be empty")
        elif not region.isalpha():
            warnings.append(f"Region '{region}' does not look like a region slug (e.g. nyc, sfo)")

        repo_valid, repo_error = self.validate_repo(repo)
        if not repo_valid:
            errors.append(repo_error)

        if not branch or not branch.strip():
            errors.append("Branch must not be empty")

        return self._result(errors, warnings)

    def _result(self, errors: list[str], warnings: list[str]) -> ValidationResult:
        is_valid = len(errors) == 0

        if not is_valid:
            logger.warning(f"Validation failed: {errors}")
        elif warnings:
            logger.info(f"Validation passed with warnings: {warnings}")

        return ValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
        )


# Create singleton instance for convenience
validator = InputValidator()
