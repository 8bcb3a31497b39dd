"""Post-generation invariant checks."""

from typing import TYPE_CHECKING

import numpy as np
import structlog

from .biomes import Biome, Material

if TYPE_CHECKING:
    from .generator import PlanetResult

logger = structlog.get_logger()


class ValidationResult:
    """Result of planet validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_planet(result: "PlanetResult") -> ValidationResult:
    """Check a finished planet against the pipeline's invariants.

    Args:
        result: Output of generate_planet.

    Returns:
        ValidationResult with any errors/warnings.
    """
    report = ValidationResult()

    _check_grid(result, report)
    _check_height(result, report)
    _check_flow(result, report)
    _check_surface(result, report)

    if report.passed:
        logger.info("planet_validation_passed", warnings=len(report.warnings))
    else:
        logger.warning("planet_validation_failed", errors=len(report.errors))
        for error in report.errors:
            logger.error("planet_validation_error", detail=error)

    for warning in report.warnings:
        logger.warning("planet_validation_warning", detail=warning)

    return report


def _check_grid(result: "PlanetResult", report: ValidationResult) -> None:
    rows, cols = result.height.shape
    if cols != 2 * rows:
        report.add_error(f"Grid is {cols}x{rows}, expected 2:1")


def _check_height(result: "PlanetResult", report: ValidationResult) -> None:
    height = result.height
    if not np.all(np.isfinite(height)):
        report.add_error(f"Height has {np.count_nonzero(~np.isfinite(height))} non-finite cells")
        return
    if height.size and (height.min() < -1.0 or height.max() > 1.0):
        report.add_error(
            f"Height range [{height.min():.4f}, {height.max():.4f}] exceeds [-1, 1]"
        )


def _check_flow(result: "PlanetResult", report: ValidationResult) -> None:
    flow = result.flow
    if np.any(flow.accumulation < 1.0):
        report.add_error("Flow accumulation below 1")

    has_target = flow.target >= 0
    if not has_target.any():
        report.add_warning("Flow field has no outgoing edges")
        return
    flat = result.height.ravel()
    sources = np.flatnonzero(has_target.ravel())
    targets = flow.target.ravel()[sources]
    uphill = np.count_nonzero(flat[targets] >= flat[sources])
    if uphill:
        report.add_error(f"{uphill} flow edges do not descend")


def _check_surface(result: "PlanetResult", report: ValidationResult) -> None:
    surface = result.surface
    for name, channel in surface.scalar_channels().items():
        if channel.size and (channel.min() < 0.0 or channel.max() > 1.0 or not np.all(np.isfinite(channel))):
            report.add_error(f"Surface channel '{name}' outside [0, 1]")
    for name in surface.COLOR_CHANNELS:
        color = getattr(surface, name)
        if color.size and (color.min() < 0.0 or color.max() > 1.0):
            report.add_error(f"Surface color '{name}' outside [0, 1]")
    if surface.biome.size and surface.biome.max() >= len(Biome):
        report.add_error("Unknown biome id in biome grid")
    if surface.material.size and surface.material.max() >= len(Material):
        report.add_error("Unknown material id in material grid")

    water = surface.biome <= int(Biome.OCEAN_SHALLOW)
    if water.all():
        report.add_warning("Planet has no land")
    elif not water.any():
        report.add_warning("Planet has no ocean")
