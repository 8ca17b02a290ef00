"""Add-on registry -- discovers and validates the add-on catalog.

Quick usage::

    from appforge.registry import AddOnRegistry

    registry = AddOnRegistry(config.add_ons_dir)
    selected = registry.resolve(["shadcn", "tanstack-query"])
"""

from appforge.registry.loader import (
    AddOnRegistry,
    add_ons_in_phase,
    composition_order,
)
from appforge.registry.models import (
    FEATURE_PHASE,
    SETUP_PHASE,
    AddOn,
    FeatureAddOn,
    SetupAddOn,
)

__all__ = [
    "FEATURE_PHASE",
    "SETUP_PHASE",
    "AddOn",
    "AddOnRegistry",
    "FeatureAddOn",
    "SetupAddOn",
    "add_ons_in_phase",
    "composition_order",
]
