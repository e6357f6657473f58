"""File-backed basket exemption registry."""

from mer_automation.exemptions.registry import ExemptionEntry, ExemptionRegistry

__all__ = ["ExemptionEntry", "ExemptionRegistry"]
