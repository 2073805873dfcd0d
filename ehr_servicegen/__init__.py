"""
EHR service scaffold generator.

This package resolves the profiles an EHR endpoint supports from its FHIR
CapabilityStatement, builds an implementation-guide overlay for the template
tool configuration, and drives a two-stage generation pipeline (template
package, then prebuilt service) over a shared execution context.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
