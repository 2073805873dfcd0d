from __future__ import annotations

from typing import Iterable, Optional

from ..config.schema import DEFAULT_ORG_NAME
from ..exceptions import InvalidArgumentError
from ..models import ImplementationGuideOverride, ProfileSet


def build_ig_override(
    name: str,
    org_name: Optional[str],
    included: Optional[Iterable[str]] = None,
    excluded: Optional[Iterable[str]] = None,
    *,
    default_org: str = DEFAULT_ORG_NAME,
) -> ImplementationGuideOverride:
    """Assemble the implementation-guide override applied at project.package.igConfig.

    The import path is ``<org>/<name>``, falling back to ``default_org`` when no
    organization was given. Profiles are deduplicated in first-seen order.
    """
    if not name or not name.strip():
        raise InvalidArgumentError("Implementation guide name must not be empty")
    org = org_name or default_org
    return ImplementationGuideOverride(
        name=name,
        import_path=f"{org}/{name}",
        enabled=True,
        included_profiles=tuple(ProfileSet(included or ())),
        excluded_profiles=tuple(ProfileSet(excluded or ())),
    )
