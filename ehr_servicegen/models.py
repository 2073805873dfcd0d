from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from .exceptions import InvalidArgumentError
from .utils import default_project_name


class ProfileSet:
    """Ordered, duplicate-free sequence of profile identifiers.

    The first occurrence of an identifier fixes its position; later
    occurrences are ignored.
    """

    __slots__ = ("_items", "_seen")

    def __init__(self, profiles: Optional[Iterable[str]] = None) -> None:
        self._items: List[str] = []
        self._seen: set[str] = set()
        if profiles:
            self.extend(profiles)

    def add(self, profile: str) -> bool:
        """Append ``profile`` unless already present. Returns True if it was added."""
        if profile in self._seen:
            return False
        self._seen.add(profile)
        self._items.append(profile)
        return True

    def extend(self, profiles: Iterable[str]) -> int:
        return sum(1 for p in profiles if self.add(p))

    def as_list(self) -> List[str]:
        return list(self._items)

    def __contains__(self, profile: object) -> bool:
        return profile in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProfileSet):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ProfileSet({self._items!r})"


# --- Capability statement (only the parts the generator reads) ---


class CapabilityResource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    supported_profile: List[str] = Field(default_factory=list, alias="supportedProfile")


class CapabilityRest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Optional[str] = None
    resource: List[CapabilityResource] = Field(default_factory=list)


class CapabilityStatement(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    resource_type: str = Field(alias="resourceType")
    name: Optional[str] = None
    publisher: Optional[str] = None
    fhir_version: Optional[str] = Field(default=None, alias="fhirVersion")
    rest: List[CapabilityRest] = Field(default_factory=list)


# --- Generation inputs and outputs ---


class ImplementationGuideOverride(BaseModel):
    """IG selection patched over the template tool config at project.package.igConfig."""

    model_config = ConfigDict(frozen=True)

    name: str
    import_path: str
    enabled: bool = True
    included_profiles: Tuple[str, ...] = ()
    excluded_profiles: Tuple[str, ...] = ()

    def to_config(self) -> Dict[str, Any]:
        return {
            "implementationGuide": self.name,
            "importStatement": self.import_path,
            "enable": self.enabled,
            "includedProfiles": list(self.included_profiles),
            "excludedProfiles": list(self.excluded_profiles),
        }


# CLI-style option keys accepted by GenerationRequest.from_options
OPTION_FIELDS: Dict[str, str] = {
    "--project-name": "project_name",
    "--ehr-name": "ehr_name",
    "--org-name": "org_name",
    "--included-profile": "included_profiles",
    "--dependent-package": "dependent_package",
    "--capability-statement": "capability_statement",
    "--auth-method": "auth_method",
}


class GenerationRequest(BaseModel):
    """Caller-supplied parameters for one generator run. Never mutated by the pipeline."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    output_dir: str = "."
    ehr_name: Optional[str] = None
    project_name: Optional[str] = None
    org_name: Optional[str] = None
    included_profiles: List[str] = Field(default_factory=list)
    dependent_package: Optional[str] = None
    capability_statement: Optional[str] = None
    auth_method: Optional[str] = None

    @field_validator(
        "ehr_name", "project_name", "org_name", "dependent_package", "capability_statement", "auth_method",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, v: Any) -> Any:
        # "" and whitespace mean "not given", same as None
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def resolved_project_name(self) -> Optional[str]:
        if self.project_name:
            return self.project_name
        if self.ehr_name:
            return default_project_name(self.ehr_name)
        return None

    @classmethod
    def from_options(cls, options: Mapping[str, Any], *, output_dir: str = ".") -> "GenerationRequest":
        """Build a request from ``--option: value`` pairs, rejecting unknown keys."""
        fields: Dict[str, Any] = {"output_dir": output_dir}
        for key, value in options.items():
            field = OPTION_FIELDS.get(key)
            if field is None:
                raise InvalidArgumentError(f"Invalid option provided: {key}")
            if field == "included_profiles" and isinstance(value, str):
                value = [value]
            fields[field] = list(value) if field == "included_profiles" else value
        return cls(**fields)


class GeneratorProperties(BaseModel):
    """What the template stage hands to the service stage."""

    package_name: str
    org_name: str
    version: str
    implementation_guide: str
    import_statement: str
    package_dir: str
    profiles: List[str] = Field(default_factory=list)
    dependent_package: Optional[str] = None

    @property
    def package_import(self) -> str:
        return f"{self.org_name}/{self.package_name}"
