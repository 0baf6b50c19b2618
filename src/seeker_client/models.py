from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PropertyDefinition(BaseModel):
    """A static property name bound to a template rendered per event."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "Name"))
    value: str = Field("", validation_alias=AliasChoices("value", "Value"))

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_value_is_literal(cls, v: Any) -> Any:
        # YAML and env values like 8080 or true are literal template text
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        if v is None:
            return ""
        return v


class TargetConfig(BaseModel):
    """Where to ship events and which properties to attach to them."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    server_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("server_url", "ServerUrl", "serverUrl"),
    )
    properties: List[PropertyDefinition] = Field(
        default_factory=list,
        validation_alias=AliasChoices("properties", "Properties"),
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("timeout_seconds", "TimeoutSeconds"),
    )

    @field_validator("server_url", mode="before")
    @classmethod
    def _blank_url_is_unset(cls, v: Any) -> Any:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @field_validator("properties", mode="before")
    @classmethod
    def _coerce_properties(cls, v: Any) -> Any:
        """Accept a name->template mapping or (name, value) pairs as well."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [{"name": k, "value": val} for k, val in v.items()]
        out = []
        for item in v:
            if isinstance(item, (tuple, list)) and len(item) == 2:
                out.append({"name": item[0], "value": item[1]})
            else:
                out.append(item)
        return out

    @field_validator("properties")
    @classmethod
    def _unique_property_names(
        cls, v: List[PropertyDefinition]
    ) -> List[PropertyDefinition]:
        seen = set()
        for p in v:
            if p.name in seen:
                raise ValueError(f"duplicate property name: {p.name!r}")
            seen.add(p.name)
        return v

    @property
    def enabled(self) -> bool:
        return self.server_url is not None
