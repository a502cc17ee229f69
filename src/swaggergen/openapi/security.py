"""Design security schemes to Swagger 2.0 security definitions and requirements."""

from dataclasses import dataclass, field
from itertools import product
from typing import Any

from swaggergen.design.base import Requirement, SecurityScheme
from swaggergen.errors import DesignError, SecurityError
from swaggergen.openapi.extensions import merge
from swaggergen.openapi.schema import compact

# design flow kind -> Swagger 2.0 flow name
OAUTH2_FLOWS = {
    "authorization_code": "accessCode",
    "implicit": "implicit",
    "password": "password",
    "client_credentials": "application",
}


@dataclass
class SecurityDefinition:
    type: str  # basic / apiKey / oauth2
    description: str = ""
    name: str | None = None
    in_: str | None = None
    flow: str | None = None
    authorization_url: str | None = None
    token_url: str | None = None
    scopes: dict[str, str] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = compact(
            {
                "type": self.type,
                "description": self.description or None,
                "name": self.name,
                "in": self.in_,
                "flow": self.flow,
                "authorizationUrl": self.authorization_url,
                "tokenUrl": self.token_url,
                "scopes": self.scopes,
            },
            # oauth2 definitions must declare scopes, even none
            keep=("scopes",) if self.type == "oauth2" else (),
        )
        data.update(self.extensions)
        return data


@dataclass
class SecurityRequirement:
    """Definitions that must all be satisfied, each with its required scopes."""

    schemes: dict[str, list[str]]

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(scopes) for name, scopes in self.schemes.items()}


def map_scheme(scheme: SecurityScheme) -> list[tuple[str, SecurityDefinition]]:
    """Project one design scheme onto one or more named security definitions.

    OAuth2 schemes yield one definition per flow since a Swagger 2.0
    definition describes a single flow.
    """
    extensions = merge(None, scheme.extensions)
    if scheme.kind == "basic":
        return [(scheme.name, SecurityDefinition("basic", scheme.description, extensions=extensions))]
    if scheme.kind in ("apikey", "jwt"):
        description = scheme.description
        if scheme.kind == "jwt" and not description:
            description = "Secures the endpoint by requiring a valid JWT token."
        return [
            (
                scheme.name,
                SecurityDefinition(
                    "apiKey",
                    description,
                    name=scheme.param_name,
                    in_=scheme.in_,
                    extensions=extensions,
                ),
            )
        ]

    if not scheme.flows:
        raise DesignError(f"security scheme {scheme.name!r}: oauth2 scheme declares no flows")
    defs = []
    for flow in scheme.flows:
        flow_name = OAUTH2_FLOWS[flow.kind]
        key = scheme.name if len(scheme.flows) == 1 else f"{scheme.name}_{flow_name}"
        defs.append(
            (
                key,
                SecurityDefinition(
                    "oauth2",
                    scheme.description,
                    flow=flow_name,
                    authorization_url=flow.authorization_url if flow_name in ("accessCode", "implicit") else None,
                    token_url=flow.token_url if flow_name != "implicit" else None,
                    scopes=dict(scheme.scopes),
                    extensions=extensions,
                ),
            )
        )
    return defs


class SecurityMapper:
    """Security definitions of one document, and requirement lookups against them."""

    def __init__(self, schemes: list[SecurityScheme]):
        self.definitions: dict[str, SecurityDefinition] = {}
        self._keys: dict[str, list[str]] = {}
        self._oauth2: set[str] = set()
        for scheme in schemes:
            mapped = map_scheme(scheme)
            self._keys[scheme.name] = [key for key, _ in mapped]
            if scheme.kind == "oauth2":
                self._oauth2.add(scheme.name)
            for key, definition in mapped:
                if key in self.definitions:
                    raise DesignError(f"security definition {key!r} is declared twice")
                self.definitions[key] = definition

    def map_requirements(self, requirements: list[Requirement], owner: str) -> list[SecurityRequirement]:
        """Resolve design requirements into Swagger requirements.

        Every referenced scheme must be declared; ``owner`` names the
        endpoint in the error otherwise. A requirement naming an OAuth2
        scheme with several flows expands into one alternative per flow.
        """
        result = []
        for req in requirements:
            choices = []
            for name in req.schemes:
                if name not in self._keys:
                    raise SecurityError(name, owner)
                scopes = list(req.scopes) if name in self._oauth2 else []
                choices.append([(key, scopes) for key in self._keys[name]])
            for combination in product(*choices):
                result.append(SecurityRequirement(dict(combination)))
        return result

    def sorted_definitions(self) -> dict[str, SecurityDefinition]:
        return {key: self.definitions[key] for key in sorted(self.definitions)}


def effective_requirements(*levels: list[Requirement] | None) -> list[Requirement]:
    """The most specific requirements that are set; an explicit ``[]`` disables security."""
    for level in levels:
        if level is not None:
            return level
    return []
