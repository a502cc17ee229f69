"""Definition registry: the per-document table of named, reusable schemas."""

import structlog

from swaggergen.errors import NamingCollisionError, RegistryFrozenError
from swaggergen.openapi.schema import Schema

log = structlog.get_logger(__name__)

DEFAULT_MAX_SUFFIX = 1000


class DefinitionRegistry:
    """Maps definition names to schemas for one generation run.

    Names come from design type identities. A name already holding an equal
    schema is reused; a name holding a different schema gets a numeric
    suffix (``Item``, ``Item2``, ``Item3``...). Names may be reserved before
    their schema is known so recursive types can reference themselves.

    Each document build owns its own registry; never share one across runs.
    """

    def __init__(self, max_suffix: int = DEFAULT_MAX_SUFFIX):
        self.max_suffix = max_suffix
        self._schemas: dict[str, Schema] = {}
        self._reserved: set[str] = set()
        self._identities: dict[tuple[str, str], str] = {}
        self._frozen = False

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def register(self, name: str, schema: Schema) -> str:
        """Store ``schema`` and return the name it ended up under."""
        self._check_frozen(name)
        for candidate in self._candidates(name):
            if candidate in self._reserved:
                continue
            existing = self._schemas.get(candidate)
            if existing is None:
                self._schemas[candidate] = schema
                return candidate
            if existing == schema:
                return candidate
            log.debug("definition_name_taken", name=candidate, requested=name)
        raise NamingCollisionError(f"no free definition name for {name!r}")

    def lookup(self, name: str) -> Schema | None:
        return self._schemas.get(name)

    def reserve(self, name: str) -> str:
        """Claim a free name for a schema that is still being built."""
        self._check_frozen(name)
        for candidate in self._candidates(name):
            if candidate not in self._reserved and candidate not in self._schemas:
                self._reserved.add(candidate)
                return candidate
        raise NamingCollisionError(f"no free definition name for {name!r}")

    def fill(self, name: str, schema: Schema) -> None:
        """Complete a reservation made with reserve()."""
        self._check_frozen(name)
        if name not in self._reserved:
            raise KeyError(f"definition {name!r} was not reserved")
        self._reserved.discard(name)
        self._schemas[name] = schema

    def release(self, name: str) -> None:
        self._reserved.discard(name)

    def bind(self, identity: tuple[str, str], name: str) -> None:
        """Record that the design type ``identity`` resolves to ``name``."""
        self._identities[identity] = name

    def name_for(self, identity: tuple[str, str]) -> str | None:
        return self._identities.get(identity)

    def freeze(self) -> None:
        self._frozen = True

    def definitions(self) -> dict[str, Schema]:
        """All definitions, sorted by name."""
        return {name: self._schemas[name] for name in sorted(self._schemas)}

    def _candidates(self, name: str):
        yield name
        for i in range(2, self.max_suffix + 1):
            yield f"{name}{i}"

    def _check_frozen(self, name: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"cannot register {name!r}: registry is frozen")
