"""
Symptom Module Registry

Every module keyed by its ``SymptomId`` value. Lookups by raw string go
through the enum so unknown ids resolve to ``None`` instead of raising.
"""

from oncolife.engine.constants import SymptomId
from oncolife.engine.symptoms import digestive, emergency, pain_nerve, skin_external, systemic
from oncolife.engine.symptoms.base import QuestionDef, SymptomModule


class SymptomRegistry:
    """Lookup table of symptom modules."""

    def __init__(self, modules: list[SymptomModule]):
        self._modules: dict[str, SymptomModule] = {}
        for module in modules:
            self.register(module)

    def register(self, module: SymptomModule) -> None:
        self._modules[module.id] = module

    def get(self, symptom_id: str | SymptomId | None) -> SymptomModule | None:
        if symptom_id is None:
            return None
        try:
            key = SymptomId(symptom_id).value
        except ValueError:
            return None
        return self._modules.get(key)

    def __contains__(self, symptom_id: object) -> bool:
        return isinstance(symptom_id, str) and self.get(symptom_id) is not None

    def __len__(self) -> int:
        return len(self._modules)

    def name_of(self, symptom_id: str) -> str:
        module = self.get(symptom_id)
        return module.name if module else symptom_id

    def visible(self) -> list[SymptomModule]:
        return [m for m in self._modules.values() if not m.hidden]


ALL_MODULES: list[SymptomModule] = [
    *digestive.MODULES,
    *pain_nerve.MODULES,
    *systemic.MODULES,
    *skin_external.MODULES,
    *emergency.MODULES,
]

REGISTRY = SymptomRegistry(ALL_MODULES)


def get_module(symptom_id: str | SymptomId | None) -> SymptomModule | None:
    return REGISTRY.get(symptom_id)


__all__ = [
    "ALL_MODULES",
    "QuestionDef",
    "REGISTRY",
    "SymptomModule",
    "SymptomRegistry",
    "get_module",
]
