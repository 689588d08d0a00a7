"""Map validated LLM output onto backend-owned semantic payloads.

The backend owns structure (titles, order, tables, styling); the LLM owns
only sentence-level content. Unknown keys, headings and layout hints from the
LLM are dropped. Every optional field is read through a declarative
``FieldRule`` table so absent or wrong-typed values get a stable default.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from perfmail.errors import AdapterInputError
from perfmail.llm.base import ReportKind
from perfmail.semantic.models import (
    DepartmentPayload,
    EmployeePayload,
    SemanticPayload,
)

DEFAULT_ACTIUNE = "De stabilit"
DEFAULT_PLACEHOLDER = "–"
DEFAULT_SAPTAMANA_1 = "Săptămâna 1: de stabilit."
DEFAULT_SAPTAMANA_2_4 = "Săptămânile 2–4: de stabilit."
DEFAULT_RAPORT_URMATOR = "Raportul următor va fi disponibil conform programului."
DEFAULT_MESAJ_SUB_80 = (
    "Vom reveni cu un check-in intermediar pentru îmbunătățirea performanței."
)
DEFAULT_MESAJ_PESTE_80 = "Continuă la fel în luna următoare."
DEFAULT_SEMNATURA_NUME = "Echipa Management"
DEFAULT_SEMNATURA_FUNCTIE = "Management"
DEFAULT_SEMNATURA_COMPANIE = "Crystal Logistics Services"

Coercer = Callable[[Any, Any], Any]


def as_text(value: Any, default: Any) -> Any:
    """Trimmed text; None, blank or non-scalar input yields ``default``."""
    if value is None or isinstance(value, (dict, list)):
        return default
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or default


def as_text_list(value: Any, default: list[str]) -> list[str]:
    """Non-blank trimmed strings; empty or non-list input yields ``default``."""
    if not isinstance(value, list):
        return list(default)
    items = [as_text(item, "") for item in value if item is not None]
    kept = [item for item in items if item]
    return kept or list(default)


def as_mapping(value: Any, default: Any) -> Any:
    """Deep copy of a mapping, else ``default``."""
    if isinstance(value, Mapping):
        return copy.deepcopy(dict(value))
    return copy.deepcopy(default)


def as_list(value: Any, default: Any) -> Any:
    """Deep copy of a list, else ``default``."""
    if isinstance(value, list):
        return copy.deepcopy(value)
    return copy.deepcopy(default)


def as_raw_text(value: Any, default: Any) -> Any:
    """Text kept verbatim when it is a string, else ``default``."""
    return value if isinstance(value, str) else default


@dataclass(frozen=True)
class FieldRule:
    """One payload field: target path, source path, coercer, default."""

    target: tuple[str, ...]
    source: tuple[str, ...]
    coerce: Coercer
    default: Any


def _lookup(root: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    """Walk ``path`` through nested mappings; None when any hop is missing."""
    node: Any = root
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _assign(out: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set ``value`` at ``path``, creating intermediate dicts."""
    node = out
    for key in path[:-1]:
        node = node.setdefault(key, {})
    node[path[-1]] = value


def apply_rules(
    rules: tuple[FieldRule, ...], llm_sections: Mapping[str, Any]
) -> dict[str, Any]:
    """Build a nested payload dict from a rule table.

    Args:
        rules: Declarative field table.
        llm_sections: Validated LLM object.

    Returns:
        Nested dict keyed by payload field names.
    """
    out: dict[str, Any] = {}
    for rule in rules:
        value = rule.coerce(_lookup(llm_sections, rule.source), rule.default)
        _assign(out, rule.target, value)
    return out


def _rule(target: str, source: str, coerce: Coercer, default: Any) -> FieldRule:
    """Build a rule from dotted target and source paths."""
    return FieldRule(
        tuple(target.split(".")), tuple(source.split(".")), coerce, default
    )


_ROLE_ACTIONS = "sectiunea_4_actiuni_prioritare.actiuni_specifice_per_rol"
_CHECK_IN = "sectiunea_6_check_in_intermediar"

EMPLOYEE_RULES: tuple[FieldRule, ...] = (
    _rule("greeting", "antet.greeting", as_text, ""),
    _rule("intro_message", "antet.intro_message", as_text, ""),
    _rule("interpretare.stil", "sectiunea_2_interpretare_date.stil", as_text, ""),
    _rule(
        "interpretare.include",
        "sectiunea_2_interpretare_date.include",
        as_text_list,
        [DEFAULT_PLACEHOLDER],
    ),
    _rule(
        "concluzii.ce_merge_bine",
        "sectiunea_3_concluzii.ce_merge_bine",
        as_text,
        DEFAULT_PLACEHOLDER,
    ),
    _rule(
        "concluzii.ce_nu_merge",
        "sectiunea_3_concluzii.ce_nu_merge_si_necesita_interventie_urgenta",
        as_text,
        DEFAULT_PLACEHOLDER,
    ),
    _rule(
        "concluzii.focus_luna_urmatoare",
        "sectiunea_3_concluzii.focus_luna_urmatoare",
        as_text,
        DEFAULT_PLACEHOLDER,
    ),
    _rule(
        "plan.saptamana_1",
        "sectiunea_5_plan_saptamanal.format.saptamana_1",
        as_text,
        DEFAULT_SAPTAMANA_1,
    ),
    _rule(
        "plan.saptamana_2_4",
        "sectiunea_5_plan_saptamanal.format.saptamana_2_4",
        as_text,
        DEFAULT_SAPTAMANA_2_4,
    ),
    _rule(
        "incheiere.raport_urmator",
        "incheiere.raport_urmator",
        as_text,
        DEFAULT_RAPORT_URMATOR,
    ),
    _rule(
        "incheiere.mesaj_sub_80",
        "incheiere.mesaj_sub_80",
        as_text,
        DEFAULT_MESAJ_SUB_80,
    ),
    _rule(
        "incheiere.mesaj_peste_80",
        "incheiere.mesaj_peste_80",
        as_text,
        DEFAULT_MESAJ_PESTE_80,
    ),
    _rule(
        "incheiere.semnatura.nume",
        "incheiere.semnatura.nume",
        as_text,
        DEFAULT_SEMNATURA_NUME,
    ),
    _rule(
        "incheiere.semnatura.functie",
        "incheiere.semnatura.functie",
        as_text,
        DEFAULT_SEMNATURA_FUNCTIE,
    ),
    _rule(
        "incheiere.semnatura.companie",
        "incheiere.semnatura.companie",
        as_text,
        DEFAULT_SEMNATURA_COMPANIE,
    ),
)


def _analiza_rules(target: str, section: str) -> tuple[FieldRule, ...]:
    """Rules for one sales or operational analysis block."""
    return (
        _rule(
            f"{target}.performanta_vs_istoric",
            f"{section}.performantaVsIstoric",
            as_mapping,
            {},
        ),
        _rule(
            f"{target}.target_departamental",
            f"{section}.targetDepartamental",
            as_mapping,
            {},
        ),
        _rule(
            f"{target}.metrici_medii_per_angajat",
            f"{section}.metriciMediiPerAngajat",
            as_mapping,
            {},
        ),
        _rule(f"{target}.tabel_angajati", f"{section}.tabelAngajati", as_raw_text, ""),
        _rule(
            f"{target}.probleme_identificate_angajati",
            f"{section}.problemeIdentificateAngajati",
            as_list,
            [],
        ),
        _rule(f"{target}.high_performers", f"{section}.highPerformers", as_list, []),
        _rule(f"{target}.low_performers", f"{section}.lowPerformers", as_list, []),
        _rule(
            f"{target}.probleme_sistemice",
            f"{section}.problemeSistemice",
            as_list,
            [],
        ),
    )


_COMPARATIE = "sectiunea_4_comparatie_departamente"
_RECOMANDARI = "sectiunea_5_recomandari_management"

DEPARTMENT_RULES: tuple[FieldRule, ...] = (
    _rule("intro", "antet.introducere", as_text, ""),
    *_analiza_rules("analiza_vanzari", "sectiunea_2_analiza_vanzari"),
    *_analiza_rules("analiza_operational", "sectiunea_3_analiza_operational"),
    _rule(
        "comparatie.tabel_comparativ",
        f"{_COMPARATIE}.tabelComparativ",
        as_mapping,
        {},
    ),
    _rule("comparatie.observatii", f"{_COMPARATIE}.observatii", as_list, []),
    _rule(
        "recomandari.one_to_one_low_performers",
        f"{_RECOMANDARI}.oneToOneLowPerformers",
        as_list,
        [],
    ),
    _rule(
        "recomandari.training_necesare",
        f"{_RECOMANDARI}.trainingNecesare",
        as_list,
        [],
    ),
    _rule(
        "recomandari.urmarire_saptamanala",
        f"{_RECOMANDARI}.urmarireSaptamanala",
        as_list,
        [],
    ),
    _rule(
        "recomandari.setare_obiective_specifice",
        f"{_RECOMANDARI}.setareObiectiveSpecifice",
        as_list,
        [],
    ),
    _rule(
        "recomandari.mutari_rol_optional",
        f"{_RECOMANDARI}.mutariRolOptional",
        as_list,
        [],
    ),
    _rule(
        "recomandari.probleme_sistemice_proces",
        f"{_RECOMANDARI}.problemeSistemiceProces",
        as_list,
        [],
    ),
    _rule("incheiere.urmatorul_raport", "incheiere.urmatorulRaport", as_text, ""),
    _rule("incheiere.semnatura", "incheiere.semnatura", as_mapping, {}),
)


def _require_mapping(llm_sections: object, name: str) -> Mapping[str, Any]:
    """Guard against absent or non-object input."""
    if not isinstance(llm_sections, Mapping):
        raise AdapterInputError(f"{name} requires a validated llm_sections object.")
    return llm_sections


def _role_actions(sections: Mapping[str, Any], role: str) -> list[str]:
    """Non-blank actions for one role bucket, defaulting to a placeholder."""
    path = tuple(f"{_ROLE_ACTIONS}.{role}".split("."))
    return as_text_list(_lookup(sections, path), [DEFAULT_ACTIUNE])


def employee_to_semantic_payload(llm_sections: object) -> EmployeePayload:
    """Extract the employee email payload.

    Role-scoped actions are flattened: forwarder actions first, then
    sales-agent actions. Blank entries are dropped; identical text across
    roles is kept.

    Args:
        llm_sections: Validated employee LLM object.

    Returns:
        Employee semantic payload.

    Raises:
        AdapterInputError: If ``llm_sections`` is absent or not a mapping.
    """
    sections = _require_mapping(llm_sections, "employee_to_semantic_payload")
    data = apply_rules(EMPLOYEE_RULES, sections)
    data["actiuni"] = [
        *_role_actions(sections, "freight_forwarder"),
        *_role_actions(sections, "sales_freight_agent"),
    ]
    check_in = sections.get(_CHECK_IN)
    data["check_in"] = (
        {
            "format": as_text(check_in.get("format"), ""),
            "regula": as_text(check_in.get("regula"), ""),
        }
        if isinstance(check_in, Mapping)
        else None
    )
    return EmployeePayload.model_validate(data)


def department_to_semantic_payload(llm_sections: object) -> DepartmentPayload:
    """Extract the department email payload.

    The executive summary section is backend-built and ignored here.

    Args:
        llm_sections: Validated department LLM object.

    Returns:
        Department semantic payload.

    Raises:
        AdapterInputError: If ``llm_sections`` is absent or not a mapping.
    """
    sections = _require_mapping(llm_sections, "department_to_semantic_payload")
    return DepartmentPayload.model_validate(apply_rules(DEPARTMENT_RULES, sections))


def to_semantic_payload(
    kind: ReportKind | str, validated_output: object
) -> SemanticPayload:
    """Dispatch to the adapter for ``kind``.

    Args:
        kind: ``employee`` or ``department``.
        validated_output: Validated LLM object.

    Returns:
        Semantic payload of the matching shape.

    Raises:
        AdapterInputError: If ``validated_output`` is absent or not a mapping.
    """
    if ReportKind(kind) == ReportKind.EMPLOYEE:
        return employee_to_semantic_payload(validated_output)
    return department_to_semantic_payload(validated_output)
