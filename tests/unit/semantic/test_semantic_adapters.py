"""Unit tests for LLM-output to semantic-payload adapters."""

from __future__ import annotations

import copy
import inspect

import pytest

from perfmail.errors import AdapterInputError
from perfmail.semantic import (
    DEFAULT_ACTIUNE,
    CheckIn,
    DepartmentPayload,
    EmployeePayload,
    department_to_semantic_payload,
    employee_to_semantic_payload,
    to_semantic_payload,
)
from perfmail.semantic import models as payload_models

_ROLE_ACTIONS = {
    "sectiunea_4_actiuni_prioritare": {
        "actiuni_specifice_per_rol": {
            "freight_forwarder": ["A1"],
            "sales_freight_agent": ["A2"],
        }
    }
}


def _employee_sections() -> dict[str, object]:
    """Build a fully populated employee LLM object."""
    return {
        "antet": {"greeting": " Bună, Ana ", "intro_message": "Iată raportul."},
        "sectiunea_2_interpretare_date": {
            "stil": "concis",
            "include": ["curse", "  ", "profit"],
        },
        "sectiunea_3_concluzii": {
            "ce_merge_bine": "Volum bun.",
            "ce_nu_merge_si_necesita_interventie_urgenta": "Marja scăzută.",
            "focus_luna_urmatoare": "Clienți noi.",
        },
        "sectiunea_4_actiuni_prioritare": {
            "actiuni_specifice_per_rol": {
                "freight_forwarder": ["Sună transportatorii", ""],
                "sales_freight_agent": ["Sună transportatorii", "Ofertează"],
            }
        },
        "sectiunea_5_plan_saptamanal": {
            "format": {"saptamana_1": "Audit.", "saptamana_2_4": "Execuție."}
        },
        "sectiunea_6_check_in_intermediar": {"format": "call", "regula": "<80%"},
        "incheiere": {
            "raport_urmator": "Aprilie.",
            "semnatura": {"nume": "Ion", "functie": "Director"},
        },
        "titlu": "ignored heading",
    }


@pytest.mark.unit
def test_role_actions_are_flattened_in_order() -> None:
    """Forwarder actions come before sales-agent actions."""
    payload = to_semantic_payload("employee", _ROLE_ACTIONS)

    assert isinstance(payload, EmployeePayload)
    assert payload.actiuni == ["A1", "A2"]
    assert payload.check_in is None


@pytest.mark.unit
def test_full_employee_payload_is_mapped() -> None:
    """Populated fields are trimmed and cross-role duplicates are kept."""
    payload = employee_to_semantic_payload(_employee_sections())

    assert payload.greeting == "Bună, Ana"
    assert payload.interpretare.include == ["curse", "profit"]
    assert payload.concluzii.ce_nu_merge == "Marja scăzută."
    assert payload.actiuni == [
        "Sună transportatorii",
        "Sună transportatorii",
        "Ofertează",
    ]
    assert payload.plan.saptamana_2_4 == "Execuție."
    assert payload.check_in == CheckIn(format="call", regula="<80%")
    assert payload.incheiere.semnatura.nume == "Ion"
    assert payload.incheiere.semnatura.companie == "Crystal Logistics Services"


@pytest.mark.unit
def test_empty_employee_object_gets_defaults() -> None:
    """Missing optional content falls back to stable defaults."""
    payload = employee_to_semantic_payload({})

    assert payload.greeting == ""
    assert payload.actiuni == [DEFAULT_ACTIUNE, DEFAULT_ACTIUNE]
    assert payload.interpretare.include == ["–"]
    assert payload.concluzii.ce_merge_bine == "–"
    assert payload.plan.saptamana_1 == "Săptămâna 1: de stabilit."
    assert payload.check_in is None


@pytest.mark.unit
def test_non_mapping_check_in_is_absent() -> None:
    """A check-in section that is not an object is treated as absent."""
    payload = employee_to_semantic_payload(
        {"sectiunea_6_check_in_intermediar": "în curând"}
    )

    assert payload.check_in is None


@pytest.mark.unit
@pytest.mark.parametrize("bad_input", [None, "text", ["list"], 3])
def test_absent_or_non_object_input_is_rejected(bad_input: object) -> None:
    """Adapters refuse inputs that are not objects."""
    with pytest.raises(AdapterInputError) as exc_info:
        to_semantic_payload("employee", bad_input)

    assert exc_info.value.code == "adapter_input_invalid"
    with pytest.raises(AdapterInputError):
        department_to_semantic_payload(bad_input)


@pytest.mark.unit
def test_adapter_is_pure_and_idempotent() -> None:
    """Same input yields equal payloads and the input is not mutated."""
    sections = _employee_sections()
    before = copy.deepcopy(sections)

    first = employee_to_semantic_payload(sections)
    second = employee_to_semantic_payload(sections)

    assert first.model_dump() == second.model_dump()
    assert sections == before


@pytest.mark.unit
def test_employee_payload_serializes_with_camel_case_aliases() -> None:
    """Alias dump exposes renderer-facing camelCase keys."""
    dumped = employee_to_semantic_payload(_employee_sections()).model_dump(
        by_alias=True
    )

    assert {"greeting", "introMessage", "checkIn", "actiuni"} <= set(dumped)
    assert dumped["checkIn"] == {"format": "call", "regula": "<80%"}
    assert "ceMergeBine" in dumped["concluzii"]


@pytest.mark.unit
def test_department_payload_shape() -> None:
    """Department payload copies analysis blocks and defaults missing ones."""
    sections = {
        "antet": {"introducere": "Luna martie."},
        "sectiunea_1_rezumat_executiv": {"ignored": True},
        "sectiunea_2_analiza_vanzari": {
            "performantaVsIstoric": {"luna": 120},
            "tabelAngajati": "<table></table>",
            "highPerformers": ["Ana"],
        },
        "sectiunea_4_comparatie_departamente": {"observatii": ["Vânzări > Ops"]},
        "sectiunea_5_recomandari_management": {"trainingNecesare": ["Excel"]},
        "incheiere": {"urmatorulRaport": "Aprilie", "semnatura": {"nume": "Ion"}},
    }

    payload = to_semantic_payload("department", sections)

    assert isinstance(payload, DepartmentPayload)
    assert payload.intro == "Luna martie."
    assert payload.analiza_vanzari.performanta_vs_istoric == {"luna": 120}
    assert payload.analiza_vanzari.tabel_angajati == "<table></table>"
    assert payload.analiza_vanzari.high_performers == ["Ana"]
    assert payload.analiza_operational.tabel_angajati == ""
    assert payload.analiza_operational.low_performers == []
    assert payload.comparatie.tabel_comparativ == {}
    assert payload.comparatie.observatii == ["Vânzări > Ops"]
    assert payload.recomandari.training_necesare == ["Excel"]
    assert payload.recomandari.mutari_rol_optional == []
    assert payload.incheiere.semnatura == {"nume": "Ion"}


@pytest.mark.unit
def test_department_copies_are_detached_from_input() -> None:
    """Mutating the input after adaptation leaves the payload unchanged."""
    sections = {"sectiunea_2_analiza_vanzari": {"highPerformers": [{"nume": "Ana"}]}}

    payload = department_to_semantic_payload(sections)
    sections["sectiunea_2_analiza_vanzari"]["highPerformers"][0]["nume"] = "X"

    assert payload.analiza_vanzari.high_performers == [{"nume": "Ana"}]


@pytest.mark.unit
def test_every_payload_model_is_documented() -> None:
    """Each payload section model carries its own class docstring."""
    model_classes = [
        obj
        for _, obj in inspect.getmembers(payload_models, inspect.isclass)
        if issubclass(obj, payload_models.BaseModel)
        and obj.__module__ == payload_models.__name__
    ]

    assert len(model_classes) == 13
    undocumented = [
        cls.__name__ for cls in model_classes if not cls.__dict__.get("__doc__")
    ]
    assert undocumented == []
