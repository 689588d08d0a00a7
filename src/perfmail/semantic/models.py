"""Semantic payload models consumed by the email renderer.

Key sets are fixed; only content varies. ``model_dump(by_alias=True)``
produces the camelCase contract the renderer reads.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _PayloadModel(BaseModel):
    """Shared config: frozen, camelCase aliases, population by field name."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Interpretare(_PayloadModel):
    """Data interpretation section: style hint and items to cover."""

    stil: str
    include: list[str]


class Concluzii(_PayloadModel):
    """Conclusions: what works, what needs urgent action, next focus."""

    ce_merge_bine: str
    ce_nu_merge: str
    focus_luna_urmatoare: str


class PlanSaptamanal(_PayloadModel):
    """Weekly plan for the first week and weeks two to four."""

    saptamana_1: str = Field(alias="saptamana_1")
    saptamana_2_4: str = Field(alias="saptamana_2_4")


class CheckIn(_PayloadModel):
    """Mid-month check-in format and trigger rule."""

    format: str
    regula: str


class Semnatura(_PayloadModel):
    """Employee email signature."""

    nume: str
    functie: str
    companie: str


class IncheiereAngajat(_PayloadModel):
    """Employee email closing: next report note, score messages, signature."""

    raport_urmator: str
    mesaj_sub_80: str
    mesaj_peste_80: str
    semnatura: Semnatura


class EmployeePayload(_PayloadModel):
    """Content-only payload for one employee email."""

    greeting: str
    intro_message: str
    interpretare: Interpretare
    concluzii: Concluzii
    actiuni: list[str]
    plan: PlanSaptamanal
    check_in: CheckIn | None
    incheiere: IncheiereAngajat


class AnalizaBlock(_PayloadModel):
    """Sales or operational analysis block."""

    performanta_vs_istoric: dict[str, object]
    target_departamental: dict[str, object]
    metrici_medii_per_angajat: dict[str, object]
    tabel_angajati: str
    probleme_identificate_angajati: list[object]
    high_performers: list[object]
    low_performers: list[object]
    probleme_sistemice: list[object]


class Comparatie(_PayloadModel):
    """Cross-department comparison table and observations."""

    tabel_comparativ: dict[str, object]
    observatii: list[object]


class Recomandari(_PayloadModel):
    """Management recommendation lists."""

    one_to_one_low_performers: list[object]
    training_necesare: list[object]
    urmarire_saptamanala: list[object]
    setare_obiective_specifice: list[object]
    mutari_rol_optional: list[object]
    probleme_sistemice_proces: list[object]


class IncheiereDepartament(_PayloadModel):
    """Department email closing with next report note and signature."""

    urmatorul_raport: str
    semnatura: dict[str, object]


class DepartmentPayload(_PayloadModel):
    """Content-only payload for one department/management email."""

    intro: str
    analiza_vanzari: AnalizaBlock
    analiza_operational: AnalizaBlock
    comparatie: Comparatie
    recomandari: Recomandari
    incheiere: IncheiereDepartament


SemanticPayload = EmployeePayload | DepartmentPayload
