"""Required-key output contracts for each report kind."""

from __future__ import annotations

from perfmail.llm.base import LlmContractError, ReportKind

EMPLOYEE_KEYS: tuple[str, ...] = (
    "interpretareHtml",
    "concluziiHtml",
    "actiuniHtml",
    "planHtml",
)
DEPARTMENT_KEYS: tuple[str, ...] = (
    "rezumatExecutivHtml",
    "vanzariHtml",
    "operationalHtml",
    "comparatiiHtml",
    "recomandariHtml",
)

REQUIRED_KEYS: dict[ReportKind, tuple[str, ...]] = {
    ReportKind.EMPLOYEE: EMPLOYEE_KEYS,
    ReportKind.DEPARTMENT: DEPARTMENT_KEYS,
}

EMPLOYEE_JSON_INSTRUCTION = """
Răspunde EXCLUSIV în JSON valid, cu exact aceste chei (conținut HTML valid, inline styles permis):
- interpretareHtml: secțiunea Interpretare date (HTML, paragrafe/lista)
- concluziiHtml: secțiunea Concluzii (HTML)
- actiuniHtml: secțiunea Acțiuni prioritare (HTML, listă numerotată)
- planHtml: secțiunea Plan săptămânal (HTML)
Fără alte chei. Conținutul trebuie să facă referire la cifrele din input."""

DEPARTMENT_JSON_INSTRUCTION = """
Răspunde EXCLUSIV în JSON valid, cu exact aceste chei (conținut HTML valid, inline styles permis):
- rezumatExecutivHtml: Rezumat executiv (HTML)
- vanzariHtml: Analiză Vânzări (HTML)
- operationalHtml: Analiză Operațional (HTML)
- comparatiiHtml: Comparații (HTML)
- recomandariHtml: Recomandări (HTML)
Fără alte chei. Conținutul trebuie să facă referire la datele din input."""

JSON_INSTRUCTIONS: dict[ReportKind, str] = {
    ReportKind.EMPLOYEE: EMPLOYEE_JSON_INSTRUCTION,
    ReportKind.DEPARTMENT: DEPARTMENT_JSON_INSTRUCTION,
}

STRICT_JSON_INSTRUCTION = (
    "\n\nIMPORTANT: Răspunde DOAR cu un obiect JSON valid, fără markdown, "
    "fără text înainte sau după."
)


def validate_sections(kind: ReportKind, parsed: object) -> dict[str, str]:
    """Check the parsed object carries every required non-empty key.

    Args:
        kind: Report shape to enforce.
        parsed: Parsed JSON value.

    Returns:
        New dict with exactly the required keys, values trimmed.

    Raises:
        LlmContractError: If the value is not an object or a key is missing,
            non-string, or blank.
    """
    if not isinstance(parsed, dict):
        raise LlmContractError(
            f"LLM {kind.value} output is not a JSON object.", kind=kind
        )
    result: dict[str, str] = {}
    for key in REQUIRED_KEYS[kind]:
        value = parsed.get(key)
        if not isinstance(value, str) or not value.strip():
            raise LlmContractError(
                f"LLM {kind.value} output missing or empty required key: {key}.",
                kind=kind,
                missing_key=key,
            )
        result[key] = value.strip()
    return result
