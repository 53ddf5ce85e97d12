# registry_core/surgery/checklists.py
"""
WHO Surgical Safety Checklist phases.

Each phase is confirmed as a list of booleans in item order; every item
must be true before the surgery may move on.
"""
from __future__ import annotations

SIGN_IN = "sign_in"
TIME_OUT = "time_out"
SIGN_OUT = "sign_out"

CHECKLISTS: dict[str, tuple[str, ...]] = {
    SIGN_IN: (
        "Patient has confirmed identity, site, procedure, and consent",
        "Site marked / not applicable",
        "Anesthesia safety check completed",
        "Pulse oximeter on patient and functioning",
        "Does patient have a known allergy? (If yes, documented)",
        "Difficult airway / aspiration risk? (Equipment/assistance available)",
        "Risk of >500ml blood loss? (Adequate access and fluids planned)",
    ),
    TIME_OUT: (
        "Confirm all team members have introduced themselves by name and role",
        "Surgeon, anesthetist, and nurse verbally confirm: patient, site, procedure",
        "Anticipated critical events reviewed by surgeon",
        "Anticipated critical events reviewed by anesthetist",
        "Anticipated critical events reviewed by nursing team",
        "Has antibiotic prophylaxis been given within the last 60 minutes?",
        "Is essential imaging displayed?",
    ),
    SIGN_OUT: (
        "Nurse verbally confirms with the team: name of procedure recorded",
        "Instrument, sponge, and needle counts are correct",
        "Specimen labeling confirmed (read specimen labels aloud, including patient name)",
        "Equipment problems addressed",
        "Key concerns for recovery and management of patient reviewed by surgeon, anesthetist, and nurse",
    ),
}

PHASE_LABELS = {SIGN_IN: "Sign in", TIME_OUT: "Time out", SIGN_OUT: "Sign out"}


def validate_phase(phase: str, confirmed: list[bool] | None) -> list[dict]:
    """
    Check one phase and return its record entries.
    Raises ValueError naming the first unconfirmed item.
    """
    items = CHECKLISTS[phase]
    confirmed = list(confirmed or [])
    if len(confirmed) != len(items):
        raise ValueError(f"{PHASE_LABELS[phase]} checklist needs {len(items)} items, got {len(confirmed)}.")

    for text, ok in zip(items, confirmed):
        if not ok:
            raise ValueError(f"{PHASE_LABELS[phase]} item not confirmed: {text}")

    return [{"item": text, "confirmed": True} for text in items]
