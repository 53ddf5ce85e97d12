# registry_core/inpatient/beds.py
from __future__ import annotations

ICU = "icu"
WARD = "ward"

ICU_BEDS: tuple[str, ...] = tuple(f"ICU-{n}" for n in range(1, 7)) + tuple(f"CCU-{n}" for n in range(1, 5))
WARD_BEDS: tuple[str, ...] = tuple(f"W-{n}" for n in range(101, 111)) + tuple(f"W-{n}" for n in range(201, 206))

BEDS = {ICU: ICU_BEDS, WARD: WARD_BEDS}
