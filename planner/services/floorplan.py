import re
from functools import lru_cache
from pathlib import Path

from planner.services.exceptions import NotFoundError
from planner.services.occupancy import OccupancyStatus

PLANS_DIR = Path(__file__).resolve().parent.parent / "static" / "plans"

PLANS = {
    "lake0": ("Lake House - ground floor", "lakehouse_0floor.svg"),
    "lake1": ("Lake House - first floor", "lakehouse_1floor.svg"),
    "wc": ("Woodcutter's House", "woodcutter_0floor.svg"),
}

PLAN_STYLE = """<style>
  .apartment { cursor:pointer; transition: fill .15s ease; }
  .apartment.free { fill: rgba(34,197,94,.30); }
  .apartment.partial { fill: rgba(234,179,8,.28); }
  .apartment.full { fill: rgba(239,68,68,.35); cursor:not-allowed; }
  .apartment:hover { filter: brightness(1.03); }
</style>"""

_SVG_OPEN = re.compile(r"<svg\b[^>]*>")
_APARTMENT_ID = re.compile(r'id="(apt_[^"]+)"')


@lru_cache(maxsize=None)
def load_plan(plan_key: str) -> str:
    if plan_key not in PLANS:
        raise NotFoundError(f"Unknown floor plan: {plan_key}")
    _, filename = PLANS[plan_key]
    return (PLANS_DIR / filename).read_text(encoding="utf-8")


def render_plan(svg: str, status_map: dict[str, dict]) -> str:
    """
    Colour a floor plan by occupancy.

    Every element whose id starts with ``apt_`` gets the ``apartment`` class
    plus its status; apartments missing from ``status_map`` show as free.
    """
    out = _SVG_OPEN.sub(lambda m: f"{m.group(0)}\n{PLAN_STYLE}\n", svg, count=1)

    def _tag(match: re.Match) -> str:
        apartment_id = match.group(1)
        status = status_map.get(apartment_id, {}).get("status", OccupancyStatus.FREE.value)
        return f'id="{apartment_id}" class="apartment {status}"'

    return _APARTMENT_ID.sub(_tag, out)
