"""
Team roster configuration.

This file defines the people the task catalog is generated for and the
leaders of each functional area.

Structure:
- username: Short handle used in the area leaders table
- user_id: Identity-provider user id (tasks and completions reference it)
- area: Functional area, drives the task templates a member receives

Area leaders:
- Each area lists its leaders in priority order
- The first leader who is not the executing user becomes the task's leader
- An area with no eligible leader produces solo tasks
"""

from typing import Dict, Any, List

# Valid functional areas (must match the template catalog)
VALID_AREAS = [
    "direccion",
    "redes",
    "operaciones",
    "leads",
    "ventas",
    "analiticas",
    "cumplimiento",
    "innovacion",
]

# Team members
# Add your team members here - each member needs:
# 1. username - Handle referenced by AREA_LEADERS
# 2. user_id - The id issued by the identity provider
# 3. area - One of VALID_AREAS
DEFAULT_ROSTER: List[Dict[str, Any]] = [
    {"username": "zarko", "user_id": "usr_zarko", "area": "direccion"},
    {"username": "angel", "user_id": "usr_angel", "area": "redes"},
    {"username": "carla", "user_id": "usr_carla", "area": "redes"},
    {"username": "miguel", "user_id": "usr_miguel", "area": "operaciones"},
    {"username": "fer", "user_id": "usr_fer", "area": "leads"},
    {"username": "fernando", "user_id": "usr_fernando", "area": "ventas"},
    {"username": "manu", "user_id": "usr_manu", "area": "analiticas"},
    {"username": "casti", "user_id": "usr_casti", "area": "cumplimiento"},
    {"username": "diego", "user_id": "usr_diego", "area": "innovacion"},
]

# Leaders per area (co-leaders are independent, first eligible wins)
AREA_LEADERS: Dict[str, List[str]] = {
    "redes": ["angel", "carla"],
    "operaciones": ["miguel"],
    "leads": ["fer"],
    "ventas": ["fernando"],
    "analiticas": ["manu"],
    "cumplimiento": ["casti"],
    "innovacion": ["diego"],
    "direccion": [],  # no dedicated leader
}


def get_roster() -> List[Dict[str, Any]]:
    """Get a copy of the configured roster."""
    return [dict(member) for member in DEFAULT_ROSTER]


def get_area_leaders(area: str) -> List[str]:
    """Get the leader usernames for an area, in priority order."""
    return list(AREA_LEADERS.get(area, []))
