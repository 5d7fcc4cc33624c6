"""
Derived Stats Engine
====================
Recomputes every value that depends on other fields:

1.  **Abilities:** modifier = floor((score - 10) / 2), blank score = 10.
2.  **Skills:** total = linked modifier + proficiency bonus when proficient.
3.  **Pools:** stamina and mana are clamped (current <= max, temp only
    when full, temp <= half of max) and their range bounds updated.
4.  **Hearts:** display-only markers; stored HP values are never clamped.

Which groups run after a change is decided by a declared dependency
graph (field name -> groups), not by call order.

Restoring a saved sheet is a two-step protocol, see `restore()`.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from lozsheet.models.derived import AbilityReading, HeartsReading, PoolReading, SkillReading
from lozsheet.prefabs import (
    ability_modifier,
    format_bonus,
    is_blank,
    pool_ratios,
    validate_compound,
    validate_pool,
)
from lozsheet.sheet.field_store import FieldStore
from lozsheet.sheet.layout import (
    ABILITIES,
    HP_FIELD,
    HP_MAX_FIELD,
    HP_TEMP_FIELD,
    POOLS,
    PROFICIENCY_FIELD,
    SKILLS,
    modifier_field,
    proficiency_field,
    score_field,
    skill_field,
    withheld_resource_fields,
)

logger = logging.getLogger(__name__)

HEARTS_DISPLAY_MAX = 60
HEARTS_TEMP_DISPLAY_MAX = 20

GROUP_ABILITIES = "abilities"
GROUP_SKILLS = "skills"
GROUP_HEARTS = "hearts"

# Run order when several groups are affected at once.
GROUP_ORDER = (GROUP_ABILITIES, GROUP_SKILLS, *POOLS.keys(), GROUP_HEARTS)


def build_dependency_graph() -> Dict[str, Set[str]]:
    """field name -> recompute groups that read it."""
    graph: Dict[str, Set[str]] = {}

    def link(field: str, *groups: str):
        graph.setdefault(field, set()).update(groups)

    for ability in ABILITIES:
        link(score_field(ability), GROUP_ABILITIES, GROUP_SKILLS)
        # Hand edits of a modifier are overwritten by the next recompute.
        link(modifier_field(ability), GROUP_ABILITIES)

    link(PROFICIENCY_FIELD, GROUP_SKILLS)
    for skill in SKILLS:
        link(proficiency_field(skill), GROUP_SKILLS)
        link(skill_field(skill), GROUP_SKILLS)

    for key, pool in POOLS.items():
        link(pool.current, key)
        link(pool.max, key)
        link(pool.temp, key)

    link(HP_FIELD, GROUP_HEARTS)
    link(HP_MAX_FIELD, GROUP_HEARTS)
    link(HP_TEMP_FIELD, GROUP_HEARTS)
    return graph


class DerivedStatsEngine:
    def __init__(self, store: FieldStore):
        self.store = store
        self.dependencies = build_dependency_graph()
        self.pools: Dict[str, PoolReading] = {}
        self.hearts = HeartsReading()
        self.abilities: List[AbilityReading] = []
        self.skills: List[SkillReading] = []

    # =========================================================================
    # ABILITIES & SKILLS
    # =========================================================================

    def modifier(self, ability: str) -> int:
        return ability_modifier(self.store.get_value(score_field(ability)))

    def recompute_abilities(self) -> List[AbilityReading]:
        readings = []
        for ability in ABILITIES:
            raw = self.store.get_value(score_field(ability))
            compound = validate_compound(raw)
            mod = compound["mod"]
            self.store.set_value(modifier_field(ability), format_bonus(mod), notify=False)
            readings.append(AbilityReading(
                ability=ability,
                score=compound["score"],
                modifier=mod,
                base_display="0" if is_blank(raw) else str(compound["score"]),
                bonus_display=format_bonus(mod),
            ))
        self.abilities = readings
        return readings

    def header_abilities(self) -> List[AbilityReading]:
        """Compact base/bonus pairs for the sheet header."""
        if not self.abilities:
            self.recompute_abilities()
        return list(self.abilities)

    def recompute_skills(self) -> List[SkillReading]:
        bonus = self.store.get_int(PROFICIENCY_FIELD)
        readings = []
        for skill, (label, ability) in SKILLS.items():
            proficient = self.store.get_bool(proficiency_field(skill))
            total = self.modifier(ability) + (bonus if proficient else 0)
            display = format_bonus(total)
            self.store.set_value(skill_field(skill), display, notify=False)
            readings.append(SkillReading(
                skill=skill,
                label=label,
                ability=ability,
                proficient=proficient,
                total=total,
                display=display,
            ))
        self.skills = readings
        return readings

    # =========================================================================
    # RESOURCE POOLS
    # =========================================================================

    def recompute_pool(self, key: str) -> PoolReading:
        fields = POOLS[key]
        pool = validate_pool(
            self.store.get_value(fields.current),
            self.store.get_value(fields.max),
            self.store.get_value(fields.temp),
        )

        self.store.set_bounds(fields.current, maximum=pool["max"])
        self.store.set_value(fields.current, pool["current"], notify=False)
        self.store.set_bounds(
            fields.temp,
            maximum=pool["ring_cap"],
            disabled=not pool["temp_allowed"],
        )
        self.store.set_value(fields.temp, pool["temp"], notify=False)

        reading = PoolReading(
            key=key,
            **pool,
            **pool_ratios(pool["current"], pool["temp"], pool["ring_cap"]),
        )
        self.pools[key] = reading
        return reading

    # =========================================================================
    # HEARTS
    # =========================================================================

    def recompute_hearts(self) -> HeartsReading:
        """Display only: HP is not forced into [0, max] here."""
        hp = self.store.get_int(HP_FIELD)
        true_max = max(0, self.store.get_int(HP_MAX_FIELD))
        temp = max(0, self.store.get_int(HP_TEMP_FIELD))
        shown_max = min(true_max, HEARTS_DISPLAY_MAX)

        markers = []
        if shown_max or temp:
            filled = max(0, min(hp, shown_max))
            markers.extend("full" if i < filled else "empty" for i in range(shown_max))
            markers.extend("temp" for _ in range(min(temp, HEARTS_TEMP_DISPLAY_MAX)))

        self.hearts = HeartsReading(
            hp=hp,
            max=true_max,
            temp=temp,
            markers=markers,
            overflow=true_max - shown_max if true_max > shown_max else 0,
        )
        return self.hearts

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def recompute(self, groups: Iterable[str]) -> Set[str]:
        wanted = set(groups)
        for group in GROUP_ORDER:
            if group not in wanted:
                continue
            if group == GROUP_ABILITIES:
                self.recompute_abilities()
            elif group == GROUP_SKILLS:
                self.recompute_skills()
            elif group == GROUP_HEARTS:
                self.recompute_hearts()
            else:
                self.recompute_pool(group)
        return wanted

    def recompute_all(self) -> None:
        self.recompute(GROUP_ORDER)

    def on_field_changed(self, name: str) -> Set[str]:
        """Run only the groups that depend on `name`. Returns the groups run."""
        groups = self.dependencies.get(name, set())
        if groups:
            logger.debug(f"{name} changed -> recompute {sorted(groups)}")
            self.recompute(groups)
        return set(groups)

    # =========================================================================
    # TWO-PASS RESTORE
    # =========================================================================

    def apply_structural(self, data: Optional[Dict[str, Any]]) -> None:
        """
        Pass 1: write every field except pool current/temp, then recompute.
        This fixes each pool's max (and ring cap) before any current value
        is assigned into a bounded field.
        """
        self.store.write_sheet(data or {}, skip=withheld_resource_fields())
        self.recompute_all()

    def apply_resource_values(self, data: Optional[Dict[str, Any]]) -> None:
        """Pass 2: assign the withheld current/temp values against the now-correct bounds."""
        data = data or {}
        for pool in POOLS.values():
            self.store.set_value(pool.current, data.get(pool.current), notify=False)
            self.store.set_value(pool.temp, data.get(pool.temp), notify=False)
        for key in POOLS:
            self.recompute_pool(key)

    def restore(self, data: Optional[Dict[str, Any]]) -> None:
        """Full-sheet write that cannot be corrupted by range clamping."""
        self.apply_structural(data)
        self.apply_resource_values(data)
