from typing import Annotated, Any, Dict, Tuple

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from lozsheet.prefabs.validators import clean_text, coerce_bool
from lozsheet.sheet.equipment import normalize_properties


def _require_name(value: str) -> str:
    if not value:
        raise ValueError("Name is required.")
    return value


def _action_kind(value: Any) -> str:
    text = clean_text(value)
    if not text:
        return "Action"
    for known in ACTION_KINDS:
        if known.lower() == text.lower():
            return known
    return text


# Canonical attribute shapes. Every text attribute is trimmed; None -> "".
Text = Annotated[str, BeforeValidator(clean_text)]
EntityName = Annotated[str, BeforeValidator(clean_text), AfterValidator(_require_name)]
Flag = Annotated[bool, BeforeValidator(coerce_bool)]

ACTION_KINDS: Tuple[str, ...] = ("Action", "Attack", "Bonus Action", "Reaction", "Other")


class SheetEntity(BaseModel):
    """
    Common base for list entities: a required, trimmed `name`.

    Extra attributes are allowed and preserved verbatim, so records written
    by older or newer builders survive a round trip untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: EntityName

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict using the stored (camelCase) attribute names."""
        return self.model_dump(by_alias=True)


class Spell(SheetEntity):
    level: Text = ""
    time: Text = ""
    range: Text = ""
    components: Text = ""
    duration: Text = ""
    effect: Text = ""
    notes: Text = ""


class Action(SheetEntity):
    kind: Annotated[str, BeforeValidator(_action_kind)] = "Action"
    type: Text = ""
    to_hit: Text = Field("", alias="toHit")
    effect: Text = ""
    notes: Text = ""


class InventoryItem(SheetEntity):
    qty: Text = ""
    category: Text = ""
    notes: Text = ""
    tags: Text = ""
    equippable: Flag = False
    equipped: Flag = False
    equip_type: Text = Field("", alias="equipType")
    damage: Text = ""
    range: Text = ""
    armor_class: Text = Field("", alias="armorClass")
    properties: Text = ""

    @model_validator(mode="after")
    def _enforce_equip_rules(self):
        # An item that cannot be equipped is never stored as equipped.
        if not self.equippable:
            self.equipped = False
        self.properties = normalize_properties(self.properties, self.equip_type)
        return self


class Feature(SheetEntity):
    source: Text = ""
    uses: Text = ""
    desc: Text = ""
    notes: Text = ""
