import json

import pytest

from lozsheet.sheet.entity_kinds import ACTIONS, ENTITY_KINDS, FEATURES, INVENTORY, SPELLS
from lozsheet.sheet.list_manager import InventoryManager, ListEntityManager


@pytest.fixture
def changes():
    return []


@pytest.fixture
def make_manager(store, notifier, confirm, changes):
    def _make(kind, cls=ListEntityManager):
        return cls(store, kind, notifier=notifier, confirm=confirm, on_change=changes.append)

    return _make


@pytest.fixture
def spells(make_manager):
    return make_manager(SPELLS)


@pytest.fixture
def actions(make_manager):
    return make_manager(ACTIONS)


@pytest.fixture
def inventory(make_manager):
    return make_manager(INVENTORY, InventoryManager)


def stored(store, field_name):
    return json.loads(store.get_value(field_name))


# --- add ---

def test_add_trims_and_persists_into_backing_field(spells, store, notifier, changes):
    outcome = spells.add({"name": "  Din's Fire ", "time": " 1 action", "range": "self"})

    assert outcome == {"success": True, "message": "Added.", "index": 0}
    record = stored(store, "spells")[0]
    assert record["name"] == "Din's Fire"
    assert record["time"] == "1 action"
    assert record["effect"] == ""
    assert changes == ["spells"]
    assert notifier.history[-1] == ("Added.", "info")


@pytest.mark.parametrize("blank", ["", "   ", None])
def test_add_with_blank_name_is_rejected(spells, store, notifier, changes, blank):
    spells.add({"name": "Nayru's Love"})
    before = store.get_value("spells")

    outcome = spells.add({"name": blank, "effect": "something"})

    assert outcome["success"] is False
    assert outcome["error"] == "Name is required."
    assert outcome["focus"] == "name"
    assert len(spells) == 1
    assert store.get_value("spells") == before
    assert changes == ["spells"]
    assert notifier.history[-1] == ("Name is required.", "error")


def test_add_uses_builder_when_no_candidate(actions, store):
    actions.builder["name"] = "Spin Attack"
    actions.builder["kind"] = "attack"
    actions.builder["toHit"] = "+5"
    actions.add()

    record = stored(store, "actions")[0]
    assert record["kind"] == "Attack"
    assert record["toHit"] == "+5"
    assert actions.builder["name"] == ""


def test_python_attribute_names_are_accepted(actions, store):
    actions.add({"name": "Shield Bash", "to_hit": "+3"})
    record = stored(store, "actions")[0]
    assert record["toHit"] == "+3"
    assert "to_hit" not in record
    assert record["kind"] == "Action"


# --- list / legacy ---

def test_legacy_lines_become_bare_entities(inventory, store):
    store.set_value("inventory", "Torch\nRope\n", notify=False)
    items = inventory.list()

    assert [item.name for item in items] == ["Torch", "Rope"]
    assert items[0].qty == ""
    assert items[0].equipped is False
    assert items[1].properties == ""


def test_legacy_spell_lines_split_on_em_dash(spells, store):
    store.set_value("spells", "Farore's Wind — 1 action — Self — Warp to a set point\nLight", notify=False)
    first, second = spells.list()

    assert first.name == "Farore's Wind"
    assert first.time == "1 action"
    assert first.range == "Self"
    assert first.effect == "Warp to a set point"
    assert second.name == "Light"
    assert second.effect == "Light"


def test_empty_view_message(make_manager):
    features = make_manager(FEATURES)
    assert len(features) == 0
    view = features.view()
    assert view["entries"] == []
    assert view["message"] == FEATURES.empty_message


def test_stored_record_without_name_is_still_listed(spells, store):
    store.set_value("spells", json.dumps([{"name": "", "effect": "mystery"}]), notify=False)
    entries = spells.list()
    assert len(entries) == 1
    assert entries[0].effect == "mystery"


def test_overlong_number_in_stored_json_falls_back_to_lines(inventory, store):
    store.set_value("inventory", '[{"name": "Rope", "qty": ' + "9" * 5000 + "}]", notify=False)
    items = inventory.list()
    assert len(items) == 1
    assert items[0].name.startswith("[{")


def test_adding_to_legacy_text_converts_it_to_json(inventory, store):
    store.set_value("inventory", "Torch\nRope", notify=False)
    inventory.add({"name": "Lantern"})
    assert [r["name"] for r in stored(store, "inventory")] == ["Torch", "Rope", "Lantern"]


# --- normalize ---

@pytest.mark.parametrize(
    "kind, raw",
    [
        (SPELLS, {"name": " Fireball ", "level": 3, "time": None, "extra": "kept"}),
        (ACTIONS, {"name": "Dodge", "kind": " bonus action ", "toHit": 2}),
        (INVENTORY, {
            "name": " Bow ", "equippable": "yes", "equipped": "on", "equipType": "Longbow",
            "properties": "finesse, Heavy, heavy , custom", "qty": 1,
        }),
        (INVENTORY, {"name": "Rope", "equipped": True}),
        (FEATURES, {"name": "Hylian Blood", "uses": 2, "desc": " Long-lived "}),
    ],
)
def test_normalize_is_idempotent(kind, raw):
    once = kind.normalize(raw)
    assert kind.normalize(once) == once


def test_inventory_normalization_rules():
    bow = INVENTORY.normalize({
        "name": "Bow", "equippable": "yes", "equipped": "on", "equipType": "Longbow",
        "properties": "finesse, Heavy, heavy , custom",
    })
    assert bow["equipped"] is True
    assert bow["properties"] == "Finesse, Heavy, custom"

    rope = INVENTORY.normalize({"name": "Rope", "equipped": True})
    assert rope["equippable"] is False
    assert rope["equipped"] is False


def test_every_kind_is_registered():
    assert set(ENTITY_KINDS) == {"spells", "actions", "inventory", "features"}


# --- edit / save ---

def test_save_merges_onto_stored_record(inventory, store, notifier, changes):
    store.set_value("inventory", json.dumps([{"name": "Sword", "weight": "3"}]), notify=False)

    inventory.edit(0)
    outcome = inventory.save({"name": "Longsword"})

    assert outcome["success"] is True
    record = stored(store, "inventory")[0]
    assert record["name"] == "Longsword"
    assert record["weight"] == "3"
    assert inventory.is_editing is False
    assert notifier.history[-1] == ("Updated.", "info")


def test_edit_loads_builder_without_touching_storage(actions, store, changes):
    actions.add({"name": "Slash", "kind": "Attack", "toHit": "+4"})
    before = store.get_value("actions")

    outcome = actions.edit(0)

    assert outcome["success"] is True
    assert actions.editing_index == 0
    assert actions.builder["name"] == "Slash"
    assert actions.builder["toHit"] == "+4"
    assert store.get_value("actions") == before
    assert changes == ["actions", "actions"]


def test_submit_adds_when_idle_and_saves_when_editing(spells):
    spells.submit({"name": "Din's Fire"})
    spells.edit(0)
    spells.builder["name"] = "Din's Fire II"
    outcome = spells.submit()

    assert outcome["message"] == "Updated."
    assert [s.name for s in spells.list()] == ["Din's Fire II"]


def test_save_with_blank_name_keeps_editing(spells):
    spells.add({"name": "Din's Fire"})
    spells.edit(0)
    outcome = spells.save({"name": "  "})
    assert outcome["success"] is False
    assert spells.is_editing is True
    assert spells.list()[0].name == "Din's Fire"


def test_save_when_idle_is_refused(spells):
    assert spells.save({"name": "x"})["success"] is False


def test_edit_out_of_range(spells, notifier):
    outcome = spells.edit(4)
    assert outcome["success"] is False
    assert spells.is_editing is False


def test_cancel_edit_returns_to_idle(spells):
    spells.add({"name": "Din's Fire"})
    spells.edit(0)
    spells.cancel_edit()
    assert spells.editing_index is None
    assert spells.builder["name"] == ""


# --- delete ---

def test_delete_requires_confirmation(spells, confirm, confirm_answers):
    spells.add({"name": "Din's Fire"})
    confirm_answers.append(False)

    outcome = spells.delete(0)

    assert outcome == {"success": False, "cancelled": True}
    assert len(spells) == 1
    assert confirm.prompts == ["Remove this entry?"]


def test_delete_adjusts_edit_state(spells, changes):
    for name in ("A", "B", "C"):
        spells.add({"name": name})

    spells.edit(2)
    spells.delete(0)
    assert spells.editing_index == 1
    assert [s.name for s in spells.list()] == ["B", "C"]

    spells.delete(1)
    assert spells.is_editing is False
    assert [s.name for s in spells.list()] == ["B"]


# --- filter ---

def test_filter_is_a_pure_view(actions, store):
    for name, kind in (("Slash", "Attack"), ("Quick Step", "Bonus Action"), ("Parry", "Reaction")):
        actions.add({"name": name, "kind": kind})
    before = store.get_value("actions")

    assert [(i, a.name) for i, a in actions.filter("bonus")] == [(1, "Quick Step")]
    assert [(i, a.name) for i, a in actions.filter("reaction")] == [(2, "Parry")]
    assert len(actions.filter("all")) == 3
    assert len(actions.filter("not-a-filter")) == 3
    assert [i for i, _ in actions.filter(lambda a: a.name.startswith("S"))] == [0]
    assert store.get_value("actions") == before


def test_view_reports_no_matches(actions):
    actions.add({"name": "Slash", "kind": "Attack"})
    view = actions.view("reaction")
    assert view["entries"] == []
    assert view["message"] == "No entries match this filter."


# --- inventory ---

def test_toggle_equipped(inventory, store):
    inventory.add({"name": "Kokiri Sword", "equippable": True, "equipType": "sword"})
    inventory.add({"name": "Rope"})

    assert inventory.toggle_equipped(0)["equipped"] is True
    assert stored(store, "inventory")[0]["equipped"] is True

    outcome = inventory.toggle_equipped(1)
    assert outcome["success"] is False
    assert stored(store, "inventory")[1]["equipped"] is False


def test_toggle_on_stored_record_without_name_is_refused(inventory, store, notifier, changes):
    store.set_value("inventory", json.dumps([{"name": "", "equippable": True}]), notify=False)

    outcome = inventory.toggle_equipped(0)

    assert outcome == {"success": False, "error": "Name is required.", "focus": "name"}
    assert notifier.history[-1] == ("Name is required.", "error")
    assert stored(store, "inventory") == [{"name": "", "equippable": True}]
    assert changes == []


def test_equipped_summary_groups_by_category(inventory):
    inventory.add({"name": "Master Sword", "equippable": True, "equipped": True, "equipType": "Sword"})
    inventory.add({"name": "Hylian Shield", "equippable": True, "equipped": True, "equipType": "shield"})
    inventory.add({"name": "Lamp", "equippable": True, "equipped": True, "equipType": "lantern"})
    inventory.add({"name": "Bow", "equippable": True, "equipType": "bow"})

    summary = inventory.equipped_summary()
    assert [i.name for i in summary["weapon"]] == ["Master Sword"]
    assert [i.name for i in summary["shield"]] == ["Hylian Shield"]
    assert [i.name for i in summary["gear"]] == ["Lamp"]
    assert "ammo" not in summary


def test_equipped_details_show_category_attributes(inventory):
    inventory.add({
        "name": "Master Sword", "equippable": True, "equipped": True,
        "equipType": "sword", "damage": "1d8", "properties": "versatile",
    })
    inventory.add({
        "name": "Hylian Shield", "equippable": True, "equipped": True,
        "equipType": "shield", "armorClass": "2", "damage": "1d4",
    })
    inventory.add({"name": "Lamp", "equippable": True, "equipped": True, "damage": "1"})

    details = inventory.equipped_details()
    assert details["weapon"] == [("Master Sword", {"damage": "1d8", "properties": "Versatile"})]
    assert details["shield"] == [("Hylian Shield", {"armorClass": "2"})]
    assert details["gear"] == [("Lamp", {})]
