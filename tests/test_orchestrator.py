import json

import pytest

from lozsheet.config import STORAGE_KEY, SheetConfig
from lozsheet.core.orchestrator import SheetOrchestrator


@pytest.fixture
def make_app(db, timers, clock, confirm, ingestor):
    def _make():
        return SheetOrchestrator(
            SheetConfig(),
            db=db,
            confirm=confirm,
            timer_factory=timers,
            clock=clock,
            ingestor=ingestor,
        )

    return _make


@pytest.fixture
def app(make_app):
    sheet = make_app()
    sheet.start()
    return sheet


def saved_data(db):
    return json.loads(db.storage.get_item(STORAGE_KEY))["data"]


def test_field_edit_recomputes_and_schedules_autosave(app, db, timers):
    app.set_field("score_courage", "16")

    assert app.store.get_value("mod_courage") == "+3"
    assert app.persistence.debouncer.pending is True

    timers.fire_all()
    assert saved_data(db)["score_courage"] == 16
    assert saved_data(db)["mod_courage"] == "+3"


def test_rapid_edits_write_once(app, db, timers):
    for value in ("L", "Li", "Lin", "Link"):
        app.set_field("name", value)
    timers.fire_all()
    assert app.persistence.write_count == 1
    assert saved_data(db)["name"] == "Link"


def test_pool_edits_are_clamped_through_the_pipeline(app):
    app.set_field("stamina_max", "10")
    assert app.set_field("stamina", "14")["value"] == 10
    assert app.set_field("stamina_temp", "9")["value"] == 5

    app.set_field("stamina_max", "6")
    assert app.store.get_value("stamina") == 6
    assert app.store.get_value("stamina_temp") == 3


def test_derived_fields_cannot_be_set(app):
    outcome = app.set_field("skill_stealth", "+9")
    assert outcome["success"] is False
    assert app.store.get_value("skill_stealth") == "+0"


def test_unknown_field(app):
    assert app.set_field("charisma", "18")["success"] is False


def test_disabled_temp_control_is_refused(app):
    app.set_field("mana_max", "8")
    assert app.set_field("mana_temp", "2")["success"] is False


def test_entity_changes_schedule_autosave(app, db, timers):
    app.manager("spells").add({"name": "Farore's Wind"})
    assert app.persistence.debouncer.pending is True
    timers.fire_all()
    assert "Farore's Wind" in saved_data(db)["spells"]


def test_hand_edit_of_collection_text_leaves_edit_mode(app):
    spells = app.manager("spells")
    spells.add({"name": "Din's Fire"})
    spells.edit(0)

    app.set_field("spells", "[]")

    assert spells.is_editing is False
    assert len(spells) == 0


def test_import_resyncs_managers(app, tmp_path):
    actions = app.manager("actions")
    actions.add({"name": "Slash"})
    actions.edit(0)
    path = tmp_path / "hero.json"
    path.write_text(json.dumps({"sheet": {"name": "Hero", "actions": "Jump\nRoll"}}), encoding="utf-8")

    assert app.persistence.import_file(path)["success"] is True
    assert actions.is_editing is False
    assert [a.name for a in actions.list()] == ["Jump", "Roll"]


def test_startup_restores_previous_session(make_app, db, timers):
    first = make_app()
    first.start()
    first.set_field("name", "Link")
    first.set_field("mana_max", "8")
    first.set_field("mana", "5")
    first.close()

    second = make_app()
    assert second.store.get_value("name") == ""
    assert second.start()["success"] is True
    assert second.store.get_value("name") == "Link"
    assert second.store.get_value("mana") == 5


def test_close_flushes_pending_autosave(app, db):
    app.set_field("race", "Hylian")
    app.close()
    assert saved_data(db)["race"] == "Hylian"


def test_action_filter(app):
    actions = app.manager("actions")
    actions.add({"name": "Slash", "kind": "Attack"})
    actions.add({"name": "Parry", "kind": "Reaction"})

    assert app.set_action_filter("reaction") == "reaction"
    assert [a.name for _, a in app.visible_actions()["entries"]] == ["Parry"]
    assert app.set_action_filter("bogus") == "all"
    assert len(app.visible_actions()["entries"]) == 2


def test_summary(app):
    app.set_field("name", "Link")
    app.set_field("hp_max", "3")
    app.set_field("hp", "2")
    app.manager("inventory").add(
        {"name": "Kokiri Sword", "equippable": True, "equipped": True, "equipType": "sword"}
    )

    summary = app.summary()
    assert summary["identity"]["name"] == "Link"
    assert [a.ability for a in summary["abilities"]][0] == "courage"
    assert summary["hearts"].markers == ["full", "full", "empty"]
    assert set(summary["pools"]) == {"stamina", "mana"}
    assert summary["collections"]["inventory"] == 1
    assert [i.name for i in summary["equipped"]["weapon"]] == ["Kokiri Sword"]
    assert summary["equipped_details"]["weapon"] == [("Kokiri Sword", {})]


def test_unknown_collection(app):
    with pytest.raises(KeyError):
        app.manager("pets")
