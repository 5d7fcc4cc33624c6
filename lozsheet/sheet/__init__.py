"""
Sheet state engine: field store, list-entity managers, equip
classification and derived-stat recomputation.

Import from the submodules directly; this package keeps no re-exports so
the models package can depend on `sheet.equipment` without a cycle.
"""
