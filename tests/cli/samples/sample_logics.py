"""Logics and plugins the CLI tests point the statekit commands at."""

from statekit import Placement, Plugin, define


def _audit(logic, spec, build):
    logic.cache["audited"] = True


audit_plugin = Plugin(
    name="audit",
    build_steps={"audit": _audit},
    build_order={"audit": Placement(after="reducers")},
)

counter = define(
    {
        "path": ("samples", "counter"),
        "options": {"lazy": True},
        "constants": ["STEP"],
        "actions": {"increment": lambda amount=1: {"amount": amount}},
        "reducers": lambda logic: {
            "count": [0, {logic.action_creators.increment: lambda state, p: state + p["amount"]}],
        },
        "selectors": lambda logic: {
            "doubled": (lambda: [logic.selectors.count], lambda count: count * 2),
        },
    }
)

todo = define(
    {
        "path": ("samples", "todo"),
        "key": lambda props: props["id"],
        "actions": {"rename": lambda title: {"title": title}},
        "reducers": lambda logic: {
            "title": ["untitled", {logic.action_creators.rename: lambda state, p: p["title"]}],
        },
    }
)

dashboard = define(
    {
        "path": ("samples", "dashboard"),
        "options": {"lazy": True},
        "connect": {"values": [(counter, ["doubled as total"])]},
    }
)

NOT_A_LOGIC = 42
