"""Tests for declaration table loading and validation."""
from pathlib import Path

import pytest
import yaml

from slather.config.default_actions import BUILTIN_ACTIONS, build_actions
from slather.config.loader import DeclarationLoader, coerce_value, infer_type
from slather.config.validator import TableValidator
from slather.core.declarations import DeclarationKind
from slather.core.errors import ConfigValidationError
from slather.core.hotkeys import SymbolicHotKey

STARTER = Path(__file__).parent.parent / "slather" / "config" / "templates" / "starter.yml"


def write_table(tmp_path, data):
    path = tmp_path / "slather.yml"
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


class TestLoader:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Declaration table not found"):
            DeclarationLoader(str(tmp_path / "nope.yml")).load()

    def test_empty_file(self, tmp_path):
        path = write_table(tmp_path, "")
        with pytest.raises(ConfigValidationError, match="slather init"):
            DeclarationLoader(str(path)).load()

    def test_invalid_yaml(self, tmp_path):
        path = write_table(tmp_path, "declarations: [\n")
        with pytest.raises(ConfigValidationError, match="Invalid YAML"):
            DeclarationLoader(str(path)).load()

    def test_starter_template_loads(self):
        table = DeclarationLoader(str(STARTER)).load()

        assert table.count_by_kind() == {
            "package": 3, "preference": 8, "hotkey": 1, "symlink": 1, "manual": 3,
        }
        assert [a.name for a in table.setup] == ["close-system-settings"]

    def test_all_kinds(self, tmp_path):
        path = write_table(tmp_path, {
            "declarations": [
                "jq",
                {"package": "karabiner-elements", "cask": True},
                {"tap": "homebrew/cask-fonts"},
                {"preference": "com.apple.dock/orientation", "value": "left", "action": "restart-dock"},
                {"preference": "Scroll speed", "domain": "NSGlobalDomain",
                 "key": "com.apple.scrollwheel.scaling", "type": "float", "value": "0.215"},
                {"hotkey": 36, "character": "d", "key_code": 2, "modifiers": ["control", "option"]},
                {"symlink": "~/.local/bin/date", "target": "/opt/homebrew/bin/gdate"},
                {"manual": "System Settings: Appearance: Dark\n  (no defaults key)"},
            ],
        })

        decls = DeclarationLoader(str(path)).load().declarations
        jq, karabiner, tap, dock, scroll, hotkey, link, manual = decls

        assert jq.kind == DeclarationKind.PACKAGE and jq.identifier == "jq"
        assert jq.description == "Brew install: jq"
        assert karabiner.cask is True
        assert tap.kind == DeclarationKind.TAP
        assert (dock.domain, dock.key, dock.value_type) == ("com.apple.dock", "orientation", "string")
        assert dock.action.name == "restart-dock"
        assert dock.action.disruptive is True
        assert scroll.identifier == "NSGlobalDomain/com.apple.scrollwheel.scaling"
        assert scroll.desired_value == 0.215
        assert isinstance(hotkey.desired_value, SymbolicHotKey)
        assert hotkey.action.name == "rewire-hotkeys"
        assert hotkey.identifier == "com.apple.symbolichotkeys/AppleSymbolicHotKeys/36"
        assert link.identifier == str(Path("~/.local/bin/date").expanduser())
        assert manual.identifier == "System Settings: Appearance: Dark"
        assert manual.desired_value.endswith("(no defaults key)")

    def test_custom_action_overrides_builtin(self, tmp_path):
        path = write_table(tmp_path, {
            "actions": {
                "restart-dock": {"command": ["killall", "-HUP", "Dock"]},
                "reload-karabiner": {"command": ["launchctl", "kickstart", "-k", "gui/501/org.pqrs.karabiner"],
                                     "disruptive": True},
            },
            "declarations": [
                {"preference": "com.apple.dock/autohide", "value": True, "action": "restart-dock"},
                {"package": "karabiner-elements", "cask": True, "action": "reload-karabiner"},
            ],
        })

        table = DeclarationLoader(str(path)).load()

        assert table.actions["restart-dock"].command == ("killall", "-HUP", "Dock")
        assert table.actions["restart-dock"].disruptive is False
        assert table.declarations[1].action.disruptive is True
        assert "restart-finder" in table.actions

    def test_bad_value_for_type(self, tmp_path):
        path = write_table(tmp_path, {
            "declarations": [{"preference": "NSGlobalDomain/KeyRepeat", "type": "int", "value": "fast"}],
        })

        with pytest.raises(ConfigValidationError, match=r"declarations\[0\]"):
            DeclarationLoader(str(path)).load()

    def test_empty_preference_value_is_rejected(self, tmp_path):
        path = write_table(tmp_path, "declarations:\n  - preference: com.apple.dock/orientation\n    value:\n")

        with pytest.raises(ConfigValidationError, match="preference value is empty"):
            DeclarationLoader(str(path)).load()

    def test_quoted_cask_flag(self, tmp_path):
        path = write_table(tmp_path, {
            "declarations": [
                {"package": "jq", "cask": "no"},
                {"package": "karabiner-elements", "cask": "yes"},
            ],
        })

        jq, karabiner = DeclarationLoader(str(path)).load().declarations

        assert jq.cask is False
        assert karabiner.cask is True

    def test_preference_without_domain(self, tmp_path):
        path = write_table(tmp_path, {"declarations": [{"preference": "orientation", "value": "left"}]})

        with pytest.raises(ConfigValidationError, match="domain/key"):
            DeclarationLoader(str(path)).load()


class TestValidator:
    def test_collects_every_problem(self):
        problems = TableValidator(known_actions=BUILTIN_ACTIONS).validate({
            "colour": "blue",
            "setup": ["make-coffee"],
            "declarations": [
                {"preference": "com.apple.dock/orientation"},
                {"preference": "com.apple.dock/tilesize", "value": 48, "type": "integer"},
                {"package": "jq", "tap": "homebrew/core"},
                {"symlink": "~/.local/bin/date"},
                {"manual": "  "},
                {"package": "jq", "action": "restart-router"},
                {"package": "jq", "value": 1},
                42,
                {"preference": "com.apple.dock/orientation", "value": None},
            ],
        })

        assert "unknown top-level key: colour" in problems
        assert "setup: unknown action 'make-coffee'" in problems
        assert "declarations[0]: preference needs a 'value'" in problems
        assert any(p.startswith("declarations[1]: type must be one of") for p in problems)
        assert any(p.startswith("declarations[2]: needs exactly one of") for p in problems)
        assert "declarations[3]: symlink needs a 'target'" in problems
        assert "declarations[4]: manual step text is empty" in problems
        assert "declarations[5]: unknown action 'restart-router'" in problems
        assert "declarations[6]: unexpected field 'value' for package" in problems
        assert "declarations[7]: must be a mapping or a package name" in problems
        assert "declarations[8]: preference value is empty" in problems

    def test_missing_declarations(self):
        assert TableValidator().validate({"setup": []}) == ["missing 'declarations' list"]

    def test_bad_action_definition(self):
        problems = TableValidator().validate({"actions": {"x": {"command": "killall Dock"}}, "declarations": []})
        assert problems == ["action 'x': 'command' must be a non-empty list of strings"]

    def test_error_message_lists_problems(self, tmp_path):
        path = write_table(tmp_path, {"declarations": [{"symlink": "a"}, {"manual": ""}]})

        with pytest.raises(ConfigValidationError) as exc_info:
            DeclarationLoader(str(path)).load()

        assert len(exc_info.value.problems) == 2
        assert "  - declarations[0]: symlink needs a 'target'" in str(exc_info.value)


class TestCoercion:
    @pytest.mark.parametrize("value,expected", [
        (True, "bool"), (3, "int"), (0.5, "float"), ("left", "string"), ({}, "dict"), ([], "array"),
    ])
    def test_infer_type(self, value, expected):
        assert infer_type(value) == expected

    def test_coerce(self):
        assert coerce_value("yes", "bool") is True
        assert coerce_value(25.0, "int") == 25
        assert coerce_value("0.215", "float") == 0.215
        assert coerce_value(25, "string") == "25"

    @pytest.mark.parametrize("value,value_type", [
        ("maybe", "bool"), (True, "int"), (2.5, "int"), ([], "string"), ("x", "dict"), ({}, "array"),
        (None, "string"), (None, "bool"),
    ])
    def test_coerce_rejects(self, value, value_type):
        with pytest.raises(ValueError):
            coerce_value(value, value_type)


def test_build_actions_marks_disruptive_builtins():
    actions = build_actions()

    assert actions["restart-dock"].disruptive is True
    assert actions["restart-finder"].disruptive is True
    assert actions["restart-systemuiserver"].disruptive is False
    assert actions["rewire-hotkeys"].command[-1] == "-u"
