"""Tests for typed symbolic hotkey records."""
import pytest

from slather.core.hotkeys import NO_CHARACTER, Modifier, SymbolicHotKey, parse_modifiers


class TestModifiers:
    def test_names_and_aliases(self):
        assert parse_modifiers(["control", "option"]) == {Modifier.CONTROL, Modifier.OPTION}
        assert parse_modifiers(["Ctrl", "alt", "cmd", "fn"]) == {
            Modifier.CONTROL, Modifier.OPTION, Modifier.COMMAND, Modifier.FUNCTION,
        }

    def test_raw_mask(self):
        assert parse_modifiers(786432) == {Modifier.CONTROL, Modifier.OPTION}
        assert parse_modifiers(0) == frozenset()
        assert parse_modifiers(None) == frozenset()

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError, match="unknown modifier: hyper"):
            parse_modifiers(["control", "hyper"])

    def test_unknown_bits_rejected(self):
        with pytest.raises(ValueError, match="unknown modifier bits"):
            parse_modifiers(0x1)


class TestSymbolicHotKey:
    def test_control_option_mask(self):
        hotkey = SymbolicHotKey(36, character=100, key_code=2,
                                modifiers=frozenset({Modifier.CONTROL, Modifier.OPTION}))

        assert hotkey.modifier_mask() == 786432

    def test_arrow_key_mask_includes_fn_and_numeric_pad(self):
        # Ctrl-Option-Left, as used for "Move left a space"
        hotkey = SymbolicHotKey.from_config({
            "hotkey": 79,
            "key_code": 123,
            "modifiers": ["control", "option", "numeric_pad", "function"],
        })

        assert hotkey.modifier_mask() == 11272192
        assert hotkey.to_plist()["value"]["parameters"] == [NO_CHARACTER, 123, 11272192]

    def test_to_plist(self):
        hotkey = SymbolicHotKey.from_config({
            "hotkey": 36, "character": "d", "key_code": 2, "modifiers": ["control", "option"],
        })

        assert hotkey.to_plist() == {
            "enabled": True,
            "value": {"parameters": [100, 2, 786432], "type": "standard"},
        }

    def test_disabled_without_key(self):
        hotkey = SymbolicHotKey.from_config({"hotkey": 64, "enabled": False})

        assert hotkey.to_plist() == {"enabled": False}
        assert hotkey.describe() == "hotkey 64: off"

    @pytest.mark.parametrize("word", ["false", "no", "off", "0"])
    def test_quoted_false_disables(self, word):
        hotkey = SymbolicHotKey.from_config({"hotkey": 64, "enabled": word})

        assert hotkey.enabled is False

    def test_enabled_rejects_unknown_word(self):
        with pytest.raises(ValueError, match="not a boolean"):
            SymbolicHotKey.from_config({"hotkey": 64, "enabled": "maybe"})

    def test_describe(self):
        hotkey = SymbolicHotKey(36, character=100, key_code=2,
                                modifiers=frozenset({Modifier.OPTION, Modifier.CONTROL}))

        assert hotkey.describe() == "hotkey 36: control+option key 2"

    def test_from_config_requires_id(self):
        with pytest.raises(ValueError, match="needs an id"):
            SymbolicHotKey.from_config({"key_code": 2})

    def test_from_config_rejects_multi_char(self):
        with pytest.raises(ValueError, match="single key"):
            SymbolicHotKey.from_config({"hotkey": 36, "character": "dd", "key_code": 2})

    def test_raw_mask_in_config(self):
        hotkey = SymbolicHotKey.from_config({"hotkey": 36, "character": 100, "key_code": 2,
                                             "modifiers": 786432})

        assert hotkey.modifiers == {Modifier.CONTROL, Modifier.OPTION}
