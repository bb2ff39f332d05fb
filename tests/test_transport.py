"""Tests for WinregTransport against a mocked winreg module."""

from unittest.mock import MagicMock, call

import pytest

from winreg_converge.registry.arch import KEY_WOW64_32KEY, KEY_WOW64_64KEY
from winreg_converge.registry.transport import KEY_READ, KEY_WRITE, WinregTransport


@pytest.fixture
def mock_winreg():
    module = MagicMock()
    module.OpenKey.return_value.__enter__ = MagicMock(return_value=MagicMock())
    module.OpenKey.return_value.__exit__ = MagicMock(return_value=False)
    module.CreateKeyEx.return_value.__enter__ = MagicMock(return_value=MagicMock())
    module.CreateKeyEx.return_value.__exit__ = MagicMock(return_value=False)
    return module


@pytest.fixture
def transport(mock_winreg):
    return WinregTransport(mock_winreg)


class TestEnumeration:
    def test_enum_values_stops_at_oserror(self, transport, mock_winreg):
        mock_winreg.EnumValue.side_effect = [
            ("RootType1", "fibrous", 1),
            ("Roots", ["a"], 7),
            OSError("No more data is available"),
        ]
        handle = object()
        assert list(transport.enum_values(handle)) == [("RootType1", "fibrous", 1), ("Roots", ["a"], 7)]
        assert mock_winreg.EnumValue.call_args_list == [
            call(handle, 0),
            call(handle, 1),
            call(handle, 2),
        ]

    def test_enum_keys_is_lazy(self, transport, mock_winreg):
        mock_winreg.EnumKey.side_effect = ["Branch", "Trunk", OSError()]
        keys = transport.enum_keys(object())
        assert next(keys) == "Branch"
        assert mock_winreg.EnumKey.call_count == 1

    def test_empty_key(self, transport, mock_winreg):
        mock_winreg.EnumKey.side_effect = OSError()
        assert list(transport.enum_keys(object())) == []


class TestWrites:
    def test_open_passes_access(self, transport, mock_winreg):
        transport.open(0x80000001, r"Software\Root", KEY_READ | KEY_WOW64_64KEY)
        mock_winreg.OpenKey.assert_called_once_with(
            0x80000001, r"Software\Root", 0, KEY_READ | KEY_WOW64_64KEY
        )

    def test_set_value(self, transport, mock_winreg):
        handle = object()
        transport.set_value(handle, "Petals", 7, ["Pink"])
        mock_winreg.SetValueEx.assert_called_once_with(handle, "Petals", 0, 7, ["Pink"])

    def test_delete_value(self, transport, mock_winreg):
        handle = object()
        transport.delete_value(handle, "Petals")
        mock_winreg.DeleteValue.assert_called_once_with(handle, "Petals")

    def test_create_key_closes_handle(self, transport, mock_winreg):
        transport.create_key(0x80000001, r"Software\Root", KEY_WRITE | KEY_WOW64_32KEY)
        mock_winreg.CreateKeyEx.assert_called_once_with(
            0x80000001, r"Software\Root", 0, KEY_WRITE | KEY_WOW64_32KEY
        )
        mock_winreg.CreateKeyEx.return_value.__exit__.assert_called_once()


class TestDeleteKey:
    def test_non_recursive_deletes_with_view(self, transport, mock_winreg):
        parent = object()
        transport.delete_key(parent, "Flower", KEY_WRITE | KEY_WOW64_32KEY, recursive=False)
        mock_winreg.DeleteKeyEx.assert_called_once_with(parent, "Flower", KEY_WOW64_32KEY, 0)
        mock_winreg.OpenKey.assert_not_called()

    def test_recursive_deletes_children_first(self, transport, mock_winreg):
        handles = {}

        def open_key(parent, name, reserved, access):
            handle = MagicMock(name=name)
            handle.__enter__ = MagicMock(return_value=handle)
            handle.__exit__ = MagicMock(return_value=False)
            handles[name] = handle
            return handle

        children = {"Root": ["Branch"], "Branch": ["Flower"], "Flower": []}

        def enum_key(handle, index):
            names = children[handle._mock_name]
            if index >= len(names):
                raise OSError("No more data is available")
            return names[index]

        mock_winreg.OpenKey.side_effect = open_key
        mock_winreg.EnumKey.side_effect = enum_key
        parent = object()

        transport.delete_key(parent, "Root", KEY_WRITE | KEY_WOW64_64KEY, recursive=True)

        deleted = [c.args[1] for c in mock_winreg.DeleteKeyEx.call_args_list]
        assert deleted == ["Flower", "Branch", "Root"]
        assert mock_winreg.DeleteKeyEx.call_args_list[-1] == call(
            parent, "Root", KEY_WOW64_64KEY, 0
        )
        for handle in handles.values():
            handle.__exit__.assert_called_once()

    def test_recursive_opens_child_in_same_view(self, transport, mock_winreg):
        mock_winreg.EnumKey.side_effect = OSError()
        parent = object()
        transport.delete_key(parent, "Leaf", KEY_WRITE | KEY_WOW64_32KEY, recursive=True)
        mock_winreg.OpenKey.assert_called_once_with(
            parent, "Leaf", 0, KEY_READ | KEY_WRITE | KEY_WOW64_32KEY
        )
