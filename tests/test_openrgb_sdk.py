from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from orgbsync.core.errors import ConnectionLostError, RemoteOperationError
from orgbsync.remote.openrgb_sdk import OpenRGBConnection, OpenRGBConnector


class FakeDevice:
    def __init__(self, name: str, modes: list[str]) -> None:
        self.name = name
        self.modes = [
            SimpleNamespace(name=mode, colors=[SimpleNamespace(red=1, green=2, blue=3)]) for mode in modes
        ]
        self.mode_calls: list[object] = []

    def set_mode(self, mode: object) -> None:
        self.mode_calls.append(mode)


class FakeSDKClient:
    def __init__(self) -> None:
        self.devices = [FakeDevice("Mainboard", ["Static", "Direct"])]
        self.updates = 0
        self.profiles: list[str] = []
        self.disconnected = False

    def update(self) -> None:
        self.updates += 1

    def load_profile(self, name: str) -> None:
        if name == "Broken":
            raise ConnectionResetError("connection reset by peer")
        if name == "Missing":
            raise ValueError("profile not found")
        self.profiles.append(name)

    def disconnect(self) -> None:
        self.disconnected = True


def test_controller_snapshot_conversion() -> None:
    client = FakeSDKClient()
    connection = OpenRGBConnection(client)

    assert asyncio.run(connection.get_controller_count()) == 1
    controller = asyncio.run(connection.get_controller(0))

    assert client.updates == 1
    assert controller.name == "Mainboard"
    assert [mode.name for mode in controller.modes] == ["Static", "Direct"]
    assert controller.modes[1].index == 1
    assert controller.modes[1].colors == ((1, 2, 3),)


def test_update_mode_passes_library_mode() -> None:
    client = FakeSDKClient()
    connection = OpenRGBConnection(client)
    controller = asyncio.run(connection.get_controller(0))

    asyncio.run(connection.update_mode(0, 1, controller.modes[1]))

    assert client.devices[0].mode_calls == [client.devices[0].modes[1]]


def test_transport_errors_map_to_connection_lost() -> None:
    connection = OpenRGBConnection(FakeSDKClient())
    with pytest.raises(ConnectionLostError):
        asyncio.run(connection.load_profile("Broken"))


def test_other_errors_map_to_operation_error() -> None:
    connection = OpenRGBConnection(FakeSDKClient())
    with pytest.raises(RemoteOperationError):
        asyncio.run(connection.load_profile("Missing"))
    with pytest.raises(RemoteOperationError):
        asyncio.run(connection.get_controller(7))


def test_load_profile_and_close() -> None:
    client = FakeSDKClient()
    connection = OpenRGBConnection(client)

    asyncio.run(connection.load_profile("Blue"))
    asyncio.run(connection.close())

    assert client.profiles == ["Blue"]
    assert client.disconnected


class RecordingClientFactory:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[tuple, dict]] = []

    def __call__(self, *args, **kwargs) -> FakeSDKClient:
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return FakeSDKClient()


def test_connect_announces_client_name_once(monkeypatch) -> None:
    factory = RecordingClientFactory()
    monkeypatch.setattr("openrgb.OpenRGBClient", factory)
    connector = OpenRGBConnector("10.0.0.5", 6743, client_name="ORGB")

    connection = asyncio.run(connector.connect())
    asyncio.run(connection.set_client_name("ORGB"))

    assert factory.calls == [(("10.0.0.5", 6743), {"name": "ORGB"})]
    assert isinstance(connection.client, FakeSDKClient)


def test_connect_refused_maps_to_connection_lost(monkeypatch) -> None:
    monkeypatch.setattr("openrgb.OpenRGBClient", RecordingClientFactory(ConnectionRefusedError(111, "refused")))

    with pytest.raises(ConnectionLostError, match="connect to 127.0.0.1:6742"):
        asyncio.run(OpenRGBConnector().connect())


def test_renaming_after_connect_is_rejected() -> None:
    connection = OpenRGBConnection(FakeSDKClient(), name="ORGB")

    with pytest.raises(RemoteOperationError, match="fixed at connect time"):
        asyncio.run(connection.set_client_name("Other"))
